"""
pytest configuration and fixtures for Reporter export tests.

Provides:
- tools/ on sys.path
- Example v1 and v2 export documents from tests/data/
- Hypothesis property-based testing profiles
"""

import json
import os
import sys
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

# Add project paths
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

DATA_DIR = Path(__file__).parent / "data"
V1_EXPORT = DATA_DIR / "2014-01-15-reporter-export.json"
V2_EXPORT = DATA_DIR / "2015-10-23-reporter-export.json"


# Configure Hypothesis profiles

# Default profile: balanced speed and coverage
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
)

# CI profile: more thorough testing
settings.register_profile(
    "ci",
    max_examples=500,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)

# Dev profile: fast iteration
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
)

# Debug profile: verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def v1_bytes():
    """Raw bytes of a schema v1 export (numeric dates, string tokens)."""
    return V1_EXPORT.read_bytes()


@pytest.fixture
def v2_bytes():
    """Raw bytes of a schema v2 export (ISO dates, token objects, questions)."""
    return V2_EXPORT.read_bytes()


@pytest.fixture
def v1_json(v1_bytes):
    return json.loads(v1_bytes)


@pytest.fixture
def v2_json(v2_bytes):
    return json.loads(v2_bytes)


@pytest.fixture
def data_dir():
    return DATA_DIR


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
