#!/usr/bin/env python3
"""
report_config.py - User configuration for the reporter tools

Configuration is a small YAML file:

    storage_location: ~/Dropbox/Apps/Reporter-App/
    default_version: v2
    strict: false

Lookup order: explicit path, $REPORTER_CONFIG, ~/.reporter.yaml. The
default file may be missing; an explicitly named one may not.
$REPORTER_STORAGE overrides storage_location.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from report_errors import ConfigError
from report_files import DEFAULT_STORAGE_LOCATION
from schema_version import DEFAULT_VERSION, SchemaVersion, parse_version


DEFAULT_CONFIG_PATH = Path('~/.reporter.yaml')
CONFIG_KEYS = ('storage_location', 'default_version', 'strict')


@dataclass
class ReporterConfig:
    storage_location: Path = field(default_factory=lambda: DEFAULT_STORAGE_LOCATION.expanduser())
    default_version: SchemaVersion = DEFAULT_VERSION
    strict: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReporterConfig':
        unknown = sorted(set(data) - set(CONFIG_KEYS))
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        config = cls()
        if data.get('storage_location') is not None:
            config.storage_location = Path(str(data['storage_location'])).expanduser()
        if data.get('default_version') is not None:
            try:
                config.default_version = parse_version(data['default_version'])
            except ValueError as e:
                raise ConfigError(str(e)) from None
            if config.default_version == SchemaVersion.UNKNOWN:
                raise ConfigError("default_version must be v1 or v2")
        if data.get('strict') is not None:
            if not isinstance(data['strict'], bool):
                raise ConfigError(f"strict must be true or false, got {data['strict']!r}")
            config.strict = data['strict']
        return config


def load_config(path: Union[str, Path, None] = None) -> ReporterConfig:
    """
    Load configuration from YAML.

    Args:
        path: Config file; falls back to $REPORTER_CONFIG, then ~/.reporter.yaml

    Raises:
        ConfigError: explicit file missing, unreadable YAML, or bad values
    """
    explicit = path is not None or 'REPORTER_CONFIG' in os.environ
    if path is None:
        path = os.environ.get('REPORTER_CONFIG', DEFAULT_CONFIG_PATH)
    path = Path(path).expanduser()

    data: Optional[Dict[str, Any]] = {}
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping, got {type(data).__name__}")
    elif explicit:
        raise ConfigError(f"Config file not found: {path}")

    config = ReporterConfig.from_dict(data)
    if os.environ.get('REPORTER_STORAGE'):
        config.storage_location = Path(os.environ['REPORTER_STORAGE']).expanduser()
    return config
