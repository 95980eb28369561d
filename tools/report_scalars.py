#!/usr/bin/env python3
"""
report_scalars.py - Versioned scalar codecs for Reporter export fields

Reporter changed how some values are written without tagging the document
with a version. Each codec here resolves one ambiguous raw JSON value into
a single in-memory form and records the schema version its shape implies:

    Timestamp   v1: seconds since 2001-01-01T00:00:00Z (float)
                v2: "2015-10-23T08:30:12-0700"
    Token       v1: "phrase"
                v2: {"uniqueIdentifier": "...", "text": "phrase"}
    Connection  both: 0 / 1 / 2, expanded to method and description
    Impetus     both: 0..4, expanded to a description
    Region      both: '<+37.33169000,-122.03073200> radius 100.00m identifier:"Home"'

Decoding tries each shape in a fixed order and commits to the first that
parses. Encoding reproduces the shape of the requested version.

Usage:
    state = SchemaState()
    ts = Timestamp.decode(411436783.5, state)
    ts.encode(state.resolve())  # -> 411436783.5
"""

import math
import re
import warnings
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from report_errors import (
    InvalidDocument, MalformedPhrase, MalformedRegion, MalformedTimestamp,
    UnknownCodeWarning,
)
from schema_version import SchemaState, SchemaVersion


# NSDate reference date used by schema v1 timestamps
APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

ISO8601_FORMAT = '%Y-%m-%dT%H:%M:%S%z'
ISO8601_PATTERN = re.compile(
    r'^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(\.\d+)?([+-]\d{4})$', re.ASCII
)

CONNECTION_TYPES: Dict[int, Tuple[str, str]] = {
    0: ('Cellular', 'Device is connected via cellular network'),
    1: ('Wi-Fi', 'Device is connected via WiFi'),
    2: ('Not connected', 'Device is not connected'),
}

REPORT_IMPETUS: Dict[int, str] = {
    0: 'Report button tapped',
    1: 'Report button tapped while Reporter is asleep',
    2: 'Report triggered by notification',
    3: 'Report triggered by setting app to sleep',
    4: 'Report triggered by waking up app',
}

REGION_IDENTIFIER = re.compile(r'identifier:"([^"]*)"')
_REGION_SEPARATORS = str.maketrans({'<': '', '>': '', ',': ' ', '+': ' '})


def _is_number(raw: Any) -> bool:
    return isinstance(raw, (int, float)) and not isinstance(raw, bool)


def _read_code(raw: Any, path: str, what: str) -> int:
    if not isinstance(raw, int) or isinstance(raw, bool):
        raise InvalidDocument(f"{path}: {what} should be an int, got {raw!r}")
    return raw


class VersionedScalar:
    """Base for field types with a custom wire shape."""

    @classmethod
    def decode(cls, raw: Any, state: SchemaState, path: str = ''):
        raise NotImplementedError

    def encode(self, version: SchemaVersion) -> Any:
        raise NotImplementedError


# =============================================================================
# Timestamp
# =============================================================================

@dataclass(frozen=True)
class Timestamp(VersionedScalar):
    """
    Absolute point in time.

    `seconds` keeps the original v1 offset and `text` the original v2
    string, so re-encoding a decoded value is exact rather than limited to
    microsecond resolution.
    """
    value: datetime
    seconds: Optional[float] = None
    text: Optional[str] = None

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.astimezone())

    @classmethod
    def decode(cls, raw: Any, state: SchemaState, path: str = 'timestamp') -> 'Timestamp':
        match = ISO8601_PATTERN.match(raw) if isinstance(raw, str) else None
        if match:
            whole, fraction, offset = match.groups()
            try:
                value = datetime.strptime(whole + offset, ISO8601_FORMAT)
            except ValueError as e:
                raise MalformedTimestamp(f"{path}: {e}") from None
            if fraction:
                # digits past microseconds are dropped
                value = value.replace(microsecond=int(fraction[1:7].ljust(6, '0')))
            state.set(SchemaVersion.V2, path)
            return cls(value, text=raw)

        if _is_number(raw):
            try:
                if not math.isfinite(raw):
                    raise ValueError(raw)
                # v1 timestamps are presented in local civil time
                value = (APPLE_EPOCH + timedelta(seconds=raw)).astimezone()
            except (OverflowError, OSError, ValueError):
                raise MalformedTimestamp(f"{path}: seconds offset out of range: {raw!r}") from None
            state.set(SchemaVersion.V1, path)
            return cls(value, seconds=raw)

        raise MalformedTimestamp(
            f"{path}: expected ISO 8601 string or seconds since 2001-01-01, got {raw!r}"
        )

    def encode(self, version: SchemaVersion) -> Any:
        if version == SchemaVersion.V1:
            if self.seconds is not None:
                return self.seconds
            return (self.value - APPLE_EPOCH).total_seconds()
        if self.text is not None:
            return self.text
        return self.value.strftime(ISO8601_FORMAT)

    def __str__(self):
        return self.value.strftime(ISO8601_FORMAT)


# =============================================================================
# Token (common responses, words or phrases)
# =============================================================================

@dataclass(frozen=True)
class Token(VersionedScalar):
    text: str
    id: Optional[str] = None

    @classmethod
    def decode(cls, raw: Any, state: SchemaState, path: str = 'token') -> 'Token':
        if isinstance(raw, dict) and isinstance(raw.get('text'), str):
            ident = raw.get('uniqueIdentifier')
            if ident is not None and not isinstance(ident, str):
                raise MalformedPhrase(f"{path}: uniqueIdentifier should be a string, got {ident!r}")
            state.set(SchemaVersion.V2, path)
            return cls(text=raw['text'], id=ident)

        if isinstance(raw, str):
            state.set(SchemaVersion.V1, path)
            return cls(text=raw)

        raise MalformedPhrase(f"{path}: expected token object or string, got {raw!r}")

    def encode(self, version: SchemaVersion) -> Any:
        if version == SchemaVersion.V1:
            return self.text
        out: Dict[str, Any] = {}
        if self.id is not None:
            out['uniqueIdentifier'] = self.id
        out['text'] = self.text
        return out

    def __str__(self):
        return self.text


# =============================================================================
# Enumerated codes
# =============================================================================

@dataclass(frozen=True)
class Connection(VersionedScalar):
    """Network connection of the device at the time of the report."""
    code: int
    method: str = ''
    description: str = ''

    @classmethod
    def from_code(cls, code: int) -> 'Connection':
        method, description = CONNECTION_TYPES.get(code, ('', ''))
        return cls(code, method, description)

    @classmethod
    def decode(cls, raw: Any, state: SchemaState, path: str = 'connection') -> 'Connection':
        code = _read_code(raw, path, 'connection type')
        if code not in CONNECTION_TYPES:
            warnings.warn(f"{path}: unknown connection code {code}", UnknownCodeWarning, stacklevel=2)
        return cls.from_code(code)

    def encode(self, version: SchemaVersion) -> Any:
        return self.code

    def __str__(self):
        return self.method


@dataclass(frozen=True)
class Impetus(VersionedScalar):
    """How the report was triggered."""
    code: int
    description: str = ''

    @classmethod
    def from_code(cls, code: int) -> 'Impetus':
        return cls(code, REPORT_IMPETUS.get(code, ''))

    @classmethod
    def decode(cls, raw: Any, state: SchemaState, path: str = 'reportImpetus') -> 'Impetus':
        code = _read_code(raw, path, 'report impetus')
        if code not in REPORT_IMPETUS:
            warnings.warn(f"{path}: unknown report impetus {code}", UnknownCodeWarning, stacklevel=2)
        return cls.from_code(code)

    def encode(self, version: SchemaVersion) -> Any:
        return self.code

    def __str__(self):
        return self.description


# =============================================================================
# Placemark region
# =============================================================================

def _region_number(token: str, name: str, path: str) -> float:
    try:
        return float(token)
    except ValueError:
        raise MalformedRegion(f"{path}: {name} is not a number: {token!r}") from None


@dataclass(frozen=True)
class Region(VersionedScalar):
    """
    Circular geofence parsed from a CLPlacemark region description.

    `text` is the description exactly as received and is what gets encoded.
    """
    latitude: float
    longitude: float
    radius: float
    identifier: Optional[str] = None
    text: Optional[str] = None

    @classmethod
    def decode(cls, raw: Any, state: SchemaState, path: str = 'region') -> 'Region':
        if not isinstance(raw, str):
            raise MalformedRegion(f"{path}: region should be a string, got {raw!r}")

        fields = raw.translate(_REGION_SEPARATORS).split()
        if len(fields) < 4:
            raise MalformedRegion(f"{path}: expected '<lat,lon> radius Nm', got {raw!r}")

        # fields[2] is the literal between center and radius ("radius", "+/-")
        latitude = _region_number(fields[0], 'latitude', path)
        longitude = _region_number(fields[1], 'longitude', path)
        radius_token = fields[3]
        if radius_token.endswith('m'):
            radius_token = radius_token[:-1]
        radius = _region_number(radius_token, 'radius', path)

        match = REGION_IDENTIFIER.search(raw)
        identifier = match.group(1) if match else None
        return cls(latitude, longitude, radius, identifier, raw)

    def encode(self, version: SchemaVersion) -> Any:
        if self.text is not None:
            return self.text
        out = f"<{self.latitude:+.8f},{self.longitude:+.8f}> radius {self.radius:.2f}m"
        if self.identifier is not None:
            out += f' identifier:"{self.identifier}"'
        return out

    def __str__(self):
        return self.identifier if self.identifier is not None else self.encode(SchemaVersion.UNKNOWN)
