#!/usr/bin/env python3
"""
schema_version.py - Schema version inference state

Reporter export documents carry no version tag. The version is inferred from
the shape of individual field values while decoding, so every decode call
owns one SchemaState that the versioned scalar codecs write to. Encoding
only reads the resolved version; it never touches a SchemaState.

Usage:
    state = SchemaState()
    state.set(SchemaVersion.V2, source='snapshots[0].date')
    version = state.resolve()
"""

from enum import IntEnum
from typing import Optional, Union

from report_errors import SchemaConflict, UnresolvedSchemaVersion


class SchemaVersion(IntEnum):
    UNKNOWN = 0
    V1 = 1
    V2 = 2

    @property
    def label(self) -> str:
        return 'unknown' if self is SchemaVersion.UNKNOWN else f"v{int(self)}"


# Version assumed when encoding a document that was built rather than decoded
DEFAULT_VERSION = SchemaVersion.V2


class SchemaState:
    """Schema version seen so far in one decode session."""

    def __init__(self):
        self._version = SchemaVersion.UNKNOWN
        self._source: Optional[str] = None

    @property
    def version(self) -> SchemaVersion:
        return self._version

    def get(self) -> SchemaVersion:
        return self._version

    def set(self, version: SchemaVersion, source: Optional[str] = None) -> None:
        """
        Record the version implied by a decoded field.

        Args:
            version: Version implied by the field's shape
            source: Path of the field, used in the conflict message

        Raises:
            SchemaConflict: a different version was already recorded
        """
        if version == SchemaVersion.UNKNOWN:
            return
        if self._version == SchemaVersion.UNKNOWN:
            self._version = version
            self._source = source
            return
        if version != self._version:
            raise SchemaConflict(
                f"{source or 'field'} has schema {version.label} shape but "
                f"{self._source or 'an earlier field'} already had {self._version.label}"
            )

    def resolve(self, default: SchemaVersion = DEFAULT_VERSION, strict: bool = False) -> SchemaVersion:
        return resolve_version(self._version, default=default, strict=strict)

    def __repr__(self):
        return f"SchemaState({self._version.label})"


def resolve_version(version: SchemaVersion, default: SchemaVersion = DEFAULT_VERSION,
                    strict: bool = False) -> SchemaVersion:
    """Map UNKNOWN to the encoding default, or raise in strict mode."""
    if version != SchemaVersion.UNKNOWN:
        return SchemaVersion(version)
    if strict:
        raise UnresolvedSchemaVersion("schema version is unknown and strict encoding is enabled")
    if default == SchemaVersion.UNKNOWN:
        raise UnresolvedSchemaVersion("default schema version must be v1 or v2")
    return SchemaVersion(default)


def parse_version(value: Union[int, str, SchemaVersion]) -> SchemaVersion:
    """
    Parse a schema version from config or command-line input.

    Accepts 1, 2, "1", "2", "v1", "V2" and "unknown".
    """
    if isinstance(value, SchemaVersion):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid schema version: {value!r}")
    if isinstance(value, int):
        try:
            return SchemaVersion(value)
        except ValueError:
            raise ValueError(f"Invalid schema version: {value!r}") from None
    if isinstance(value, str):
        text = value.strip().lower()
        if text == 'unknown':
            return SchemaVersion.UNKNOWN
        if text.startswith('v'):
            text = text[1:]
        if text in ('1', '2'):
            return SchemaVersion(int(text))
    raise ValueError(f"Invalid schema version: {value!r}")
