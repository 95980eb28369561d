#!/usr/bin/env python3
"""
report_codec.py - Decode and encode Reporter daily export documents

Decoding builds the report_model tree from JSON bytes and infers the schema
version from the shapes of the versioned fields it meets. Each call gets its
own SchemaState, so documents of different versions can be decoded side by
side. The inferred version is stored on the Day and used when the Day is
encoded again, which reproduces the original shapes.

Usage:
    from report_codec import decode_document, encode_document

    day = decode_document(raw_bytes)
    day.schema_version            # SchemaVersion.V1 / V2 / UNKNOWN
    encode_document(day)          # bytes in the same schema version
    encode_document(day, SchemaVersion.V2)   # convert
"""

import json
import math
from dataclasses import fields
from functools import lru_cache
from typing import Any, Dict, Optional, Union

from report_errors import InvalidDocument
from report_model import Day
from report_scalars import VersionedScalar
from schema_version import DEFAULT_VERSION, SchemaState, SchemaVersion, resolve_version


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_strings(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


PLAIN_KINDS = {
    'str': lambda v: isinstance(v, str),
    'int': _is_int,
    'number': _is_number,
    'strings': _is_strings,
}


@lru_cache(maxsize=None)
def _wire_fields(cls) -> tuple:
    return tuple(f for f in fields(cls) if 'key' in f.metadata)


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _is_scalar(kind: Any) -> bool:
    return isinstance(kind, type) and issubclass(kind, VersionedScalar)


# NaN and Infinity are accepted by json.loads but are not JSON
def _reject_constant(name: str):
    raise ValueError(f"non-standard constant {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


# =============================================================================
# Decoding
# =============================================================================

def _decode_item(kind: Any, value: Any, state: SchemaState, path: str) -> Any:
    if _is_scalar(kind):
        return kind.decode(value, state, path)
    if isinstance(kind, type):
        return _decode_object(kind, value, state, path)
    if not PLAIN_KINDS[kind](value):
        raise InvalidDocument(f"{path}: expected {kind}, got {value!r}")
    return list(value) if kind == 'strings' else value


def _decode_object(cls, raw: Any, state: SchemaState, path: str):
    if not isinstance(raw, dict):
        raise InvalidDocument(f"{path or 'document'}: expected object, got {type(raw).__name__}")

    values: Dict[str, Any] = {}
    known = set()
    for f in _wire_fields(cls):
        meta = f.metadata
        key = meta['key']
        known.add(key)
        value = raw.get(key)
        if value is None:
            if meta.get('required'):
                raise InvalidDocument(f"{_join(path, key)}: required key is missing")
            continue

        field_path = _join(path, key)
        if meta['many']:
            if not isinstance(value, list):
                raise InvalidDocument(f"{field_path}: expected array, got {type(value).__name__}")
            values[f.name] = [
                _decode_item(meta['kind'], item, state, f"{field_path}[{i}]")
                for i, item in enumerate(value)
            ]
        else:
            values[f.name] = _decode_item(meta['kind'], value, state, field_path)

    extras = {k: v for k, v in raw.items() if k not in known}
    return cls(extras=extras, **values)


# =============================================================================
# Encoding
# =============================================================================

def _encode_item(kind: Any, value: Any, version: SchemaVersion) -> Any:
    if _is_scalar(kind):
        return value.encode(version)
    if isinstance(kind, type):
        return _encode_object(value, version)
    return list(value) if kind == 'strings' else value


def _encode_object(obj, version: SchemaVersion) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in _wire_fields(type(obj)):
        value = getattr(obj, f.name)
        if value is None:
            continue
        meta = f.metadata
        if meta['many']:
            out[meta['key']] = [_encode_item(meta['kind'], item, version) for item in value]
        else:
            out[meta['key']] = _encode_item(meta['kind'], value, version)
    for key, value in obj.extras.items():
        out.setdefault(key, value)
    return out


# =============================================================================
# Codec
# =============================================================================

class ReportCodec:
    """
    Reporter export decoder/encoder.

    Args:
        default_version: Version used to encode a Day whose version is unknown
        strict: Raise UnresolvedSchemaVersion instead of using the default
    """

    def __init__(self, default_version: SchemaVersion = DEFAULT_VERSION, strict: bool = False):
        self.default_version = default_version
        self.strict = strict

    def decode(self, data: Union[bytes, str]) -> Day:
        """
        Decode one export document.

        Raises:
            InvalidDocument: not a JSON object, no 'snapshots', or a field
                has the wrong type
            MalformedTimestamp, MalformedPhrase, MalformedRegion: a versioned
                field matches none of its shapes
            SchemaConflict: fields disagree on the schema version
        """
        try:
            raw = json.loads(data, parse_float=_finite_float, parse_constant=_reject_constant)
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidDocument(f"document is not valid JSON: {e}") from e
        except RecursionError:
            raise InvalidDocument("document is nested too deeply") from None

        if not isinstance(raw, dict):
            raise InvalidDocument(f"document: expected object, got {type(raw).__name__}")
        if 'snapshots' not in raw:
            raise InvalidDocument("document has no 'snapshots' key")

        state = SchemaState()
        day = _decode_object(Day, raw, state, '')
        day.schema_version = state.version
        return day

    def decode_file(self, report_file) -> Day:
        """Decode a ReportFile and attach its provenance."""
        day = self.decode(report_file.contents)
        day.date = report_file.date
        day.file = report_file
        return day

    def resolve(self, day: Day, version: Optional[SchemaVersion] = None) -> SchemaVersion:
        requested = day.schema_version if version is None else version
        return resolve_version(requested, default=self.default_version, strict=self.strict)

    def to_wire(self, day: Day, version: Optional[SchemaVersion] = None) -> Dict[str, Any]:
        """JSON-ready mapping of `day` in the resolved schema version."""
        return _encode_object(day, self.resolve(day, version))

    def encode(self, day: Day, version: Optional[SchemaVersion] = None) -> bytes:
        """
        Encode `day` as compact UTF-8 JSON.

        Without `version` the Day's inferred version is reproduced.
        """
        wire_data = self.to_wire(day, version)
        return json.dumps(wire_data, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


_default_codec = ReportCodec()


def decode_document(data: Union[bytes, str]) -> Day:
    return _default_codec.decode(data)


def decode_file(report_file) -> Day:
    return _default_codec.decode_file(report_file)


def encode_document(day: Day, version: Optional[SchemaVersion] = None) -> bytes:
    return _default_codec.encode(day, version)


def to_wire(day: Day, version: Optional[SchemaVersion] = None) -> Dict[str, Any]:
    return _default_codec.to_wire(day, version)
