#!/usr/bin/env python3
"""
report_errors.py - Exception and warning types for Reporter export decoding

Every decode failure is terminal for the document being decoded; there is
no partial result. Catch ReporterError to handle anything raised by this
package, or DecodeError for malformed input only.
"""


class ReporterError(Exception):
    """Base class for all Reporter export errors."""


class DecodeError(ReporterError, ValueError):
    """Input document could not be decoded."""


class MalformedTimestamp(DecodeError):
    """Timestamp is neither an ISO 8601 string nor a seconds offset."""


class MalformedPhrase(DecodeError):
    """Token is neither a token object nor a bare string."""


class MalformedRegion(DecodeError):
    """Placemark region string could not be tokenized."""


class InvalidDocument(DecodeError):
    """Document structure or a plain field has the wrong shape."""


class SchemaConflict(DecodeError):
    """Two versioned fields in one document disagree on the schema version."""


class MissingRequiredField(ReporterError, ValueError):
    """A derived metric was requested for a value the document does not carry."""


class UnresolvedSchemaVersion(ReporterError, RuntimeError):
    """Encoding was asked for in strict mode but no schema version is known."""


class InvalidFilename(ReporterError, ValueError):
    """Filename does not follow YYYY-MM-DD-reporter-export.json."""


class ConfigError(ReporterError):
    """Configuration file is missing or invalid."""


class UnknownCodeWarning(UserWarning):
    """An enumerated code outside the known set was kept as-is."""
