"""Exception hierarchy for the log-to-Avro conversion pipeline."""

from __future__ import annotations


class Log2AvroError(Exception):
    """Base class for every error raised by the conversion pipeline."""


class ConfigResolutionError(Log2AvroError):
    """Raised when a configuration value cannot be resolved."""


class MappingError(Log2AvroError):
    """Raised when a distinguished field cannot be extracted from a record."""


class NoTimeError(MappingError):
    """The configured time key is absent from the record."""

    def __init__(self, key: str) -> None:
        super().__init__(f"no time found in the log (key '{key}')")
        self.key = key


class NoLevelError(MappingError):
    """The configured level key is absent from the record."""

    def __init__(self, key: str) -> None:
        super().__init__(f"no level found in the log (key '{key}')")
        self.key = key


class InvalidTimeError(MappingError):
    """The time value is not a string or does not parse."""


class InvalidLevelError(MappingError):
    """The level value is not a string."""


class SourceDecodeError(Log2AvroError):
    """Raised by the record source when an input value cannot be decoded."""

    def __init__(self, message: str, line: int | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class SchemaParseError(Log2AvroError):
    """Raised when the schema text is not a valid Avro schema."""


class EncodeError(Log2AvroError):
    """Raised when a row cannot be encoded against the schema."""


class CancellationError(Log2AvroError):
    """Raised when the conversion is cancelled between records."""
