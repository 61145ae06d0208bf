"""Shared utilities: structured errors and environment parsing."""

from .errors import (
    ConfigurationError,
    DaoStateError,
    DecodeError,
    DiagnosticFormatError,
    EncodingError,
    ErrorCode,
    FieldMissingError,
    InconsistentPairingError,
    NotOptedInError,
    SchemaMismatchError,
    StateFetchError,
)

__all__ = [
    "ErrorCode",
    "DaoStateError",
    "DecodeError",
    "SchemaMismatchError",
    "FieldMissingError",
    "InconsistentPairingError",
    "EncodingError",
    "DiagnosticFormatError",
    "StateFetchError",
    "NotOptedInError",
    "ConfigurationError",
]
