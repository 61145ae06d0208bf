"""Structured error codes and exception hierarchy for daostate.

Error codes follow the pattern: E{category}{number}
- E1xx: State decode errors
- E2xx: Diagnostic formatting errors
- E3xx: State fetch errors
- E8xx: Configuration errors

Every decode failure is terminal for the decode call: a record with an
unknown field is never returned.

Example:
    >>> from daostate.utils.errors import FieldMissingError
    >>> raise FieldMissingError("SharePrice", kind="uint")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Standardized error codes for daostate."""

    # E1xx: State decode errors
    E100_DECODE_ERROR = "E100"
    E101_SCHEMA_MISMATCH = "E101"
    E102_FIELD_MISSING = "E102"
    E103_INCONSISTENT_PAIRING = "E103"
    E104_ENCODING_ERROR = "E104"

    # E2xx: Diagnostic formatting errors
    E201_UNKNOWN_VALUE_TYPE = "E201"

    # E3xx: State fetch errors
    E300_FETCH_ERROR = "E300"
    E301_NOT_OPTED_IN = "E301"
    E302_MALFORMED_RESPONSE = "E302"

    # E8xx: Configuration errors
    E800_CONFIG_ERROR = "E800"
    E801_INVALID_CONFIG_FILE = "E801"
    E802_INVALID_CONFIG_VALUE = "E802"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E100_DECODE_ERROR: "State decode failed",
    ErrorCode.E101_SCHEMA_MISMATCH: "State does not match the expected schema",
    ErrorCode.E102_FIELD_MISSING: "Required state key is not set",
    ErrorCode.E103_INCONSISTENT_PAIRING: "Paired state fields must be set together",
    ErrorCode.E104_ENCODING_ERROR: "State value has an invalid encoding",
    ErrorCode.E201_UNKNOWN_VALUE_TYPE: "Unexpected state value type",
    ErrorCode.E300_FETCH_ERROR: "Failed to fetch application state",
    ErrorCode.E301_NOT_OPTED_IN: "Account is not opted in to the application",
    ErrorCode.E302_MALFORMED_RESPONSE: "Node returned a malformed state payload",
    ErrorCode.E800_CONFIG_ERROR: "Configuration error",
    ErrorCode.E801_INVALID_CONFIG_FILE: "Invalid configuration file format",
    ErrorCode.E802_INVALID_CONFIG_VALUE: "Invalid configuration value",
}


@dataclass
class ErrorDetails:
    """Structured error details for logging and CLI output.

    Attributes:
        code: Error code enum value
        message: Human-readable error message
        details: Additional error details
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error_code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary suitable for structured logging."""
        log_dict: dict[str, Any] = {
            "error_code": self.code.value,
            "error_message": self.message,
        }
        for key, value in self.details.items():
            log_dict[f"detail_{key}"] = value
        return log_dict


class DaoStateError(Exception):
    """Base exception class for daostate errors with structured error codes."""

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.error_details = ErrorDetails(
            code=code,
            message=self.message,
            details=details or {},
        )
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def log(self, level: int = logging.ERROR) -> None:
        """Log the error with structured details."""
        logger.log(level, str(self), extra=self.error_details.to_log_dict())


# ---------------------------------------------------------------------------
# Decode errors
# ---------------------------------------------------------------------------


class DecodeError(DaoStateError):
    """Base class for all state decode failures."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E100_DECODE_ERROR,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class SchemaMismatchError(DecodeError):
    """The snapshot holds a different number of entries than the schema declares.

    Usually means the application has not finished its setup yet, or the
    state does not belong to this kind of application at all.
    """

    def __init__(
        self,
        schema: str,
        observed: int,
        expected: int,
        dump: dict[str, str] | None = None,
    ) -> None:
        self.schema = schema
        self.observed = observed
        self.expected = expected
        self.dump = dump or {}
        super().__init__(
            ErrorCode.E101_SCHEMA_MISMATCH,
            f"Unexpected {schema} state length: {observed}. Expected: {expected}. "
            "Was the application setup performed already?",
            {"schema": schema, "observed": observed, "expected": expected},
        )


class FieldMissingError(DecodeError):
    """A required key is absent although the entry count matched."""

    def __init__(self, key: str, kind: str | None = None) -> None:
        self.key = key
        self.kind = kind
        suffix = f" ({kind})" if kind else ""
        super().__init__(
            ErrorCode.E102_FIELD_MISSING,
            f"Key: {key!r}{suffix} not set in state",
            {"key": key, "kind": kind},
        )


class InconsistentPairingError(DecodeError):
    """Only some of the fields of a paired optional entity are set."""

    def __init__(self, group: str, states: dict[str, bool]) -> None:
        self.group = group
        self.states = dict(states)
        rendered = ", ".join(
            f"{name}={'set' if is_set else 'unset'}" for name, is_set in self.states.items()
        )
        super().__init__(
            ErrorCode.E103_INCONSISTENT_PAIRING,
            f"Invalid state: {group} fields must all be set or all be unset ({rendered})",
            {"group": group, "states": self.states},
        )


class EncodingError(DecodeError):
    """A value failed text, width, or range validation."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(
            ErrorCode.E104_ENCODING_ERROR,
            f"Invalid value for {key!r}: {reason}",
            {"key": key, "reason": reason},
        )


# ---------------------------------------------------------------------------
# Diagnostic, fetch and configuration errors
# ---------------------------------------------------------------------------


class DiagnosticFormatError(DaoStateError):
    """A snapshot value could not be rendered for troubleshooting."""

    def __init__(self, value_type: Any) -> None:
        self.value_type = value_type
        super().__init__(
            ErrorCode.E201_UNKNOWN_VALUE_TYPE,
            f"Unexpected state value type: {value_type}",
            {"value_type": value_type},
        )


class StateFetchError(DaoStateError):
    """Fetching raw state from the node failed."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E300_FETCH_ERROR,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class NotOptedInError(StateFetchError):
    """The account holds no local state for the application."""

    def __init__(self, address: str, app_id: int) -> None:
        self.address = address
        self.app_id = app_id
        super().__init__(
            ErrorCode.E301_NOT_OPTED_IN,
            f"Account {address} is not opted in to application {app_id}",
            {"address": address, "app_id": app_id},
        )


class ConfigurationError(DaoStateError):
    """Configuration error."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E800_CONFIG_ERROR,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


def create_error_response(error: DaoStateError | Exception) -> dict[str, Any]:
    """Create a structured error payload for CLI output."""
    if isinstance(error, DaoStateError):
        return {"error": error.error_details.to_dict()}
    return {
        "error": {
            "error_code": ErrorCode.E100_DECODE_ERROR.value,
            "message": str(error),
        }
    }
