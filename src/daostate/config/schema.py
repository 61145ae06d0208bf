"""Configuration schema and validation for daostate.

Every configuration source (network defaults, the YAML file, environment
overrides) is merged into one dictionary and validated here before the
runtime dataclasses are built. Types are strict: a quoted ``"false"`` is not
a boolean and ``2.9`` is not a retry count. Unknown keys are rejected so a
typo in the file cannot silently fall back to a default.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from daostate.utils.errors import ConfigurationError, ErrorCode

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class AlgodSection(_Section):
    """Connection to the node serving application state."""

    address: str = Field(..., min_length=1, description="algod base URL")
    token: str | None = Field(default=None, description="algod API token")
    retries: int = Field(..., ge=1, le=20, description="Attempts per node call")
    retry_max_wait: float = Field(
        ..., gt=0, description="Upper bound in seconds for the back-off between attempts"
    )


class ObservabilitySection(_Section):
    """Logging output."""

    log_level: str = Field(..., description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL")
    json_logging: bool = Field(..., description="Emit one JSON object per log line")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v!r}. Use one of {', '.join(VALID_LOG_LEVELS)}")
        return level


class DecoderSection(_Section):
    """Decoder behaviour."""

    log_state_on_mismatch: bool = Field(
        ..., description="Dump the raw state at DEBUG when the entry count is wrong"
    )


class ConfigSchema(_Section):
    """Complete configuration document.

    Example YAML::

        algod:
          address: https://testnet-api.algonode.cloud
          retries: 3
        observability:
          log_level: INFO
        decoder:
          log_state_on_mismatch: true
    """

    algod: AlgodSection
    observability: ObservabilitySection
    decoder: DecoderSection


def validate_config_dict(config_dict: dict[str, Any]) -> ConfigSchema:
    """Validate a merged configuration dictionary.

    Raises:
        ConfigurationError: E802 naming every offending setting.
    """
    try:
        return ConfigSchema.model_validate(config_dict)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError(
            ErrorCode.E802_INVALID_CONFIG_VALUE,
            "Invalid configuration value: " + "; ".join(problems),
            {"errors": problems},
        ) from e
