"""
Runtime configuration for daostate.

Configuration priority (highest to lowest):
1. Environment variables (DAOSTATE_* prefix)
2. YAML configuration file (explicit path or DAOSTATE_CONFIG)
3. Network-specific defaults

The merged values are validated by ``daostate.config.schema`` before the
dataclasses below are built.

Usage:
    from daostate.config.runtime import get_runtime_config, Network

    # Defaults for a specific network
    config = get_runtime_config(network=Network.TESTNET)

    # Network, file and overrides taken from the environment
    config = get_runtime_config()
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from daostate.utils.env import get_env_bool, get_env_float, get_env_int, get_env_str
from daostate.utils.errors import ConfigurationError, ErrorCode

from .schema import validate_config_dict

logger = logging.getLogger(__name__)


class Network(str, Enum):
    """Algorand networks with known public node endpoints."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    SANDBOX = "sandbox"  # Local development node


_NETWORK_ALGOD_ADDRESSES: dict[Network, str] = {
    Network.MAINNET: "https://mainnet-api.algonode.cloud",
    Network.TESTNET: "https://testnet-api.algonode.cloud",
    Network.SANDBOX: "http://localhost:4001",
}

_SANDBOX_TOKEN = "a" * 64


@dataclass
class AlgodConfig:
    """Connection settings for the node that serves raw state."""

    address: str = _NETWORK_ALGOD_ADDRESSES[Network.TESTNET]
    token: str = ""
    retries: int = 3
    retry_max_wait: float = 10.0


@dataclass
class ObservabilityConfig:
    """Logging configuration."""

    log_level: str = "INFO"
    json_logging: bool = False


@dataclass
class DecoderConfig:
    """Decoder behaviour switches."""

    # Dump the offending snapshot at DEBUG when the length gate fails
    log_state_on_mismatch: bool = True


@dataclass
class DaoStateConfig:
    """Complete runtime configuration."""

    network: Network
    algod: AlgodConfig = field(default_factory=AlgodConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary, with the node token redacted."""
        return {
            "network": self.network.value,
            "algod": {
                "address": self.algod.address,
                "token": "<set>" if self.algod.token else "<not set>",
                "retries": self.algod.retries,
                "retry_max_wait": self.algod.retry_max_wait,
            },
            "observability": {
                "log_level": self.observability.log_level,
                "json_logging": self.observability.json_logging,
            },
            "decoder": {
                "log_state_on_mismatch": self.decoder.log_state_on_mismatch,
            },
        }


def _get_network_defaults(network: Network) -> dict[str, Any]:
    """Get default configuration values for a network."""
    base: dict[str, Any] = {
        "algod": {
            "address": _NETWORK_ALGOD_ADDRESSES[network],
            "token": "",
            "retries": 3,
            "retry_max_wait": 10.0,
        },
        "observability": {
            "log_level": "INFO",
            "json_logging": False,
        },
        "decoder": {
            "log_state_on_mismatch": True,
        },
    }

    if network == Network.SANDBOX:
        base["algod"]["token"] = _SANDBOX_TOKEN
        base["algod"]["retries"] = 1
        base["observability"]["log_level"] = "DEBUG"
    elif network == Network.MAINNET:
        base["observability"]["json_logging"] = True

    return base


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(
            ErrorCode.E801_INVALID_CONFIG_FILE,
            f"Configuration file not found: {config_path}",
            {"path": str(config_path)},
        )
    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            ErrorCode.E801_INVALID_CONFIG_FILE,
            f"Invalid YAML in {config_path}: {e}",
            {"path": str(config_path)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            ErrorCode.E801_INVALID_CONFIG_FILE,
            f"Configuration root must be a mapping, got {type(data).__name__}",
            {"path": str(config_path)},
        )
    return data


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into a copy of base."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_network(value: str) -> Network:
    try:
        return Network(value.lower())
    except ValueError as e:
        raise ConfigurationError(
            ErrorCode.E802_INVALID_CONFIG_VALUE,
            f"Unknown network: {value!r}. Use one of: "
            + ", ".join(n.value for n in Network),
            {"network": value},
        ) from e


def get_network() -> Network:
    """Get the configured network from DAOSTATE_NETWORK (default: testnet)."""
    return _parse_network(os.environ.get("DAOSTATE_NETWORK", Network.TESTNET.value))


# (environment variable, config section, key, parser)
_ENV_OVERRIDES: tuple[tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("DAOSTATE_ALGOD_ADDRESS", "algod", "address", get_env_str),
    ("DAOSTATE_ALGOD_TOKEN", "algod", "token", get_env_str),
    ("DAOSTATE_ALGOD_RETRIES", "algod", "retries", get_env_int),
    ("DAOSTATE_ALGOD_RETRY_MAX_WAIT", "algod", "retry_max_wait", get_env_float),
    ("DAOSTATE_LOG_LEVEL", "observability", "log_level", get_env_str),
    ("DAOSTATE_JSON_LOGGING", "observability", "json_logging", get_env_bool),
    ("DAOSTATE_LOG_STATE_ON_MISMATCH", "decoder", "log_state_on_mismatch", get_env_bool),
)


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, dict[str, Any]] = {}
    for name, section, key, parse in _ENV_OVERRIDES:
        value = parse(name)
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    return overrides


def get_runtime_config(
    network: Network | None = None,
    config_path: str | Path | None = None,
) -> DaoStateConfig:
    """Build runtime configuration from defaults, a YAML file and the environment.

    Args:
        network: Target network. If None, read from DAOSTATE_NETWORK.
        config_path: YAML file to overlay on the defaults. If None,
            DAOSTATE_CONFIG is used when set.

    Returns:
        Validated DaoStateConfig.

    Raises:
        ConfigurationError: On an unreadable file or an invalid value.
    """
    if network is None:
        network = get_network()

    values = _get_network_defaults(network)

    path = config_path or get_env_str("DAOSTATE_CONFIG")
    if path:
        logger.debug("Loading configuration file %s", path)
        values = _merge(values, load_config_file(path))

    validated = validate_config_dict(_merge(values, _env_overrides()))

    return DaoStateConfig(
        network=network,
        algod=AlgodConfig(
            address=validated.algod.address,
            token=validated.algod.token or "",
            retries=validated.algod.retries,
            retry_max_wait=validated.algod.retry_max_wait,
        ),
        observability=ObservabilityConfig(
            log_level=validated.observability.log_level,
            json_logging=validated.observability.json_logging,
        ),
        decoder=DecoderConfig(
            log_state_on_mismatch=validated.decoder.log_state_on_mismatch,
        ),
    )
