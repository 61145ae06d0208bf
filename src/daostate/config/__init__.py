"""Runtime configuration for daostate."""

from .runtime import (
    AlgodConfig,
    DaoStateConfig,
    DecoderConfig,
    Network,
    ObservabilityConfig,
    get_runtime_config,
    load_config_file,
)
from .schema import ConfigSchema, validate_config_dict

__all__ = [
    "Network",
    "AlgodConfig",
    "ObservabilityConfig",
    "DecoderConfig",
    "DaoStateConfig",
    "ConfigSchema",
    "get_runtime_config",
    "load_config_file",
    "validate_config_dict",
]
