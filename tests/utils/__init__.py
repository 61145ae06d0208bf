"""Test utilities package for daostate."""

from tests.utils.factories import (
    LOCAL_STATE_SCHEMA,
    OWNER_ADDRESS,
    create_global_snapshot,
    create_global_state,
    create_investor_state,
    create_local_snapshot,
    encode_global_state,
    encode_investor_state,
    without_keys,
)

__all__ = [
    "OWNER_ADDRESS",
    "LOCAL_STATE_SCHEMA",
    "create_global_state",
    "create_investor_state",
    "encode_global_state",
    "encode_investor_state",
    "create_global_snapshot",
    "create_local_snapshot",
    "without_keys",
]
