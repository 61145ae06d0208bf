"""
daostate: typed decoding of DAO application state.

Decodes an application's global state and its investors' local state into
validated, immutable records, and classifies arbitrary local state as
probably belonging to a DAO.

Quick Start:
-----------
>>> from daostate import StateSnapshot, decode_investor_state
>>> snapshot = StateSnapshot.from_algod(key_value, schema)
>>> investor = decode_investor_state(snapshot)
>>> investor.claimed_since_lock
"""

from __future__ import annotations

from .state import (
    GLOBAL_SCHEMA,
    LOCAL_SCHEMA,
    DaoGlobalState,
    DaoInvestorState,
    Nft,
    Prospectus,
    SignedProspectus,
    StateSnapshot,
    StateValue,
    decode_global_state,
    decode_investor_state,
    format_snapshot,
    matches_local_schema,
)
from .utils.errors import (
    DaoStateError,
    DecodeError,
    EncodingError,
    FieldMissingError,
    InconsistentPairingError,
    SchemaMismatchError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "StateSnapshot",
    "StateValue",
    "GLOBAL_SCHEMA",
    "LOCAL_SCHEMA",
    "DaoGlobalState",
    "DaoInvestorState",
    "Nft",
    "Prospectus",
    "SignedProspectus",
    "decode_global_state",
    "decode_investor_state",
    "matches_local_schema",
    "format_snapshot",
    "DaoStateError",
    "DecodeError",
    "SchemaMismatchError",
    "FieldMissingError",
    "InconsistentPairingError",
    "EncodingError",
]
