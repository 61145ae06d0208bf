"""Decoding of DAO application state.

Public API Exports:
- StateSnapshot / StateValue / StateSchema: raw key-value snapshots
- GLOBAL_SCHEMA / LOCAL_SCHEMA: schema descriptors
- decode_global_state / decode_investor_state: snapshot -> validated record
- matches_local_schema: heuristic local state classification
- format_snapshot: troubleshooting dump of a snapshot

Usage:
    from daostate.state import StateSnapshot, decode_investor_state

    snapshot = StateSnapshot.from_algod(local_state["key-value"], local_state["schema"])
    investor = decode_investor_state(snapshot)
"""

from .codecs import Versions
from .decoder import (
    GroupPresence,
    decode_global_state,
    decode_investor_state,
    decode_state,
    group_presence,
)
from .diagnostics import format_snapshot, log_snapshot
from .matcher import find_dao_local_states, matches_local_schema
from .models import DaoGlobalState, DaoInvestorState, Nft, Prospectus, SignedProspectus
from .schema import (
    GLOBAL_SCHEMA,
    LOCAL_SCHEMA,
    FieldSpec,
    OptionalGroup,
    Presence,
    SchemaDescriptor,
)
from .snapshot import StateSchema, StateSnapshot, StateValue, ValueKind

__all__ = [
    # Snapshots
    "StateSnapshot",
    "StateValue",
    "StateSchema",
    "ValueKind",
    # Schema descriptors
    "SchemaDescriptor",
    "FieldSpec",
    "OptionalGroup",
    "Presence",
    "GLOBAL_SCHEMA",
    "LOCAL_SCHEMA",
    # Records
    "DaoGlobalState",
    "DaoInvestorState",
    "Nft",
    "Prospectus",
    "SignedProspectus",
    "Versions",
    # Operations
    "decode_state",
    "decode_global_state",
    "decode_investor_state",
    "group_presence",
    "GroupPresence",
    "matches_local_schema",
    "find_dao_local_states",
    "format_snapshot",
    "log_snapshot",
]
