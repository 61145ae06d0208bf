"""Heuristic classification of local state as belonging to a DAO application.

This is not proof of provenance. It only checks that the state has the same
schema and key names as a DAO investor's local state; another application
could reproduce that shape by accident, or deliberately to appear among an
account's DAOs. Callers that make trust decisions must verify the
application itself (for instance its creator or program hash).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .schema import LOCAL_FINGERPRINT_KEYS, LOCAL_SCHEMA
from .snapshot import StateSnapshot

logger = logging.getLogger(__name__)


def matches_local_schema(snapshot: Any) -> bool:
    """Return True if a local state snapshot looks like a DAO investor's state.

    Checks, in order: the declared slot counts, that every declared slot is
    physically present, and that the fingerprint keys exist. Never raises.
    """
    if not isinstance(snapshot, StateSnapshot):
        return False

    schema = snapshot.schema
    if schema is None:
        return False
    if (schema.num_uint, schema.num_byte_slice) != (
        LOCAL_SCHEMA.num_ints,
        LOCAL_SCHEMA.num_byte_slices,
    ):
        return False

    # All local state is initialized on opt-in, so the slots are always filled
    if len(snapshot) != schema.total:
        return False

    return all(key in snapshot for key in LOCAL_FINGERPRINT_KEYS)


def find_dao_local_states(account_info: Mapping[str, Any]) -> list[int]:
    """Return ids of the account's opted-in applications whose local state matches.

    Entries that cannot be parsed are skipped.
    """
    app_ids: list[int] = []
    for local_state in account_info.get("apps-local-state") or ():
        try:
            snapshot = StateSnapshot.from_algod(
                local_state.get("key-value"), local_state.get("schema") or {}
            )
            app_id = int(local_state["id"])
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug("Skipping unparsable local state entry: %s", e)
            continue
        if matches_local_schema(snapshot):
            app_ids.append(app_id)
    return app_ids
