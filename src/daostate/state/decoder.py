"""Decode state snapshots into validated DAO records.

Decoding walks a SchemaDescriptor against a snapshot:

1. Length gate: the snapshot must hold exactly the declared number of
   entries. Anything else means the application has not been set up yet
   (or the state is not ours) and is never coerced into a record.
2. Every declared field is read and type-converted.
3. Optional groups are checked with one both-or-neither rule.
4. Derived values (versions, timestamps, percentages) go through the
   shared codecs.

Every failure raises a DecodeError subclass and aborts the whole decode.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from typing import Any, TypeVar

from algosdk import encoding
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from daostate.utils.errors import (
    EncodingError,
    FieldMissingError,
    InconsistentPairingError,
    SchemaMismatchError,
)

from .codecs import (
    address_from_bytes,
    bytes_to_versions,
    decode_text,
    percentage_from_uint,
    timestamp_from_bytes,
)
from .diagnostics import log_snapshot, safe_format_snapshot
from .models import DaoGlobalState, DaoInvestorState, Nft, Prospectus, SignedProspectus
from .schema import (
    GLOBAL_INVESTORS_SHARE,
    GLOBAL_SCHEMA,
    GLOBAL_VERSIONS,
    LOCAL_SCHEMA,
    LOCAL_SIGNED_PROSPECTUS_TIMESTAMP,
    FieldSpec,
    SchemaDescriptor,
)
from .snapshot import StateSnapshot, ValueKind

logger = logging.getLogger(__name__)

_R = TypeVar("_R", bound=BaseModel)


class GroupPresence(Enum):
    """Outcome of checking an optional group."""

    PRESENT = "present"
    ABSENT = "absent"
    INCONSISTENT = "inconsistent"


def group_presence(flags: Iterable[bool]) -> GroupPresence:
    """Classify a group of per-field "is set" flags."""
    flags = list(flags)
    if all(flags):
        return GroupPresence.PRESENT
    if not any(flags):
        return GroupPresence.ABSENT
    return GroupPresence.INCONSISTENT


def _read_field(snapshot: StateSnapshot, spec: FieldSpec) -> Any:
    """Read one slot; optional slots return None when absent or default."""
    if spec.kind is ValueKind.UINT:
        number = snapshot.find_uint(spec.key)
        if number is None:
            if spec.required:
                raise FieldMissingError(spec.key, kind="uint")
            return None
        if not spec.required and number == 0:
            return None
        return number

    raw = snapshot.find_bytes(spec.key)
    if raw is None:
        if spec.required:
            raise FieldMissingError(spec.key, kind="bytes")
        return None
    # The empty string is what the program initializes unwritten slots to
    if not spec.required and not raw:
        return None
    return decode_text(spec.key, raw) if spec.text else raw


def check_length(
    snapshot: StateSnapshot,
    descriptor: SchemaDescriptor,
    log_state_on_mismatch: bool = True,
) -> None:
    """Raise SchemaMismatchError unless the snapshot has exactly the declared slots."""
    if len(snapshot) == descriptor.total_slots:
        return

    label = f"{descriptor.name.capitalize()} state"
    if log_state_on_mismatch:
        dump = log_snapshot(label, snapshot, logger)
    else:
        dump = safe_format_snapshot(snapshot, logger)
    raise SchemaMismatchError(descriptor.name, len(snapshot), descriptor.total_slots, dump)


def decode_state(
    snapshot: StateSnapshot,
    descriptor: SchemaDescriptor,
    log_state_on_mismatch: bool = True,
) -> dict[str, Any]:
    """Extract every field of a descriptor from a snapshot.

    Returns:
        Mapping of field name to decoded value; unset optional fields map to None.

    Raises:
        SchemaMismatchError: Entry count differs from the declared total.
        FieldMissingError: A required key is absent.
        EncodingError: A textual slot is not valid UTF-8.
        InconsistentPairingError: An optional group is partially set.
    """
    check_length(snapshot, descriptor, log_state_on_mismatch)

    values = {spec.name: _read_field(snapshot, spec) for spec in descriptor}

    for group in descriptor.groups:
        states = {name: values[name] is not None for name in group.fields}
        if group_presence(states.values()) is GroupPresence.INCONSISTENT:
            raise InconsistentPairingError(
                group.name,
                {descriptor.get_field(name).key: is_set for name, is_set in states.items()},
            )

    return values


def _build(model: type[_R], **fields: Any) -> _R:
    try:
        return model(**fields)
    except PydanticValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"]) or model.__name__
        raise EncodingError(location, error["msg"]) from e


def _normalize_owner(owner: str | bytes) -> str:
    if isinstance(owner, (bytes, bytearray)):
        address = address_from_bytes(bytes(owner))
        if address is None:
            raise EncodingError("owner", f"expected 32 address bytes, got {len(owner)}")
        return address
    if not encoding.is_valid_address(owner):
        raise EncodingError("owner", f"not a valid address: {owner!r}")
    return owner


def decode_global_state(
    snapshot: StateSnapshot,
    owner: str | bytes,
    log_state_on_mismatch: bool = True,
) -> DaoGlobalState:
    """Decode a DAO's global state.

    Only succeeds after the DAO setup ran, since setup initializes every slot.

    Args:
        snapshot: Global state of the application.
        owner: Creator of the application (address string or 32 raw bytes).
        log_state_on_mismatch: Dump the snapshot at DEBUG if the length gate fails.
    """
    values = decode_state(snapshot, GLOBAL_SCHEMA, log_state_on_mismatch)

    versions = bytes_to_versions(GLOBAL_VERSIONS, values["versions"])
    investors_share = percentage_from_uint(GLOBAL_INVESTORS_SHARE, values["investors_share"])

    image_nft = None
    if values["image_asset_id"] is not None:
        image_nft = _build(Nft, asset_id=values["image_asset_id"], url=values["image_url"])

    prospectus = None
    if values["prospectus_hash"] is not None:
        prospectus = _build(
            Prospectus, hash=values["prospectus_hash"], url=values["prospectus_url"]
        )

    return _build(
        DaoGlobalState,
        received=values["received"],
        available=values["available"],
        app_approval_version=versions.app_approval,
        app_clear_version=versions.app_clear,
        funds_asset_id=values["funds_asset_id"],
        shares_asset_id=values["shares_asset_id"],
        project_name=values["project_name"],
        project_desc_url=values["project_desc_url"],
        share_price=values["share_price"],
        investors_share=investors_share,
        image_nft=image_nft,
        social_media_url=values["social_media_url"],
        prospectus=prospectus,
        owner=_normalize_owner(owner),
        locked_shares=values["locked_shares"],
        min_funds_target=values["min_funds_target"],
        min_funds_target_end_date=values["min_funds_target_end_date"],
        raised=values["raised"],
        setup_date=values["setup_date"],
        min_invest_amount=values["min_invest_amount"],
        max_invest_amount=values["max_invest_amount"],
        team_url=values["team_url"],
    )


def decode_investor_state(
    snapshot: StateSnapshot,
    log_state_on_mismatch: bool = True,
) -> DaoInvestorState:
    """Decode an investor's local state.

    Expects the account to be invested; an opted-in account that never
    locked shares fails the length gate.
    """
    values = decode_state(snapshot, LOCAL_SCHEMA, log_state_on_mismatch)

    # Whether a signed prospectus is expected depends on the flow: investing
    # requires acknowledging it, locking shares does not
    signed_prospectus = None
    if values["signed_prospectus_url"] is not None:
        signed_prospectus = _build(
            SignedProspectus,
            hash=values["signed_prospectus_hash"],
            url=values["signed_prospectus_url"],
            timestamp=timestamp_from_bytes(
                LOCAL_SIGNED_PROSPECTUS_TIMESTAMP, values["signed_prospectus_timestamp"]
            ),
        )

    return _build(
        DaoInvestorState,
        shares=values["shares"],
        claimed=values["claimed"],
        claimed_init=values["claimed_init"],
        signed_prospectus=signed_prospectus,
    )
