"""Schema descriptors for the DAO application's global and local state.

Each descriptor maps a logical field name to the state key it lives under,
the kind of value stored there and how absence is interpreted. Fields that
only make sense together are declared as optional groups, so the decoder
applies one both-or-neither rule to all of them.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from .snapshot import ValueKind

# Global state keys
GLOBAL_TOTAL_RECEIVED = "CentralReceivedTotal"
GLOBAL_AVAILABLE_AMOUNT = "AvailableAmount"
GLOBAL_FUNDS_ASSET_ID = "FundsAssetId"
GLOBAL_SHARES_ASSET_ID = "SharesAssetId"
GLOBAL_DAO_NAME = "DaoName"
GLOBAL_DAO_DESC = "DaoDesc"
GLOBAL_SHARE_PRICE = "SharePrice"
GLOBAL_INVESTORS_SHARE = "InvestorsPart"
GLOBAL_IMAGE_URL = "ImageUrl"
GLOBAL_IMAGE_ASSET_ID = "ImageAsset"
GLOBAL_SOCIAL_MEDIA_URL = "SocialMediaUrl"
GLOBAL_PROSPECTUS_URL = "ProspectusUrl"
GLOBAL_PROSPECTUS_HASH = "ProspectusHash"
GLOBAL_SHARES_LOCKED = "LockedShares"
GLOBAL_VERSIONS = "Versions"
GLOBAL_TARGET = "Target"
GLOBAL_TARGET_END_DATE = "TargetEndDate"
GLOBAL_RAISED = "Raised"
GLOBAL_SETUP_DATE = "SetupDate"
GLOBAL_MIN_INVEST_AMOUNT = "GlobalMinInvestAmount"
GLOBAL_MAX_INVEST_AMOUNT = "GlobalMaxInvestAmount"
GLOBAL_TEAM_URL = "TeamUrl"

# Local (investor) state keys
LOCAL_CLAIMED_TOTAL = "ClaimedTotal"
LOCAL_CLAIMED_INIT = "ClaimedInit"
LOCAL_SHARES = "Shares"
LOCAL_SIGNED_PROSPECTUS_URL = "SignedProspectusUrl"
LOCAL_SIGNED_PROSPECTUS_HASH = "SignedProspectusHash"
LOCAL_SIGNED_PROSPECTUS_TIMESTAMP = "SignedProspectusTimestamp"

# dao name, dao desc, social media, versions, image url, prospectus url, prospectus hash, team url
GLOBAL_SCHEMA_NUM_BYTE_SLICES = 8
# total received, available, funds asset, shares asset, share price, investors part, image asset,
# locked shares, target, target end date, raised, setup date, min invest, max invest
GLOBAL_SCHEMA_NUM_INTS = 14

# signed prospectus url, hash and timestamp
LOCAL_SCHEMA_NUM_BYTE_SLICES = 3
# shares, claimed total, claimed init
LOCAL_SCHEMA_NUM_INTS = 3


class Presence(Enum):
    """How a missing or default value is interpreted."""

    REQUIRED = "required"
    # Absent, zero-length bytes and zero integers all mean "never written"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class FieldSpec:
    """One slot of a schema."""

    name: str
    key: str
    kind: ValueKind
    presence: Presence = Presence.REQUIRED
    text: bool = False

    @property
    def required(self) -> bool:
        return self.presence is Presence.REQUIRED


@dataclass(frozen=True)
class OptionalGroup:
    """Fields that must be all set or all unset."""

    name: str
    fields: tuple[str, ...]


@dataclass(frozen=True)
class SchemaDescriptor:
    """Fixed description of one state area.

    The declared slot counts are checked against the field list at
    construction, so a descriptor can never disagree with itself.
    """

    name: str
    num_ints: int
    num_byte_slices: int
    fields: tuple[FieldSpec, ...]
    groups: tuple[OptionalGroup, ...] = ()
    _by_name: dict[str, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_name: dict[str, FieldSpec] = {}
        keys: set[str] = set()
        for spec in self.fields:
            if spec.name in by_name:
                raise ValueError(f"Duplicate field name in {self.name} schema: {spec.name}")
            if spec.key in keys:
                raise ValueError(f"Duplicate key in {self.name} schema: {spec.key}")
            if spec.text and spec.kind is not ValueKind.BYTES:
                raise ValueError(f"Text field {spec.name} must be a byte-string slot")
            by_name[spec.name] = spec
            keys.add(spec.key)

        ints = sum(1 for spec in self.fields if spec.kind is ValueKind.UINT)
        byte_slices = len(self.fields) - ints
        if (ints, byte_slices) != (self.num_ints, self.num_byte_slices):
            raise ValueError(
                f"{self.name} schema declares {self.num_ints} ints and "
                f"{self.num_byte_slices} byte slices but lists {ints} and {byte_slices}"
            )

        grouped: set[str] = set()
        for group in self.groups:
            if len(group.fields) < 2:
                raise ValueError(f"Optional group {group.name} needs at least two fields")
            for name in group.fields:
                spec = by_name.get(name)
                if spec is None:
                    raise ValueError(f"Optional group {group.name} references unknown field {name}")
                if spec.required:
                    raise ValueError(f"Grouped field {name} must be optional")
                if name in grouped:
                    raise ValueError(f"Field {name} belongs to more than one optional group")
                grouped.add(name)

        object.__setattr__(self, "_by_name", by_name)

    @property
    def total_slots(self) -> int:
        return self.num_ints + self.num_byte_slices

    def get_field(self, name: str) -> FieldSpec:
        return self._by_name[name]

    def keys(self) -> list[str]:
        return [spec.key for spec in self.fields]

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


def _uint(name: str, key: str, presence: Presence = Presence.REQUIRED) -> FieldSpec:
    return FieldSpec(name, key, ValueKind.UINT, presence)


def _bytes(
    name: str, key: str, presence: Presence = Presence.REQUIRED, text: bool = True
) -> FieldSpec:
    return FieldSpec(name, key, ValueKind.BYTES, presence, text)


GLOBAL_SCHEMA = SchemaDescriptor(
    name="global",
    num_ints=GLOBAL_SCHEMA_NUM_INTS,
    num_byte_slices=GLOBAL_SCHEMA_NUM_BYTE_SLICES,
    fields=(
        _uint("received", GLOBAL_TOTAL_RECEIVED),
        _uint("available", GLOBAL_AVAILABLE_AMOUNT),
        _bytes("versions", GLOBAL_VERSIONS, text=False),
        _uint("funds_asset_id", GLOBAL_FUNDS_ASSET_ID),
        _uint("shares_asset_id", GLOBAL_SHARES_ASSET_ID),
        _bytes("project_name", GLOBAL_DAO_NAME),
        _bytes("project_desc_url", GLOBAL_DAO_DESC, Presence.OPTIONAL),
        _uint("share_price", GLOBAL_SHARE_PRICE),
        _uint("investors_share", GLOBAL_INVESTORS_SHARE),
        _uint("image_asset_id", GLOBAL_IMAGE_ASSET_ID, Presence.OPTIONAL),
        _bytes("image_url", GLOBAL_IMAGE_URL, Presence.OPTIONAL),
        _bytes("social_media_url", GLOBAL_SOCIAL_MEDIA_URL),
        _bytes("prospectus_hash", GLOBAL_PROSPECTUS_HASH, Presence.OPTIONAL),
        _bytes("prospectus_url", GLOBAL_PROSPECTUS_URL, Presence.OPTIONAL),
        _uint("locked_shares", GLOBAL_SHARES_LOCKED),
        _uint("min_funds_target", GLOBAL_TARGET),
        _uint("min_funds_target_end_date", GLOBAL_TARGET_END_DATE),
        _uint("raised", GLOBAL_RAISED),
        _uint("setup_date", GLOBAL_SETUP_DATE),
        _uint("min_invest_amount", GLOBAL_MIN_INVEST_AMOUNT),
        _uint("max_invest_amount", GLOBAL_MAX_INVEST_AMOUNT),
        _bytes("team_url", GLOBAL_TEAM_URL, Presence.OPTIONAL),
    ),
    groups=(
        OptionalGroup("image_nft", ("image_asset_id", "image_url")),
        OptionalGroup("prospectus", ("prospectus_hash", "prospectus_url")),
    ),
)

LOCAL_SCHEMA = SchemaDescriptor(
    name="local",
    num_ints=LOCAL_SCHEMA_NUM_INTS,
    num_byte_slices=LOCAL_SCHEMA_NUM_BYTE_SLICES,
    fields=(
        _uint("shares", LOCAL_SHARES),
        _uint("claimed", LOCAL_CLAIMED_TOTAL),
        _uint("claimed_init", LOCAL_CLAIMED_INIT),
        _bytes("signed_prospectus_url", LOCAL_SIGNED_PROSPECTUS_URL, Presence.OPTIONAL),
        _bytes("signed_prospectus_hash", LOCAL_SIGNED_PROSPECTUS_HASH, Presence.OPTIONAL),
        _bytes(
            "signed_prospectus_timestamp",
            LOCAL_SIGNED_PROSPECTUS_TIMESTAMP,
            Presence.OPTIONAL,
            text=False,
        ),
    ),
    groups=(
        OptionalGroup(
            "signed_prospectus",
            ("signed_prospectus_url", "signed_prospectus_hash", "signed_prospectus_timestamp"),
        ),
    ),
)

# Keys whose presence identifies a local state as belonging to this application type
LOCAL_FINGERPRINT_KEYS = (LOCAL_CLAIMED_TOTAL, LOCAL_CLAIMED_INIT, LOCAL_SHARES)
