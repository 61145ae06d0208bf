"""Domain records decoded from application state.

All records are immutable Pydantic models, built fresh on every decode and
compared by value. Amounts are kept in base units (integers); the investors'
share is a Decimal fraction in [0, 1].
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from algosdk import encoding
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .codecs import MAX_UINT64, MAX_VERSION, document_hash

Uint64 = Annotated[int, Field(ge=0, le=MAX_UINT64)]
NonEmptyStr = Annotated[str, Field(min_length=1)]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Nft(_Record):
    """Image NFT attached to a DAO."""

    asset_id: int = Field(..., gt=0, le=MAX_UINT64, description="NFT asset id")
    url: NonEmptyStr


class Prospectus(_Record):
    """Reference to the DAO's prospectus document."""

    hash: NonEmptyStr = Field(..., description="Base64 SHA-512/256 of the document")
    url: NonEmptyStr

    @classmethod
    def from_document(cls, document: bytes, url: str) -> Prospectus:
        return cls(hash=document_hash(document), url=url)

    def matches_document(self, document: bytes) -> bool:
        return document_hash(document) == self.hash


class SignedProspectus(_Record):
    """An investor's acknowledgment of a prospectus."""

    hash: NonEmptyStr
    url: NonEmptyStr
    timestamp: Uint64 = Field(..., description="Unix time of the acknowledgment")


class DaoGlobalState(_Record):
    """Decoded global state of a DAO application.

    Invariants:
    - investors_share in [0, 1]
    - owner is a valid Algorand address
    - optional entities are either complete or absent
    """

    # Total funds received from customer payments since creation (fees already deducted)
    received: Uint64
    # Funds on the app escrow that can be withdrawn or claimed as dividend.
    # Payments only become available after being drained.
    available: Uint64

    app_approval_version: int = Field(..., ge=0, le=MAX_VERSION)
    app_clear_version: int = Field(..., ge=0, le=MAX_VERSION)

    funds_asset_id: Uint64
    shares_asset_id: Uint64

    project_name: str
    project_desc_url: NonEmptyStr | None = None
    share_price: Uint64
    investors_share: Decimal = Field(..., ge=0, le=1)

    image_nft: Nft | None = None
    social_media_url: str

    prospectus: Prospectus | None = None

    # Creator of the application; supplied by the caller, not stored in state
    owner: str

    locked_shares: Uint64

    min_funds_target: Uint64
    min_funds_target_end_date: Uint64
    raised: Uint64

    setup_date: Uint64

    min_invest_amount: Uint64
    max_invest_amount: Uint64

    team_url: NonEmptyStr | None = None

    @field_validator("owner")
    @classmethod
    def validate_owner(cls, v: str) -> str:
        if not encoding.is_valid_address(v):
            raise ValueError(f"owner is not a valid address: {v!r}")
        return v


class DaoInvestorState(_Record):
    """Decoded local state of one investor in a DAO application."""

    # Locked shares; free shares are plain assets in the investor's wallet
    shares: Uint64
    claimed: Uint64
    # Value "claimed" was initialized to when the shares were locked, so that
    # dividend is only paid on income received afterwards
    claimed_init: Uint64
    signed_prospectus: SignedProspectus | None = None

    @property
    def claimed_since_lock(self) -> int:
        """Dividend actually claimed by the investor since locking."""
        return self.claimed - self.claimed_init
