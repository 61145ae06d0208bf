"""Value codecs shared by the state decoders.

Every conversion from a raw slot value into a domain value lives here so
each packed or fixed-width format is implemented once. Decoders raise
EncodingError naming the offending key; encoders are their inverses and
are used when building state for tests and tooling.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from decimal import Decimal

from algosdk import encoding

from daostate.utils.errors import EncodingError

ADDRESS_BYTES_LEN = 32
TIMESTAMP_BYTES_LEN = 8
VERSION_BYTES_LEN = 4
VERSIONS_BYTES_LEN = 2 * VERSION_BYTES_LEN

MAX_UINT64 = 2**64 - 1
MAX_VERSION = 2 ** (8 * VERSION_BYTES_LEN) - 1
PERCENT_SCALE = 100


@dataclass(frozen=True)
class Versions:
    """Approval and clear program versions of a deployed application."""

    app_approval: int
    app_clear: int


def decode_text(key: str, raw: bytes) -> str:
    """Decode a textual slot as UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(key, f"not valid UTF-8 text ({e.reason})") from e


def _check_width(key: str, raw: bytes, expected: int) -> None:
    if len(raw) != expected:
        raise EncodingError(key, f"expected {expected} bytes, got {len(raw)}")


def bytes_to_versions(key: str, raw: bytes) -> Versions:
    """Unpack the approval and clear versions (two big-endian u32, approval first)."""
    _check_width(key, raw, VERSIONS_BYTES_LEN)
    return Versions(
        app_approval=int.from_bytes(raw[:VERSION_BYTES_LEN], "big"),
        app_clear=int.from_bytes(raw[VERSION_BYTES_LEN:], "big"),
    )


def versions_to_bytes(versions: Versions) -> bytes:
    for version in (versions.app_approval, versions.app_clear):
        if not 0 <= version <= MAX_VERSION:
            raise ValueError(f"Version out of range: {version}")
    return versions.app_approval.to_bytes(VERSION_BYTES_LEN, "big") + versions.app_clear.to_bytes(
        VERSION_BYTES_LEN, "big"
    )


def timestamp_from_bytes(key: str, raw: bytes) -> int:
    """Interpret exactly eight bytes as a big-endian unsigned timestamp."""
    _check_width(key, raw, TIMESTAMP_BYTES_LEN)
    return int.from_bytes(raw, "big")


def timestamp_to_bytes(timestamp: int) -> bytes:
    if not 0 <= timestamp <= MAX_UINT64:
        raise ValueError(f"Timestamp out of range: {timestamp}")
    return timestamp.to_bytes(TIMESTAMP_BYTES_LEN, "big")


def percentage_from_uint(key: str, raw: int) -> Decimal:
    """Convert an integer percent in [0, 100] into a fraction in [0, 1]."""
    if not 0 <= raw <= PERCENT_SCALE:
        raise EncodingError(key, f"percentage must be between 0 and {PERCENT_SCALE}, got {raw}")
    return Decimal(raw) / PERCENT_SCALE


def percentage_to_uint(fraction: Decimal) -> int:
    scaled = fraction * PERCENT_SCALE
    if scaled != scaled.to_integral_value() or not 0 <= scaled <= PERCENT_SCALE:
        raise ValueError(f"Percentage not representable as a whole percent: {fraction}")
    return int(scaled)


def address_from_bytes(raw: bytes) -> str | None:
    """Render 32 raw bytes as an Algorand address, or None for any other width."""
    if len(raw) != ADDRESS_BYTES_LEN:
        return None
    return encoding.encode_address(raw)


def document_hash(document: bytes) -> str:
    """Base64 SHA-512/256 digest, the form in which prospectus hashes are stored."""
    return base64.b64encode(encoding.checksum(document)).decode("ascii")
