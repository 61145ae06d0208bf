"""Human-readable rendering of raw snapshots for troubleshooting.

Used on the schema-mismatch path only; nothing here takes part in decoding.
"""

from __future__ import annotations

import logging

from daostate.utils.errors import DiagnosticFormatError

from .codecs import address_from_bytes
from .snapshot import StateSnapshot, StateValue, ValueKind

logger = logging.getLogger(__name__)


def to_hex_str(raw: bytes) -> str:
    return f"0x{raw.hex()}"


def _key_marker(key: bytes) -> str:
    return f"<{to_hex_str(key)}>"


def _key_to_str(key: bytes) -> str:
    try:
        return key.decode("utf-8")
    except UnicodeDecodeError:
        return _key_marker(key)


def value_to_str(value: StateValue) -> str:
    """Render one value: addresses for 32-byte strings, hex for other bytes, decimal ints.

    Raises:
        DiagnosticFormatError: If the value carries an unknown type tag.
    """
    if value.value_type == ValueKind.BYTES:
        address = address_from_bytes(value.bytes)
        return address if address is not None else to_hex_str(value.bytes)
    if value.value_type == ValueKind.UINT:
        return str(value.uint)
    raise DiagnosticFormatError(value.value_type)


def format_snapshot(snapshot: StateSnapshot) -> dict[str, str]:
    """Render a snapshot as a key-sorted mapping of display strings.

    Text keys render as themselves and undecodable keys as ``<0x..>``. If two
    keys would render to the same name, every key is rendered as ``<0x..>``
    instead, so no entry is ever dropped from the dump.
    """
    names = [_key_to_str(key) for key, _ in snapshot]
    if len(set(names)) != len(names):
        names = [_key_marker(key) for key, _ in snapshot]
    rendered = {name: value_to_str(value) for name, (_, value) in zip(names, snapshot)}
    return dict(sorted(rendered.items()))


def safe_format_snapshot(
    snapshot: StateSnapshot, log: logging.Logger | None = None
) -> dict[str, str]:
    """Like format_snapshot, but a formatting failure is logged and yields {}."""
    try:
        return format_snapshot(snapshot)
    except DiagnosticFormatError as e:
        (log or logger).warning("Could not format state: %s", e)
        return {}


def log_snapshot(
    label: str,
    snapshot: StateSnapshot,
    log: logging.Logger | None = None,
) -> dict[str, str]:
    """Log every entry of a snapshot at DEBUG and return the rendered mapping.

    Formatting failures are logged and yield an empty mapping, so callers on
    an error path keep raising their own error.
    """
    log = log or logger
    rendered = safe_format_snapshot(snapshot, log)
    if log.isEnabledFor(logging.DEBUG):
        log.debug("%s:", label)
        for key, value in rendered.items():
            log.debug("%s => %s", key, value)
    return rendered
