"""Point-in-time key-value snapshots of application state.

A snapshot is the raw material every decoder works on: an ordered, immutable
collection of ``(key, value)`` pairs as served by an algod node, where each
value is tagged either as a byte-string or as an unsigned integer. Local
state snapshots may also carry the schema the account allocated when it
opted in.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ValueKind(IntEnum):
    """TEAL value type tags."""

    BYTES = 1
    UINT = 2


@dataclass(frozen=True)
class StateValue:
    """A tagged state value.

    ``value_type`` is kept as a plain int so snapshots can hold tags this
    package does not know; only the diagnostic formatter rejects them.
    """

    value_type: int
    bytes: bytes = b""
    uint: int = 0

    @classmethod
    def of_bytes(cls, value: bytes) -> StateValue:
        return cls(value_type=ValueKind.BYTES, bytes=bytes(value))

    @classmethod
    def of_uint(cls, value: int) -> StateValue:
        if value < 0:
            raise ValueError(f"uint state values cannot be negative: {value}")
        return cls(value_type=ValueKind.UINT, uint=value)

    @property
    def is_bytes(self) -> bool:
        return self.value_type == ValueKind.BYTES

    @property
    def is_uint(self) -> bool:
        return self.value_type == ValueKind.UINT


@dataclass(frozen=True)
class StateSchema:
    """Slot counts an application declared for a state area."""

    num_uint: int
    num_byte_slice: int

    @property
    def total(self) -> int:
        return self.num_uint + self.num_byte_slice

    @classmethod
    def from_algod(cls, schema: Mapping[str, Any]) -> StateSchema:
        """Parse algod's ``{"num-uint": .., "num-byte-slice": ..}`` form."""
        return cls(
            num_uint=int(schema.get("num-uint", 0)),
            num_byte_slice=int(schema.get("num-byte-slice", 0)),
        )


def key_bytes(key: str | bytes) -> bytes:
    """Normalize a state key to its raw byte form."""
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


class StateSnapshot:
    """Immutable, ordered key-value snapshot with unique keys."""

    __slots__ = ("_entries", "_index", "_schema")

    def __init__(
        self,
        entries: Iterable[tuple[str | bytes, StateValue]] = (),
        schema: StateSchema | None = None,
    ) -> None:
        normalized: list[tuple[bytes, StateValue]] = []
        index: dict[bytes, StateValue] = {}
        for key, value in entries:
            raw_key = key_bytes(key)
            if raw_key in index:
                raise ValueError(f"Duplicate state key: {raw_key!r}")
            index[raw_key] = value
            normalized.append((raw_key, value))
        self._entries: tuple[tuple[bytes, StateValue], ...] = tuple(normalized)
        self._index = index
        self._schema = schema

    @classmethod
    def from_algod(
        cls,
        key_value: Iterable[Mapping[str, Any]] | None,
        schema: StateSchema | Mapping[str, Any] | None = None,
    ) -> StateSnapshot:
        """Build a snapshot from algod's JSON ``key-value`` list.

        Keys and byte values arrive base64 encoded.

        Raises:
            ValueError: If an entry is malformed.
        """
        entries: list[tuple[bytes, StateValue]] = []
        for item in key_value or ():
            try:
                raw_key = base64.b64decode(item["key"], validate=True)
                value = item["value"]
                value_type = int(value["type"])
                raw_bytes = base64.b64decode(value.get("bytes", "") or "", validate=True)
                uint = int(value.get("uint", 0) or 0)
            except (KeyError, TypeError, ValueError, binascii.Error) as e:
                raise ValueError(f"Malformed state entry {item!r}: {e}") from e
            entries.append((raw_key, StateValue(value_type=value_type, bytes=raw_bytes, uint=uint)))

        if schema is not None and not isinstance(schema, StateSchema):
            schema = StateSchema.from_algod(schema)
        return cls(entries, schema)

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str | bytes, int | bytes],
        schema: StateSchema | None = None,
    ) -> StateSnapshot:
        """Build a snapshot from plain Python values (ints and bytes)."""
        entries: list[tuple[str | bytes, StateValue]] = []
        for key, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, bytes, bytearray)):
                raise TypeError(
                    f"State value for {key!r} must be int or bytes, got {type(value).__name__}"
                )
            if isinstance(value, int):
                entries.append((key, StateValue.of_uint(value)))
            else:
                entries.append((key, StateValue.of_bytes(value)))
        return cls(entries, schema)

    def to_algod(self) -> list[dict[str, Any]]:
        """Render the snapshot back into algod's JSON ``key-value`` form."""
        return [
            {
                "key": base64.b64encode(key).decode("ascii"),
                "value": {
                    "type": value.value_type,
                    "bytes": base64.b64encode(value.bytes).decode("ascii"),
                    "uint": value.uint,
                },
            }
            for key, value in self._entries
        ]

    @property
    def schema(self) -> StateSchema | None:
        """Declared slot counts, when the source reported them."""
        return self._schema

    def get(self, key: str | bytes) -> StateValue | None:
        return self._index.get(key_bytes(key))

    def find_uint(self, key: str | bytes) -> int | None:
        """Return the integer stored under key, or None if absent or not an integer."""
        value = self.get(key)
        if value is None or not value.is_uint:
            return None
        return value.uint

    def find_bytes(self, key: str | bytes) -> bytes | None:
        """Return the byte-string stored under key, or None if absent or not bytes."""
        value = self.get(key)
        if value is None or not value.is_bytes:
            return None
        return value.bytes

    def keys(self) -> list[bytes]:
        return [key for key, _ in self._entries]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, bytes)):
            return False
        return key_bytes(key) in self._index

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[bytes, StateValue]]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StateSnapshot):
            return NotImplemented
        return self._entries == other._entries and self._schema == other._schema

    def __hash__(self) -> int:
        return hash((self._entries, self._schema))

    def __repr__(self) -> str:
        return f"StateSnapshot(entries={len(self._entries)}, schema={self._schema!r})"
