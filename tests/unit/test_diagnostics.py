"""Tests for the troubleshooting formatter."""

from __future__ import annotations

import logging

import pytest
from algosdk import encoding

from daostate.state.diagnostics import format_snapshot, log_snapshot, value_to_str
from daostate.state.snapshot import StateSnapshot, StateValue
from daostate.utils.errors import DiagnosticFormatError


class TestValueToStr:
    def test_integer_renders_decimal(self) -> None:
        assert value_to_str(StateValue.of_uint(1234)) == "1234"

    def test_32_bytes_render_as_address(self) -> None:
        raw = bytes(range(32))
        assert value_to_str(StateValue.of_bytes(raw)) == encoding.encode_address(raw)

    def test_other_bytes_render_as_hex(self) -> None:
        assert value_to_str(StateValue.of_bytes(b"\x0a\xff")) == "0x0aff"
        assert value_to_str(StateValue.of_bytes(b"")) == "0x"

    def test_unknown_tag_is_an_error(self) -> None:
        with pytest.raises(DiagnosticFormatError):
            value_to_str(StateValue(value_type=3))


class TestFormatSnapshot:
    def test_keys_sorted(self) -> None:
        snapshot = StateSnapshot.from_mapping({"b": 2, "a": 1, "C": b"\x01"})
        rendered = format_snapshot(snapshot)
        assert list(rendered) == ["C", "a", "b"]
        assert rendered == {"C": "0x01", "a": "1", "b": "2"}

    def test_undecodable_key_rendered_as_hex(self) -> None:
        snapshot = StateSnapshot.from_mapping({b"\xff": 1})
        assert format_snapshot(snapshot) == {"<0xff>": "1"}

    def test_text_key_resembling_hex_is_kept(self) -> None:
        snapshot = StateSnapshot.from_mapping({b"\xff": 1, b"0xff": 2})
        assert format_snapshot(snapshot) == {"<0xff>": "1", "0xff": "2"}

    def test_clashing_keys_all_render_as_hex(self) -> None:
        snapshot = StateSnapshot.from_mapping({b"\xff": 1, b"<0xff>": 2, b"Shares": 3})
        rendered = format_snapshot(snapshot)
        assert len(rendered) == len(snapshot)
        assert rendered == {
            "<0xff>": "1",
            "<0x" + b"<0xff>".hex() + ">": "2",
            "<0x" + b"Shares".hex() + ">": "3",
        }

    def test_unknown_tag_propagates(self) -> None:
        snapshot = StateSnapshot([("Odd", StateValue(value_type=0))])
        with pytest.raises(DiagnosticFormatError):
            format_snapshot(snapshot)


class TestLogSnapshot:
    def test_logs_each_entry_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        snapshot = StateSnapshot.from_mapping({"Shares": 5, "ClaimedTotal": 9})
        with caplog.at_level(logging.DEBUG, logger="daostate.state.diagnostics"):
            rendered = log_snapshot("Investor local state", snapshot)
        messages = [record.getMessage() for record in caplog.records]
        assert messages == ["Investor local state:", "ClaimedTotal => 9", "Shares => 5"]
        assert rendered == {"ClaimedTotal": "9", "Shares": "5"}

    def test_format_failure_is_contained(self, caplog: pytest.LogCaptureFixture) -> None:
        snapshot = StateSnapshot([("Odd", StateValue(value_type=0))])
        with caplog.at_level(logging.DEBUG, logger="daostate.state.diagnostics"):
            assert log_snapshot("state", snapshot) == {}
        assert any(record.levelno == logging.WARNING for record in caplog.records)
