"""Tests for the global and local schema descriptors."""

from __future__ import annotations

import pytest

from daostate.state.schema import (
    GLOBAL_SCHEMA,
    GLOBAL_SCHEMA_NUM_BYTE_SLICES,
    GLOBAL_SCHEMA_NUM_INTS,
    LOCAL_FINGERPRINT_KEYS,
    LOCAL_SCHEMA,
    LOCAL_SCHEMA_NUM_BYTE_SLICES,
    LOCAL_SCHEMA_NUM_INTS,
    FieldSpec,
    OptionalGroup,
    Presence,
    SchemaDescriptor,
)
from daostate.state.snapshot import ValueKind


class TestDeclaredShapes:
    def test_global_totals(self) -> None:
        assert GLOBAL_SCHEMA_NUM_BYTE_SLICES == 8
        assert GLOBAL_SCHEMA_NUM_INTS == 14
        assert GLOBAL_SCHEMA.total_slots == 22
        assert len(GLOBAL_SCHEMA) == 22

    def test_local_totals(self) -> None:
        assert LOCAL_SCHEMA_NUM_BYTE_SLICES == 3
        assert LOCAL_SCHEMA_NUM_INTS == 3
        assert LOCAL_SCHEMA.total_slots == 6

    def test_keys_are_unique(self) -> None:
        for descriptor in (GLOBAL_SCHEMA, LOCAL_SCHEMA):
            assert len(set(descriptor.keys())) == descriptor.total_slots

    def test_groups(self) -> None:
        assert [g.name for g in GLOBAL_SCHEMA.groups] == ["image_nft", "prospectus"]
        assert [g.name for g in LOCAL_SCHEMA.groups] == ["signed_prospectus"]
        assert len(LOCAL_SCHEMA.groups[0].fields) == 3

    def test_textual_fields(self) -> None:
        assert GLOBAL_SCHEMA.get_field("project_name").text
        assert GLOBAL_SCHEMA.get_field("social_media_url").text
        assert not GLOBAL_SCHEMA.get_field("versions").text
        assert not LOCAL_SCHEMA.get_field("signed_prospectus_timestamp").text

    def test_fingerprint_keys_are_local_ints(self) -> None:
        local_ints = {spec.key for spec in LOCAL_SCHEMA if spec.kind is ValueKind.UINT}
        assert set(LOCAL_FINGERPRINT_KEYS) == local_ints


class TestDescriptorValidation:
    def test_declared_counts_must_match_fields(self) -> None:
        with pytest.raises(ValueError, match="declares 2 ints"):
            SchemaDescriptor(
                name="broken",
                num_ints=2,
                num_byte_slices=0,
                fields=(FieldSpec("a", "A", ValueKind.UINT),),
            )

    def test_duplicate_keys_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate key"):
            SchemaDescriptor(
                name="broken",
                num_ints=2,
                num_byte_slices=0,
                fields=(
                    FieldSpec("a", "A", ValueKind.UINT),
                    FieldSpec("b", "A", ValueKind.UINT),
                ),
            )

    def test_text_requires_bytes(self) -> None:
        with pytest.raises(ValueError, match="must be a byte-string"):
            SchemaDescriptor(
                name="broken",
                num_ints=1,
                num_byte_slices=0,
                fields=(FieldSpec("a", "A", ValueKind.UINT, text=True),),
            )

    def test_grouped_fields_must_be_optional(self) -> None:
        with pytest.raises(ValueError, match="must be optional"):
            SchemaDescriptor(
                name="broken",
                num_ints=1,
                num_byte_slices=1,
                fields=(
                    FieldSpec("a", "A", ValueKind.UINT),
                    FieldSpec("b", "B", ValueKind.BYTES, Presence.OPTIONAL),
                ),
                groups=(OptionalGroup("pair", ("a", "b")),),
            )

    def test_group_must_reference_known_fields(self) -> None:
        with pytest.raises(ValueError, match="unknown field"):
            SchemaDescriptor(
                name="broken",
                num_ints=1,
                num_byte_slices=0,
                fields=(FieldSpec("a", "A", ValueKind.UINT, Presence.OPTIONAL),),
                groups=(OptionalGroup("pair", ("a", "zzz")),),
            )

    def test_new_group_needs_no_decoder_changes(self) -> None:
        descriptor = SchemaDescriptor(
            name="custom",
            num_ints=1,
            num_byte_slices=1,
            fields=(
                FieldSpec("logo_id", "LogoId", ValueKind.UINT, Presence.OPTIONAL),
                FieldSpec("logo_url", "LogoUrl", ValueKind.BYTES, Presence.OPTIONAL, text=True),
            ),
            groups=(OptionalGroup("logo", ("logo_id", "logo_url")),),
        )
        assert descriptor.total_slots == 2
