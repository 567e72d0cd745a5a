"""Tests for nifispine.flow.kinds."""

import pytest

from nifispine.flow.kinds import (
    ALL_EXCEPT_CONNECTIONS,
    ALL_KINDS,
    ComponentKind,
    kind_from_label,
    kind_from_tag,
    parse_kinds,
)

SINGLE_KINDS = [
    ComponentKind.PROCESS_GROUP,
    ComponentKind.REMOTE_PROCESS_GROUP,
    ComponentKind.PROCESSOR,
    ComponentKind.CONNECTION,
    ComponentKind.INPUT_PORT,
    ComponentKind.OUTPUT_PORT,
    ComponentKind.UNKNOWN,
]


class TestComponentKind:
    def test_each_kind_is_a_distinct_power_of_two(self):
        values = [int(kind) for kind in SINGLE_KINDS]
        assert len(set(values)) == len(values)
        for value in values:
            assert value & (value - 1) == 0

    def test_declaration_order_is_sort_order(self):
        assert sorted(reversed(SINGLE_KINDS)) == SINGLE_KINDS
        assert ComponentKind.PROCESS_GROUP < ComponentKind.OUTPUT_PORT < ComponentKind.UNKNOWN

    def test_labels(self):
        assert ComponentKind.PROCESS_GROUP.label == "Process Group"
        assert ComponentKind.REMOTE_PROCESS_GROUP.label == "Remote Process Group"
        assert ComponentKind.INPUT_PORT.label == "Input Port"
        assert ComponentKind.UNKNOWN.label == "unknown"

    def test_composite_mask_label_is_unknown(self):
        assert (ComponentKind.PROCESSOR | ComponentKind.CONNECTION).label == "unknown"

    def test_accepts(self):
        mask = ComponentKind.PROCESSOR | ComponentKind.INPUT_PORT
        assert mask.accepts(ComponentKind.PROCESSOR)
        assert not mask.accepts(ComponentKind.CONNECTION)


class TestPresets:
    def test_all_kinds_contains_every_kind(self):
        for kind in SINGLE_KINDS:
            assert ALL_KINDS & kind

    def test_all_except_connections(self):
        assert not ALL_EXCEPT_CONNECTIONS & ComponentKind.CONNECTION
        for kind in SINGLE_KINDS:
            if kind is not ComponentKind.CONNECTION:
                assert ALL_EXCEPT_CONNECTIONS & kind


class TestTagLookup:
    @pytest.mark.parametrize(
        "tag,kind",
        [
            ("processgroup", ComponentKind.PROCESS_GROUP),
            ("remoteprocessgroup", ComponentKind.REMOTE_PROCESS_GROUP),
            ("processor", ComponentKind.PROCESSOR),
            ("connection", ComponentKind.CONNECTION),
            ("inputport", ComponentKind.INPUT_PORT),
            ("outputport", ComponentKind.OUTPUT_PORT),
        ],
    )
    def test_known_tags(self, tag, kind):
        assert kind_from_tag(tag) is kind
        assert kind.tag == tag

    def test_matching_is_case_sensitive(self):
        assert kind_from_tag("Processor") is ComponentKind.UNKNOWN

    def test_unknown_tag(self):
        assert kind_from_tag("funnel") is ComponentKind.UNKNOWN
        assert ComponentKind.UNKNOWN.tag is None

    def test_label_round_trip(self):
        for kind in SINGLE_KINDS:
            assert kind_from_label(kind.label) is kind


class TestParseKinds:
    def test_single_tag(self):
        assert parse_kinds("processor") == ComponentKind.PROCESSOR

    def test_mixed_spellings(self):
        mask = parse_kinds("processor, Input Port,OUTPUT_PORT")
        assert mask == (
            ComponentKind.PROCESSOR | ComponentKind.INPUT_PORT | ComponentKind.OUTPUT_PORT
        )

    def test_presets(self):
        assert parse_kinds("all") == ALL_KINDS
        assert parse_kinds("all-except-connections") == ALL_EXCEPT_CONNECTIONS

    def test_unknown_is_selectable(self):
        assert parse_kinds("unknown") == ComponentKind.UNKNOWN

    def test_rejects_unknown_item(self):
        with pytest.raises(ValueError, match="funnel"):
            parse_kinds("processor,funnel")

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            parse_kinds(" , ")
