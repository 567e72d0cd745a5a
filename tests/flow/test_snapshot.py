"""Tests for nifispine.flow.snapshot -- envelope access."""

import pytest

from nifispine.core.errors import ErrorCategory, InvalidFormatError
from nifispine.flow.snapshot import (
    aggregate_snapshot,
    as_aggregate_snapshot,
    iter_snapshot_arrays,
    kind_tag_for_key,
    unwrap_snapshot,
)


class TestUnwrapSnapshot:
    def test_returns_inner_map(self):
        assert unwrap_snapshot({"processorStatusSnapshot": {"id": "x"}}) == {"id": "x"}

    def test_port_snapshot_key(self):
        assert unwrap_snapshot({"id": "p", "portStatusSnapshot": {"id": "p"}}) == {"id": "p"}

    def test_no_snapshot_key_is_none(self):
        assert unwrap_snapshot({"id": "x", "processorStatusSnapshots": []}) is None

    def test_array_element_fails(self):
        with pytest.raises(InvalidFormatError) as exc_info:
            unwrap_snapshot([{"processorStatusSnapshot": {}}])
        assert exc_info.value.category == ErrorCategory.PARSE

    def test_non_object_payload_fails(self):
        with pytest.raises(InvalidFormatError) as exc_info:
            unwrap_snapshot({"processorStatusSnapshot": ["x"]})
        assert exc_info.value.context.key == "processorStatusSnapshot"

    def test_first_matching_key_wins(self):
        node = {"aStatusSnapshot": {"id": "first"}, "bStatusSnapshot": {"id": "second"}}
        assert unwrap_snapshot(node) == {"id": "first"}


class TestKindTag:
    @pytest.mark.parametrize(
        "key,tag",
        [
            ("processGroupStatusSnapshots", "processgroup"),
            ("remoteProcessGroupStatusSnapshots", "remoteprocessgroup"),
            ("inputPortStatusSnapshots", "inputport"),
            ("funnelStatusSnapshots", "funnel"),
        ],
    )
    def test_strips_suffix_and_lowercases(self, key, tag):
        assert kind_tag_for_key(key) == tag


class TestIterSnapshotArrays:
    def test_sorted_and_filtered(self):
        node = {
            "processorStatusSnapshots": [],
            "id": "x",
            "connectionStatusSnapshots": [1],
            "processorStatusSnapshot": {},
        }
        assert list(iter_snapshot_arrays(node)) == [
            ("connectionStatusSnapshots", [1]),
            ("processorStatusSnapshots", []),
        ]

    def test_non_array_fails(self):
        with pytest.raises(InvalidFormatError, match="must be an array"):
            list(iter_snapshot_arrays({"processorStatusSnapshots": {"a": 1}}))


class TestAggregateSnapshot:
    def test_extracts(self, flow_response, flow):
        assert aggregate_snapshot(flow_response) is flow

    @pytest.mark.parametrize(
        "document",
        [
            {},
            {"processGroupStatus": []},
            {"processGroupStatus": {}},
            {"processGroupStatus": {"aggregateSnapshot": "x"}},
            [],
        ],
    )
    def test_malformed_envelope(self, document):
        with pytest.raises(InvalidFormatError):
            aggregate_snapshot(document)

    def test_accepts_bare_snapshot(self, flow):
        assert as_aggregate_snapshot(flow) is flow

    def test_accepts_full_response(self, flow_response, flow):
        assert as_aggregate_snapshot(flow_response) is flow
