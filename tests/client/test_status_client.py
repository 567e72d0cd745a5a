"""Tests for nifispine.client.status -- StatusClient over a fake transport."""

from __future__ import annotations

import json
from typing import Any

import pytest

from nifispine.client.status import RunningState, StatusClient
from nifispine.core.errors import ApiError, InvalidFormatError, MissingKeyError
from nifispine.core.logging import configure_logging
from nifispine.flow.kinds import ALL_EXCEPT_CONNECTIONS, ComponentKind
from tests._support import FakeTransport, names_of
from tests._support.status_documents import status_response


def _ingest(flow):
    return flow["processGroupStatusSnapshots"][0]["processGroupStatusSnapshot"]


@pytest.fixture
def routes(flow) -> dict[tuple[str, str], Any]:
    return {
        ("GET", "/process-groups/root"): {"component": {"id": "root-id", "name": "NiFi Flow"}},
        ("GET", "/flow/process-groups/root/status"): status_response(flow),
        ("GET", "/flow/process-groups/root-id/status"): status_response(flow),
        ("GET", "/flow/process-groups/pg-ingest/status"): status_response(_ingest(flow)),
    }


@pytest.fixture
def transport(routes) -> FakeTransport:
    return FakeTransport(routes)


@pytest.fixture
def client(transport) -> StatusClient:
    return StatusClient(transport)


class TestRoot:
    def test_resolves_and_caches(self, client, transport):
        root = client.root()
        assert root.id == "root-id"
        assert root.name == "NiFi Flow"
        assert root.kind is ComponentKind.PROCESS_GROUP
        client.root()
        assert [call[1] for call in transport.calls] == ["/process-groups/root"]

    def test_configured_root_id_skips_lookup(self, transport):
        client = StatusClient(transport, root_id="root-id")
        assert client.root().id == "root-id"
        assert transport.calls == []

    @pytest.mark.parametrize(
        "body,key",
        [
            ({}, "component"),
            ([], "component"),
            ({"component": {"name": "x"}}, "id"),
            ({"component": {"id": "r"}}, "name"),
        ],
    )
    def test_malformed_root(self, body, key):
        client = StatusClient(FakeTransport({("GET", "/process-groups/root"): body}))
        with pytest.raises(MissingKeyError) as exc_info:
            client.root()
        assert exc_info.value.context.key == key


class TestStatus:
    def test_recursive_flag_is_sent(self, client, transport):
        client.status("root", recursive=False)
        assert transport.calls[-1][3] == {"recursive": "false"}
        client.status("root")
        assert transport.calls[-1][3] == {"recursive": "true"}

    def test_malformed_envelope_names_the_group(self):
        client = StatusClient(
            FakeTransport({("GET", "/flow/process-groups/bad/status"): {"nope": 1}})
        )
        with pytest.raises(InvalidFormatError) as exc_info:
            client.status("bad")
        assert exc_info.value.context.component_id == "bad"

    def test_body_that_is_not_json(self):
        client = StatusClient(
            FakeTransport({("GET", "/flow/process-groups/x/status"): "<html>"})
        )
        with pytest.raises(InvalidFormatError):
            client.status("x")


class TestAll:
    def test_root_listing(self, client, flow):
        components = client.all(["root"])
        assert len(components) == 12
        assert components[0].name == "Archive"
        by_name = {c.name: c for c in components}
        assert by_name["Compress"].path == "/NiFi Flow/Ingest/Archive"

    def test_non_root_group_gets_dot_marker(self, client):
        by_name = {c.name: c for c in client.all(["pg-ingest"], ALL_EXCEPT_CONNECTIONS)}
        assert by_name["Put"].path == "./Ingest"
        assert by_name["Compress"].path == "./Ingest/Archive"

    def test_results_concatenate_in_request_order(self, client):
        components = client.all(["pg-ingest", "root"], ComponentKind.PROCESSOR)
        assert names_of(components) == ["Compress", "Put", "Compress", "Generate", "Log", "Put"]

    def test_non_recursive(self, client):
        components = client.all(["root"], ComponentKind.PROCESSOR, recursive=False)
        assert names_of(components) == ["Generate", "Log"]

    def test_all_with_predicate(self, client):
        components = client.all_with(
            ["root"], ComponentKind.PROCESSOR, True, lambda c: c.name.startswith("G")
        )
        assert names_of(components) == ["Generate"]

    def test_empty_id_list(self, client):
        assert client.all([]) == []

    def test_failure_on_second_id_returns_nothing(self, client):
        with pytest.raises(ApiError):
            client.all(["root", "missing"])

    def test_root_lookup_failure_propagates(self):
        client = StatusClient(FakeTransport({}))
        with pytest.raises(ApiError):
            client.all(["root"])


class TestTree:
    def test_single_root(self, client):
        tree = client.tree(["root"], ALL_EXCEPT_CONNECTIONS)
        assert [node.component.name for node in tree] == ["NiFi Flow"]

    def test_merged_trees(self, client):
        tree = client.tree(["root", "pg-ingest"], ComponentKind.PROCESS_GROUP)
        assert {node.component.id for node in tree} == {"root-id", "pg-ingest"}

    def test_same_id_twice_keeps_one_entry(self, client):
        tree = client.tree(["root", "root-id"], ComponentKind.PROCESS_GROUP)
        assert len(tree) == 1

    def test_tree_ignores_recursive_flag_and_walks_everything(self, client, transport):
        tree = client.tree(["root"], ComponentKind.PROCESSOR)
        assert "p-compress" in tree
        assert transport.calls[-1][3] == {"recursive": "true"}

    def test_debug_event_per_root(self, client, capsys):
        configure_logging(level="DEBUG", json_format=True)
        client.tree(["root", "pg-ingest"], ComponentKind.PROCESS_GROUP)

        events = [json.loads(line) for line in capsys.readouterr().err.splitlines()]
        built = [e for e in events if e["event"] == "group_tree_built"]
        assert [(e["group_id"], e["components"]) for e in built] == [("root", 1), ("pg-ingest", 1)]


class TestSingleObjectOperations:
    def test_get_info(self, transport, client):
        transport.routes[("GET", "/process-groups/abc")] = {"id": "abc", "revision": {}}
        assert client.get_info("abc") == {"id": "abc", "revision": {}}

    def test_set_state(self, transport, client):
        transport.routes[("PUT", "/flow/process-groups/abc")] = {"id": "abc", "state": "STOPPED"}
        assert client.set_state("abc", RunningState.STOPPED) == "STOPPED"
        method, path, body, _ = transport.calls[-1]
        assert body == {"id": "abc", "state": "STOPPED", "disconnectedNodeAcknowledged": False}

    def test_set_state_accepts_string(self, transport, client):
        transport.routes[("PUT", "/flow/process-groups/abc")] = {"id": "abc", "state": "RUNNING"}
        assert client.set_state("abc", "RUNNING") == "RUNNING"

    def test_set_state_rejects_unknown_state(self, client):
        with pytest.raises(ValueError):
            client.set_state("abc", "PAUSED")

    @pytest.mark.parametrize("body", [{"id": "abc"}, {"state": 3}, ["STOPPED"]])
    def test_set_state_without_result(self, transport, client, body):
        transport.routes[("PUT", "/flow/process-groups/abc")] = body
        with pytest.raises(MissingKeyError):
            client.set_state("abc", RunningState.STOPPED)

    def test_cluster(self, transport, client):
        transport.routes[("GET", "/controller/cluster")] = {"cluster": {"nodes": []}}
        assert client.cluster() == {"cluster": {"nodes": []}}


def test_context_manager_closes_transport(transport):
    with StatusClient(transport) as client:
        client.all(["root"])
    assert transport.closed
