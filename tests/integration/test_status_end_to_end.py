"""
End-to-end tests: HttpxTransport → StatusClient → flatten / tree / render.

A small in-process NiFi stand-in answers over ``httpx.MockTransport``, so the
whole stack runs without a server: login, bearer signing, the status call
and both traversals.
"""

from __future__ import annotations

import json

import httpx
import pytest

from nifispine.client.status import RunningState, StatusClient
from nifispine.client.transport import HttpxTransport
from nifispine.core.errors import ApiError
from nifispine.flow.flatten import flatten_status
from nifispine.flow.kinds import ALL_EXCEPT_CONNECTIONS, ALL_KINDS, ComponentKind
from nifispine.flow.render import render
from nifispine.flow.tree import build_status_tree
from tests._support.status_documents import status_response

SERVER = "http://nifi.local:8080"
TOKEN = "jwt-123"


class FakeNifi:
    """Answers the handful of REST calls the client makes."""

    def __init__(self, flow):
        self.flow = flow
        self.states: dict[str, str] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/nifi-api")

        if path == "/access/token":
            return httpx.Response(201, text=TOKEN)
        if request.headers.get("Authorization") != f"Bearer {TOKEN}":
            return httpx.Response(401, text="Unauthorized")

        if path == "/process-groups/root":
            return httpx.Response(200, json={"component": {"id": "root-id", "name": "NiFi Flow"}})
        if path in ("/flow/process-groups/root/status", "/flow/process-groups/root-id/status"):
            return httpx.Response(200, json=status_response(self.flow))
        if path == "/flow/process-groups/pg-ingest/status":
            ingest = self.flow["processGroupStatusSnapshots"][0]["processGroupStatusSnapshot"]
            return httpx.Response(200, json=status_response(ingest))
        if path.startswith("/flowfile-queues/c-1/listing-requests"):
            return httpx.Response(200, json=self._listing())
        if path.startswith("/flow/process-groups/") and request.method == "PUT":
            body = json.loads(request.content)
            self.states[body["id"]] = body["state"]
            return httpx.Response(200, json={"id": body["id"], "state": body["state"]})
        return httpx.Response(404, text="Not Found")

    def _listing(self) -> dict:
        return {
            "listingRequest": {
                "id": "l-1",
                "uri": f"{SERVER}/nifi-api/flowfile-queues/c-1/listing-requests/l-1",
                "finished": True,
                "flowFileSummaries": [
                    {"uuid": "ff-1", "size": 3, "lineageDuration": 10, "queuedDuration": 5}
                ],
            }
        }


@pytest.fixture
def nifi(flow) -> FakeNifi:
    return FakeNifi(flow)


@pytest.fixture
def client(nifi) -> StatusClient:
    http = httpx.Client(transport=httpx.MockTransport(nifi))
    transport = HttpxTransport.login(SERVER, "admin", "secret", client=http)
    yield StatusClient(transport)
    transport.close()


def test_listing_matches_offline_flatten(client, flow):
    live = client.all(["root"], ALL_KINDS)
    assert live == flatten_status(flow, kinds=ALL_KINDS)
    assert len(live) == 12


def test_tree_matches_offline_build(client, flow):
    live = client.tree(["root"], ALL_EXCEPT_CONNECTIONS)
    assert render(live) == render(build_status_tree(flow, kinds=ALL_EXCEPT_CONNECTIONS))


def test_tree_ids_match_listing(client):
    for kinds in (ALL_KINDS, ALL_EXCEPT_CONNECTIONS, ComponentKind.PROCESSOR):
        assert client.tree(["root"], kinds).ids() == {c.id for c in client.all(["root"], kinds)}


def test_multi_group_listing(client):
    components = client.all(["root", "pg-ingest"], ComponentKind.PROCESSOR)
    assert [(c.name, c.path) for c in components] == [
        ("Compress", "/NiFi Flow/Ingest/Archive"),
        ("Generate", "/NiFi Flow"),
        ("Log", "/NiFi Flow"),
        ("Put", "/NiFi Flow/Ingest"),
        ("Compress", "./Ingest/Archive"),
        ("Put", "./Ingest"),
    ]


def test_set_state_round_trip(client, nifi):
    assert client.set_state("pg-ingest", RunningState.STOPPED) == "STOPPED"
    assert nifi.states == {"pg-ingest": "STOPPED"}


def test_every_request_is_signed(client, nifi):
    client.all(["root"])
    api_requests = [r for r in nifi.requests if not r.url.path.endswith("/access/token")]
    assert api_requests
    assert all(r.headers["Authorization"] == f"Bearer {TOKEN}" for r in api_requests)


def test_unknown_group_fails_whole_call(client):
    with pytest.raises(ApiError) as exc_info:
        client.all(["root", "gone"])
    assert exc_info.value.context.http_status == 404


def test_queue_listing_follows_absolute_uri(client, nifi):
    (flow_file,) = client.queue("c-1", poll_interval=0)
    assert flow_file.uuid == "ff-1"
    listing = [(r.method, r.url.path) for r in nifi.requests if "flowfile-queues" in r.url.path]
    assert listing == [
        ("POST", "/nifi-api/flowfile-queues/c-1/listing-requests"),
        ("GET", "/nifi-api/flowfile-queues/c-1/listing-requests/l-1"),
        ("DELETE", "/nifi-api/flowfile-queues/c-1/listing-requests/l-1"),
    ]
