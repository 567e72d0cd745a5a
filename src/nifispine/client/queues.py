"""
Flow-file queue listing of a connection.

Listing a queue is asynchronous: a listing request is created, polled until
``finished`` and deleted again. ``ListingRequest`` is a context manager so
the server-side request is dropped on every exit path.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from nifispine.client.transport import Transport, api_path
from nifispine.core.errors import InvalidFormatError, MissingKeyError, TransportError
from nifispine.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_POLL_TIMEOUT = 60.0


@dataclass(frozen=True, slots=True)
class FlowFile:
    """Summary of one queued flow file; durations in seconds."""

    uuid: str
    filename: str
    size: int
    lineage_duration: float
    queued_duration: float
    lineage_start: datetime
    queued_start: datetime
    penalized: bool
    node: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "filename": self.filename,
            "size": self.size,
            "lineageDuration": self.lineage_duration,
            "queuedDuration": self.queued_duration,
            "lineageStart": self.lineage_start.isoformat(),
            "queuedStart": self.queued_start.isoformat(),
            "penalized": self.penalized,
            "node": self.node,
        }


def _number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_flow_files(request: Mapping[str, Any], now: datetime | None = None) -> list[FlowFile]:
    """Flow-file summaries of a listing request.

    Summaries without uuid, size or durations are skipped. Durations arrive
    in milliseconds and are anchored at ``now`` to get start times.
    """
    now = now or datetime.now(timezone.utc)
    summaries = request.get("flowFileSummaries") or []
    if not isinstance(summaries, list):
        raise InvalidFormatError("flowFileSummaries is not a list")

    files = []
    for summary in summaries:
        if not isinstance(summary, Mapping):
            continue
        uuid = summary.get("uuid")
        size = summary.get("size")
        lineage = summary.get("lineageDuration")
        queued = summary.get("queuedDuration")
        if not isinstance(uuid, str) or not all(_number(v) for v in (size, lineage, queued)):
            continue
        filename = summary.get("filename")
        node = summary.get("clusterNodeAddress")

        files.append(
            FlowFile(
                uuid=uuid,
                filename=filename if isinstance(filename, str) else "",
                size=int(size),
                lineage_duration=lineage / 1000,
                queued_duration=queued / 1000,
                lineage_start=now - timedelta(milliseconds=lineage),
                queued_start=now - timedelta(milliseconds=queued),
                penalized=summary.get("penalized") is True,
                # Only clustered instances report the node
                node=node if isinstance(node, str) else "",
            )
        )
    return files


class ListingRequest:
    """A queue listing of one connection."""

    def __init__(
        self,
        transport: Transport,
        connection_id: str,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
    ):
        self.transport = transport
        self.connection_id = connection_id
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.id: str | None = None
        self.path: str | None = None

    def create(self) -> ListingRequest:
        """Ask NiFi to start listing the queue."""
        request = self._request(
            self.transport.post(f"/flowfile-queues/{self.connection_id}/listing-requests")
        )
        request_id = request.get("id")
        if not isinstance(request_id, str):
            raise MissingKeyError("id", "listing-request: id not found")
        uri = request.get("uri")
        if not isinstance(uri, str):
            raise MissingKeyError("uri", "listing-request: uri not found")

        self.id = request_id
        self.path = api_path(uri)
        logger.debug(
            "listing_request_created", connection_id=self.connection_id, request_id=request_id
        )
        return self

    def list(self) -> list[FlowFile]:
        """Wait for the listing to finish and return its flow files."""
        if self.path is None:
            self.create()

        deadline = time.monotonic() + self.timeout
        while True:
            request = self._request(self.transport.get(self.path))
            finished = request.get("finished")
            if not isinstance(finished, bool):
                raise MissingKeyError("finished", "listing-request: finished value not found")
            if finished:
                break
            if time.monotonic() >= deadline:
                raise TransportError(
                    f"listing request did not finish within {self.timeout}s"
                ).with_context(component_id=self.connection_id)
            time.sleep(self.poll_interval)

        files = parse_flow_files(request)
        logger.debug("queue_listed", connection_id=self.connection_id, flow_files=len(files))
        return files

    def close(self) -> None:
        """Delete the listing request; a no-op before ``create``."""
        if not self.id:
            return
        request = self._request(
            self.transport.delete(
                f"/flowfile-queues/{self.connection_id}/listing-requests/{self.id}"
            )
        )
        self.id = None
        self.path = None
        if request.get("finished") is not True:
            raise InvalidFormatError("listing-request: delete did not finish").with_context(
                component_id=self.connection_id
            )

    def __enter__(self) -> ListingRequest:
        return self.create()

    def __exit__(self, *args) -> None:
        self.close()

    @staticmethod
    def _request(body: str) -> dict[str, Any]:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise InvalidFormatError(f"Response is not valid JSON: {e}", cause=e) from e
        request = data.get("listingRequest") if isinstance(data, Mapping) else None
        if not isinstance(request, dict):
            raise MissingKeyError("listingRequest", "listing-request not found")
        return request


def list_queue(
    transport: Transport,
    connection_id: str,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> list[FlowFile]:
    """Flow files queued in a connection."""
    with ListingRequest(
        transport, connection_id, poll_interval=poll_interval, timeout=timeout
    ) as listing:
        return listing.list()


__all__ = ["FlowFile", "ListingRequest", "list_queue", "parse_flow_files"]
