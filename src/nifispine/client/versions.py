"""
Version control of process groups tracked in a flow registry.

A versioned group carries its registry coordinates (registry, bucket, flow)
and the version it currently runs. Changing that version is asynchronous:
NiFi answers with an update request that is polled until ``complete`` and
then deleted.

Examples:
    >>> info, revision = version_control_info(transport, "pg-1")
    >>> [v.version for v in flow_versions(transport, info)]
    [3, 2, 1]
    >>> set_version(transport, info, revision, 2)["complete"]
    True
"""

from __future__ import annotations

import json
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from nifispine.client.transport import Transport, api_path
from nifispine.core.errors import InvalidFormatError, MissingKeyError, TransportError
from nifispine.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_POLL_TIMEOUT = 300.0


@dataclass(frozen=True, slots=True)
class Revision:
    """Optimistic-locking revision of a process group."""

    client_id: str
    version: int

    def to_dict(self) -> dict[str, Any]:
        return {"clientId": self.client_id, "version": self.version}


@dataclass(frozen=True, slots=True)
class VersionControlInfo:
    """Registry coordinates and current version of a versioned group."""

    group_id: str
    registry_id: str
    bucket_id: str
    flow_id: str
    version: int
    state: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "registryId": self.registry_id,
            "bucketId": self.bucket_id,
            "flowId": self.flow_id,
            "version": self.version,
            "state": self.state,
        }


@dataclass(frozen=True, slots=True)
class FlowVersion:
    """One snapshot of a flow as stored in the registry."""

    version: int
    timestamp: datetime
    comments: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "comments": self.comments,
        }


# ── Decoding ─────────────────────────────────────────────────────────────


def _decode(body: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise InvalidFormatError(f"Response is not valid JSON: {e}", cause=e) from e


def parse_revision(data: Any) -> Revision:
    """``processGroupRevision`` of a version-control entity.

    A missing ``clientId`` is replaced by a fresh one, as NiFi only echoes
    the id a client sent before.
    """
    revision = data.get("processGroupRevision") if isinstance(data, Mapping) else None
    if not isinstance(revision, Mapping):
        raise MissingKeyError("processGroupRevision", "unexpected data type")

    client_id = revision.get("clientId")
    if not isinstance(client_id, str):
        client_id = str(uuid.uuid4())
    version = revision.get("version")
    if not isinstance(version, (int, float)):
        version = 0
    return Revision(client_id=client_id, version=int(version))


def parse_version_control_info(data: Any) -> VersionControlInfo:
    """``versionControlInformation`` of a version-control entity."""
    info = data.get("versionControlInformation") if isinstance(data, Mapping) else None
    if not isinstance(info, Mapping):
        raise MissingKeyError(
            "versionControlInformation", "the process group is not under version control"
        )

    values = {}
    for key in ("groupId", "registryId", "bucketId", "flowId", "state"):
        value = info.get(key)
        if not isinstance(value, str):
            raise MissingKeyError(key)
        values[key] = value
    version = info.get("version")
    if not isinstance(version, (int, float)) or isinstance(version, bool):
        raise MissingKeyError("version")

    return VersionControlInfo(
        group_id=values["groupId"],
        registry_id=values["registryId"],
        bucket_id=values["bucketId"],
        flow_id=values["flowId"],
        version=int(version),
        state=values["state"],
    )


def parse_flow_versions(data: Any) -> list[FlowVersion]:
    """Registry snapshot metadata, newest version first."""
    entries = data.get("versionedFlowSnapshotMetadataSet") if isinstance(data, Mapping) else None
    if not isinstance(entries, list):
        raise MissingKeyError("versionedFlowSnapshotMetadataSet")

    versions = []
    for entry in entries:
        metadata = entry.get("versionedFlowSnapshotMetadata") if isinstance(entry, Mapping) else None
        if not isinstance(metadata, Mapping):
            raise InvalidFormatError("invalid format for snapshot metadata")
        version = metadata.get("version")
        if not isinstance(version, (int, float)) or isinstance(version, bool):
            raise InvalidFormatError("invalid format for version")
        timestamp = metadata.get("timestamp")
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            raise InvalidFormatError("invalid format for timestamp")
        comments = metadata.get("comments")

        versions.append(
            FlowVersion(
                version=int(version),
                # Registry timestamps are epoch milliseconds
                timestamp=datetime.fromtimestamp(int(timestamp) // 1000, tz=timezone.utc),
                comments=comments if isinstance(comments, str) else "",
            )
        )

    versions.sort(key=lambda v: v.version, reverse=True)
    return versions


# ── Update requests ──────────────────────────────────────────────────────


class UpdateRequest:
    """An asynchronous version change, polled until NiFi reports it complete.

    Use as a context manager so the request is deleted on the server even
    when waiting fails.
    """

    def __init__(
        self,
        transport: Transport,
        path: str,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
    ):
        self.transport = transport
        self.path = path
        self.poll_interval = poll_interval
        self.timeout = timeout

    def wait(self) -> dict[str, Any]:
        """Poll the request; returns its final state."""
        deadline = time.monotonic() + self.timeout
        while True:
            request = self._request(self.transport.get(self.path))
            complete = request.get("complete")
            # Anything but an explicit False ends polling
            if complete is not False:
                break
            if time.monotonic() >= deadline:
                raise TransportError(
                    f"update request did not complete within {self.timeout}s"
                ).with_context(url=self.path)
            logger.debug(
                "update_request_pending",
                path=self.path,
                percent=request.get("percentCompleted"),
                state=request.get("state"),
            )
            time.sleep(self.poll_interval)

        if request.get("failureReason"):
            logger.warning("update_request_failed", path=self.path, reason=request["failureReason"])
        return request

    def close(self) -> None:
        self.transport.delete(self.path)

    def __enter__(self) -> UpdateRequest:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @staticmethod
    def _request(body: str) -> dict[str, Any]:
        request = _decode(body)
        request = request.get("request") if isinstance(request, Mapping) else None
        if not isinstance(request, dict):
            raise MissingKeyError("request", "update request not found")
        return request


# ── Operations ───────────────────────────────────────────────────────────


def version_control_info(
    transport: Transport, group_id: str
) -> tuple[VersionControlInfo, Revision]:
    """Registry coordinates and revision of a versioned process group."""
    data = _decode(transport.get(f"/versions/process-groups/{group_id}"))
    try:
        return parse_version_control_info(data), parse_revision(data)
    except MissingKeyError as e:
        e.with_context(component_id=group_id)
        raise


def flow_versions(transport: Transport, info: VersionControlInfo) -> list[FlowVersion]:
    """Every version of the group's flow stored in the registry."""
    data = _decode(
        transport.get(
            f"/flow/registries/{info.registry_id}/buckets/{info.bucket_id}"
            f"/flows/{info.flow_id}/versions"
        )
    )
    return parse_flow_versions(data)


def set_version(
    transport: Transport,
    info: VersionControlInfo,
    revision: Revision,
    version: int,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> dict[str, Any] | None:
    """Move a group to another registry version and wait for the change.

    Returns the completed update request, or ``None`` when the group already
    runs ``version``.
    """
    if version == info.version:
        logger.info("version_unchanged", group_id=info.group_id, version=version)
        return None

    body = {
        "processGroupRevision": revision.to_dict(),
        "versionControlInformation": replace(info, version=version).to_dict(),
        "disconnectedNodeAcknowledged": False,
    }
    data = _decode(
        transport.post(f"/versions/update-requests/process-groups/{info.group_id}", body)
    )
    request = data.get("request") if isinstance(data, Mapping) else None
    uri = request.get("uri") if isinstance(request, Mapping) else None
    if not isinstance(uri, str):
        raise MissingKeyError("uri", "invalid uri from update request").with_context(
            component_id=info.group_id
        )

    with UpdateRequest(
        transport, api_path(uri), poll_interval=poll_interval, timeout=timeout
    ) as update:
        result = update.wait()
    logger.info(
        "group_version_changed", group_id=info.group_id, previous=info.version, version=version
    )
    return result


__all__ = [
    "Revision",
    "VersionControlInfo",
    "FlowVersion",
    "UpdateRequest",
    "version_control_info",
    "flow_versions",
    "set_version",
    "parse_revision",
    "parse_version_control_info",
    "parse_flow_versions",
]
