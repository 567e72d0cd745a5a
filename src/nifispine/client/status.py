"""
Status client: the REST calls that feed the flow extraction engine.

``StatusClient`` fetches ``/flow/process-groups/<id>/status`` for each
requested group and hands the aggregate snapshot to the flat traversal or the
ownership-tree builder. It also carries the small single-object operations
(group info, run state, cluster summary) and the asynchronous ones keyed by
component id: registry version changes and queue listings.

Examples:
    >>> with StatusClient(HttpxTransport("https://nifi:8443", token=token)) as client:
    ...     processors = client.all(["root"], ComponentKind.PROCESSOR)
    ...     client.set_state("root", RunningState.STOPPED)
    'STOPPED'

Tags:
    rest-client, nifi, status, nifi-spine
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from nifispine.client import versions as registry
from nifispine.client.queues import FlowFile, list_queue
from nifispine.client.transport import Transport
from nifispine.client.versions import FlowVersion, Revision, VersionControlInfo
from nifispine.core.errors import InvalidFormatError, MissingKeyError
from nifispine.core.logging import LogContext, get_logger
from nifispine.flow.component import Component, ComponentFilter
from nifispine.flow.flatten import flatten
from nifispine.flow.kinds import ALL_KINDS, ComponentKind
from nifispine.flow.snapshot import ROOT_SNAPSHOTS_KEY, aggregate_snapshot
from nifispine.flow.tree import OwnershipTree, build_tree

logger = get_logger(__name__)


class RunningState(str, Enum):
    """Target states accepted by ``set_state``."""

    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    UNKNOWN = "UNKNOWN"


class StatusClient:
    """Flow status operations over a ``Transport``.

    Args:
        transport: verb-level REST access
        root_id: id of the flow's root group; looked up lazily when omitted
    """

    def __init__(self, transport: Transport, root_id: str | None = None):
        self.transport = transport
        self._root: Component | None = None
        if root_id is not None:
            self._root = Component(
                id=root_id,
                name="root",
                path="",
                kind=ComponentKind.PROCESS_GROUP,
                kind_label=ComponentKind.PROCESS_GROUP.label,
            )

    # ── Root group ───────────────────────────────────────────────────────

    def root(self) -> Component:
        """The flow's root process group, fetched once and cached."""
        if self._root is not None:
            return self._root

        data = self._get_json("/process-groups/root")
        component = data.get("component") if isinstance(data, Mapping) else None
        if not isinstance(component, Mapping):
            raise MissingKeyError("component", "unexpected data type")

        root_id = component.get("id")
        if not isinstance(root_id, str):
            raise MissingKeyError("id", "root id not found")
        name = component.get("name")
        if not isinstance(name, str):
            raise MissingKeyError("name", "root name not found")

        self._root = Component(
            id=root_id,
            name=name,
            path="",
            kind=ComponentKind.PROCESS_GROUP,
            kind_label=ComponentKind.PROCESS_GROUP.label,
            attributes=component,
        )
        logger.debug("root_group_resolved", root_id=root_id, name=name)
        return self._root

    # ── Status traversal ─────────────────────────────────────────────────

    def status(self, group_id: str, recursive: bool = True) -> Mapping[str, Any]:
        """Aggregate snapshot of one process group."""
        data = self._get_json(
            f"/flow/process-groups/{group_id}/status",
            {"recursive": "true" if recursive else "false"},
        )
        try:
            return aggregate_snapshot(data)
        except InvalidFormatError as e:
            e.with_context(component_id=group_id)
            raise

    def all(
        self,
        ids: Iterable[str],
        kinds: ComponentKind = ALL_KINDS,
        recursive: bool = True,
    ) -> list[Component]:
        """Flat component list for every id, concatenated in request order."""
        return self.all_with(ids, kinds, recursive, None)

    def all_with(
        self,
        ids: Iterable[str],
        kinds: ComponentKind = ALL_KINDS,
        recursive: bool = True,
        predicate: ComponentFilter | None = None,
    ) -> list[Component]:
        """Like ``all`` with an extra acceptance predicate."""
        root_id = self.root().id
        result: list[Component] = []
        for group_id in ids:
            with LogContext(group_id=group_id):
                snapshot = self.status(group_id, recursive)
                components = flatten(
                    0,
                    ROOT_SNAPSHOTS_KEY,
                    "",
                    snapshot,
                    kinds,
                    recursive,
                    predicate,
                    root_id=root_id,
                )
                logger.debug("group_flattened", components=len(components))
            result.extend(components)
        return result

    def tree(
        self,
        ids: Iterable[str],
        kinds: ComponentKind = ALL_KINDS,
        predicate: ComponentFilter | None = None,
    ) -> OwnershipTree:
        """Ownership tree of every id, merged into one."""
        combined = OwnershipTree()
        for group_id in ids:
            with LogContext(group_id=group_id):
                snapshot = self.status(group_id, recursive=True)
                tree = OwnershipTree()
                build_tree(ROOT_SNAPSHOTS_KEY, tree, snapshot, kinds, predicate)
                logger.debug("group_tree_built", components=len(tree))
            combined.merge(tree)
        return combined

    # ── Single-object operations ─────────────────────────────────────────

    def get_info(self, group_id: str) -> Any:
        """Raw process-group entity."""
        return self._get_json(f"/process-groups/{group_id}")

    def set_state(self, group_id: str, state: RunningState | str) -> str:
        """Schedule or unschedule every component of a group; returns the new state."""
        state = RunningState(state)
        body = {
            "id": group_id,
            "state": state.value,
            "disconnectedNodeAcknowledged": False,
        }
        data = self._decode(self.transport.put(f"/flow/process-groups/{group_id}", body))
        if not isinstance(data, Mapping):
            raise MissingKeyError("state", "unexpected response format")
        result = data.get("state")
        if not isinstance(result, str):
            raise MissingKeyError("state", "result state not found")
        logger.info("group_state_changed", group_id=group_id, state=result)
        return result

    def cluster(self) -> Any:
        """Cluster summary as returned by the controller."""
        return self._get_json("/controller/cluster")

    # ── Version control ──────────────────────────────────────────────────

    def version_control_info(self, group_id: str) -> tuple[VersionControlInfo, Revision]:
        """Registry coordinates and revision of a versioned group."""
        return registry.version_control_info(self.transport, group_id)

    def versions(self, group_id: str) -> list[FlowVersion]:
        """Registry versions of a group's flow, newest first."""
        info, _ = self.version_control_info(group_id)
        return registry.flow_versions(self.transport, info)

    def set_version(self, group_id: str, version: int, **polling: float) -> dict[str, Any] | None:
        """Move a group to ``version``; ``None`` when it already runs it."""
        info, revision = self.version_control_info(group_id)
        with LogContext(group_id=group_id):
            return registry.set_version(self.transport, info, revision, version, **polling)

    # ── Queues ───────────────────────────────────────────────────────────

    def queue(self, connection_id: str, **polling: float) -> list[FlowFile]:
        """Flow files waiting in a connection's queue."""
        return list_queue(self.transport, connection_id, **polling)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> StatusClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # ── Internals ────────────────────────────────────────────────────────

    def _get_json(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        return self._decode(self.transport.get(path, params))

    @staticmethod
    def _decode(body: str) -> Any:
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise InvalidFormatError(f"Response is not valid JSON: {e}", cause=e) from e


__all__ = ["StatusClient", "RunningState"]
