"""
Flat traversal of a process-group status snapshot.

Walks the snapshot tree depth-first, classifies every node, gives it the
slash-separated path of its container, keeps the nodes accepted by the kind
mask and the optional predicate, and returns them sorted by kind.

Manifesto:
    - **Schema-light:** any key ending in ``StatusSnapshots`` is descended,
      whatever kind it names
    - **Deterministic:** keys are visited in sorted order and every level is
      stably sorted by (kind, name)
    - **All or nothing:** a structural surprise aborts the walk with
      ``InvalidFormatError``; no partial list is returned

Architecture:
    ::

        flatten(level=0, "processGroupStatusSnapshots", "", aggregateSnapshot)
          │ classify → Component(path="")           child prefix "/NiFi Flow"
          ├─ processorStatusSnapshots[*]  → flatten(level=1, ..., "/NiFi Flow")
          ├─ connectionStatusSnapshots[*] → flatten(level=1, ...)
          └─ processGroupStatusSnapshots[*]
               └─ flatten(level=1, ..., "/NiFi Flow")
                    └─ (descends further only when recursive)

    When the traversed group is not the flow's root group, the child prefix
    starts with ``.`` (``./Ingest/...``).

Examples:
    >>> from nifispine.flow.kinds import ComponentKind
    >>> components = flatten_status(document, root_id=root_id,
    ...                             kinds=ComponentKind.PROCESSOR)
    >>> [(c.path, c.name) for c in components]
    [('/NiFi Flow', 'GenerateFlowFile'), ('/NiFi Flow/Ingest', 'PutFile')]

Tags:
    traversal, recursion, json, flat-list, nifi-spine
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from nifispine.core.logging import get_logger
from nifispine.flow.component import Component, ComponentFilter, classify
from nifispine.flow.guard import DescentGuard
from nifispine.flow.kinds import ALL_KINDS, ComponentKind
from nifispine.flow.snapshot import (
    ROOT_SNAPSHOTS_KEY,
    as_aggregate_snapshot,
    iter_snapshot_arrays,
    kind_tag_for_key,
    unwrap_snapshot,
)

logger = get_logger(__name__)

ROOT_MARKER = "."


def flatten(
    level: int,
    raw_key: str,
    path_prefix: str,
    node: Mapping[str, Any],
    kind_mask: ComponentKind = ALL_KINDS,
    recursive: bool = True,
    predicate: ComponentFilter | None = None,
    *,
    root_id: str | None = None,
    guard: DescentGuard | None = None,
) -> list[Component]:
    """Collect the accepted components of ``node`` and its descendants.

    Args:
        level: depth of ``node``; 0 for the requested group itself
        raw_key: the ``*StatusSnapshots`` key ``node`` was found under
        path_prefix: path of the container of ``node``
        node: unwrapped snapshot map
        kind_mask: kinds to keep
        recursive: when False only the requested group and its direct
            children are visited
        predicate: optional extra acceptance test
        root_id: id of the flow's root group; a top-level node with another
            id gets the ``.`` marker in its children's paths. ``None``
            disables the marker.
        guard: shared depth/cycle guard, created on the first call

    Raises:
        InvalidFormatError: on a malformed snapshot envelope
    """
    result: list[Component] = []
    if not node:
        return result

    if guard is None:
        guard = DescentGuard()

    with guard.enter(node):
        component = classify(kind_tag_for_key(raw_key), path_prefix, node)

        path = path_prefix
        if not path and root_id is not None and component.id != root_id:
            path = ROOT_MARKER
        path = f"{path}/{component.name}"

        if (component.kind & kind_mask) and (predicate is None or predicate(component)):
            result.append(component)

        # Non-recursive walks stop below the requested group's direct children
        if recursive or level == 0:
            for key, entries in iter_snapshot_arrays(node):
                for entry in entries:
                    snapshot = unwrap_snapshot(entry)
                    if snapshot is None:
                        continue
                    result.extend(
                        flatten(
                            level + 1,
                            key,
                            path,
                            snapshot,
                            kind_mask,
                            recursive,
                            predicate,
                            root_id=root_id,
                            guard=guard,
                        )
                    )

    result.sort(key=Component.sort_key)
    return result


def flatten_status(
    document: Mapping[str, Any],
    *,
    root_id: str | None = None,
    kinds: ComponentKind = ALL_KINDS,
    recursive: bool = True,
    predicate: ComponentFilter | None = None,
) -> list[Component]:
    """Flatten a decoded status response.

    ``document`` may be the whole response or its ``aggregateSnapshot``
    already. Without ``root_id`` the traversed group counts as the root.
    """
    snapshot = as_aggregate_snapshot(document)
    if root_id is None:
        root_id = snapshot.get("id") if isinstance(snapshot.get("id"), str) else ""

    components = flatten(
        0, ROOT_SNAPSHOTS_KEY, "", snapshot, kinds, recursive, predicate, root_id=root_id
    )
    logger.debug(
        "status_flattened",
        group_id=snapshot.get("id"),
        recursive=recursive,
        components=len(components),
    )
    return components


__all__ = ["flatten", "flatten_status", "ROOT_MARKER"]
