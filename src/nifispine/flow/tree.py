"""
Ownership tree of flow components.

Each accepted component owns a subtree holding its accepted descendants.
Entries are keyed by component id rather than by object identity; components
without an id get a unique synthetic key so they never collide.

Architecture:
    ::

        OwnershipTree
          └─ "id-of-root"  → TreeNode(component=NiFi Flow, children=OwnershipTree)
                               ├─ "id-of-proc" → TreeNode(GenerateFlowFile, {})
                               └─ "id-of-pg"   → TreeNode(Ingest, OwnershipTree)
                                                   └─ ...

    A node rejected by the kind mask or predicate is not inserted; its
    accepted descendants are attached to the nearest accepted ancestor.

Examples:
    >>> tree = build_status_tree(document, kinds=ALL_EXCEPT_CONNECTIONS)
    >>> combined = OwnershipTree()
    >>> combined.merge(tree)
    >>> sorted(combined.ids())
    ['...']

Tags:
    tree, ownership, recursion, nifi-spine
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
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

_anonymous = itertools.count(1)


def identity_key(component: Component) -> str:
    """Key of ``component`` inside an ``OwnershipTree``."""
    if component.id:
        return component.id
    return f"~anonymous-{next(_anonymous)}"


@dataclass
class TreeNode:
    component: Component
    children: OwnershipTree = field(default_factory=lambda: OwnershipTree())

    def sort_key(self) -> tuple[int, str, str]:
        return (int(self.component.kind), self.component.name, self.component.id)


class OwnershipTree:
    """Mapping of component identity to the node owning its subtree."""

    def __init__(self) -> None:
        self._entries: dict[str, TreeNode] = {}

    def add(self, component: Component, children: OwnershipTree | None = None) -> OwnershipTree:
        """Insert ``component`` and return its (possibly empty) subtree."""
        node = TreeNode(component, children if children is not None else OwnershipTree())
        self._entries[identity_key(component)] = node
        return node.children

    def merge(self, other: OwnershipTree) -> None:
        """Shallow key union; on collision the entry from ``other`` wins."""
        self._entries.update(other._entries)

    def nodes(self) -> list[TreeNode]:
        """Top-level entries ordered by kind, name, then id."""
        return sorted(self._entries.values(), key=TreeNode.sort_key)

    def get(self, component_id: str) -> TreeNode | None:
        """Top-level entry for ``component_id``."""
        return self._entries.get(component_id)

    def find(self, component_id: str) -> TreeNode | None:
        """Entry for ``component_id`` at any depth."""
        node = self._entries.get(component_id)
        if node is not None:
            return node
        for child in self._entries.values():
            node = child.children.find(component_id)
            if node is not None:
                return node
        return None

    def walk(self) -> Iterator[tuple[int, Component]]:
        """Yield ``(depth, component)`` pairs depth-first in render order."""
        for node in self.nodes():
            yield 0, node.component
            for depth, component in node.children.walk():
                yield depth + 1, component

    def components(self) -> list[Component]:
        return [component for _, component in self.walk()]

    def ids(self) -> set[str]:
        """Ids of every component at any depth (empty ids included)."""
        return {component.id for component in self.components()}

    def to_dict(self) -> list[dict[str, Any]]:
        """Nested, serialisable view for JSON/YAML output."""
        return [
            {**node.component.to_dict(), "children": node.children.to_dict()}
            for node in self.nodes()
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self.nodes())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Component):
            if not item.id:
                # Anonymous entries are keyed by a generated name
                return any(node.component is item for node in self._entries.values())
            item = item.id
        return item in self._entries

    def __repr__(self) -> str:
        return f"OwnershipTree({[str(node.component) for node in self.nodes()]})"


def build_tree(
    raw_key: str,
    parent_tree: OwnershipTree,
    node: Mapping[str, Any],
    kind_mask: ComponentKind = ALL_KINDS,
    predicate: ComponentFilter | None = None,
    *,
    guard: DescentGuard | None = None,
) -> None:
    """Insert the accepted components of ``node`` into ``parent_tree``.

    Always walks the whole subtree. No paths are computed.

    Raises:
        InvalidFormatError: on a malformed snapshot envelope
    """
    if not node:
        return

    if guard is None:
        guard = DescentGuard()

    with guard.enter(node):
        component = classify(kind_tag_for_key(raw_key), "", node)

        target = parent_tree
        if (component.kind & kind_mask) and (predicate is None or predicate(component)):
            target = parent_tree.add(component)

        for key, entries in iter_snapshot_arrays(node):
            for entry in entries:
                snapshot = unwrap_snapshot(entry)
                if snapshot is None:
                    continue
                build_tree(key, target, snapshot, kind_mask, predicate, guard=guard)


def build_status_tree(
    document: Mapping[str, Any],
    *,
    kinds: ComponentKind = ALL_KINDS,
    predicate: ComponentFilter | None = None,
) -> OwnershipTree:
    """Build the ownership tree of a decoded status response."""
    snapshot = as_aggregate_snapshot(document)
    tree = OwnershipTree()
    build_tree(ROOT_SNAPSHOTS_KEY, tree, snapshot, kinds, predicate)
    logger.debug("status_tree_built", group_id=snapshot.get("id"), components=len(tree.components()))
    return tree


def merge_trees(trees: list[OwnershipTree]) -> OwnershipTree:
    """Combine per-root trees into one; later trees win on key collision."""
    combined = OwnershipTree()
    for tree in trees:
        combined.merge(tree)
    return combined


__all__ = [
    "OwnershipTree",
    "TreeNode",
    "build_tree",
    "build_status_tree",
    "identity_key",
    "merge_trees",
]
