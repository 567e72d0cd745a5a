"""Flow status extraction -- classify, flatten, build and render.

Architecture::

    kinds.py       ComponentKind flag set, presets, tag/title lookups
    component.py   Component value object + classify()
    snapshot.py    *StatusSnapshots / *StatusSnapshot envelope access
    guard.py       Depth and cycle guard shared by both walks
    flatten.py     Flat, path-annotated, kind-sorted component list
    tree.py        Ownership tree keyed by component id
    render.py      Box-drawing rendering of an ownership tree
    filters.py     Ready-made predicates
"""

from nifispine.flow.component import Component, ComponentFilter, classify
from nifispine.flow.filters import all_of, has_attribute, id_in, name_matches
from nifispine.flow.flatten import flatten, flatten_status
from nifispine.flow.kinds import (
    ALL_EXCEPT_CONNECTIONS,
    ALL_KINDS,
    ComponentKind,
    kind_from_label,
    kind_from_tag,
    parse_kinds,
)
from nifispine.flow.render import render, render_text
from nifispine.flow.snapshot import aggregate_snapshot, unwrap_snapshot
from nifispine.flow.tree import (
    OwnershipTree,
    TreeNode,
    build_status_tree,
    build_tree,
    merge_trees,
)

__all__ = [
    "ALL_EXCEPT_CONNECTIONS",
    "ALL_KINDS",
    "Component",
    "ComponentFilter",
    "ComponentKind",
    "OwnershipTree",
    "TreeNode",
    "aggregate_snapshot",
    "all_of",
    "build_status_tree",
    "build_tree",
    "classify",
    "flatten",
    "flatten_status",
    "has_attribute",
    "id_in",
    "kind_from_label",
    "kind_from_tag",
    "merge_trees",
    "name_matches",
    "parse_kinds",
    "render",
    "render_text",
    "unwrap_snapshot",
]
