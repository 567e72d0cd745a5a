"""
Component descriptors and the classifier that builds them.

A ``Component`` is created exactly once per visited snapshot node and never
changes afterwards. Classification never fails: an ``id`` that is missing or
not a string becomes ``""``, a missing ``name`` becomes ``"?"`` and a name
that is present but not a string becomes ``"??"``.

Examples:
    >>> c = classify("processor", "/root", {"id": "a1", "name": "Fetch"})
    >>> str(c)
    'Fetch (Processor)'
    >>> classify("funnel", "", {}).kind_label
    'unknown'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from nifispine.flow.kinds import ComponentKind, kind_from_tag

MISSING_NAME = "?"
INVALID_NAME = "??"


@dataclass(frozen=True, slots=True)
class Component:
    """One identified element of the flow.

    ``path`` is the location of the component's container; the component's
    own name is appended only for its descendants. ``attributes`` is the raw
    snapshot map, kept by reference and excluded from equality.
    """

    id: str
    name: str
    path: str
    kind: ComponentKind
    kind_label: str
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __str__(self) -> str:
        if not self.name:
            return f"({self.kind_label})"
        return f"{self.name} ({self.kind_label})"

    def sort_key(self) -> tuple[int, str]:
        """Ordering used for flat lists: kind first, then name."""
        return (int(self.kind), self.name)

    def to_dict(self) -> dict[str, str]:
        """Serialisable summary, without the raw attributes."""
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "type": self.kind_label,
        }


ComponentFilter = Callable[[Component], bool]


def classify(kind_tag: str, path: str, attrs: Mapping[str, Any]) -> Component:
    """Build the descriptor for one snapshot node.

    Args:
        kind_tag: lower-case tag such as ``processor``; unknown tags classify
            as ``ComponentKind.UNKNOWN``
        path: container location of the node
        attrs: raw snapshot attributes

    Returns:
        A new ``Component``; never raises on malformed attribute values.
    """
    component_id = attrs.get("id")
    if not isinstance(component_id, str):
        component_id = ""

    if "name" not in attrs:
        name = MISSING_NAME
    elif isinstance(attrs["name"], str):
        name = attrs["name"]
    else:
        name = INVALID_NAME

    kind = kind_from_tag(kind_tag)
    return Component(
        id=component_id,
        name=name,
        path=path,
        kind=kind,
        kind_label=kind.label,
        attributes=attrs,
    )


__all__ = ["Component", "ComponentFilter", "classify", "MISSING_NAME", "INVALID_NAME"]
