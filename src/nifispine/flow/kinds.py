"""
Component kinds of a NiFi flow.

``ComponentKind`` is an ``IntFlag``: every kind is a distinct power of two so
that a caller can ask for any subset with ``|``, and plain integer comparison
gives the sort order (process groups first, unknown last).

Architecture:
    ::

        ┌────────────────────┬─────┬────────────────────┬──────────────────────┐
        │ ComponentKind      │ bit │ tag (key prefix)   │ title                │
        ├────────────────────┼─────┼────────────────────┼──────────────────────┤
        │ PROCESS_GROUP      │   1 │ processgroup       │ Process Group        │
        │ REMOTE_PROCESS_GRP │   2 │ remoteprocessgroup │ Remote Process Group │
        │ PROCESSOR          │   4 │ processor          │ Processor            │
        │ CONNECTION         │   8 │ connection         │ Connection           │
        │ INPUT_PORT         │  16 │ inputport          │ Input Port           │
        │ OUTPUT_PORT        │  32 │ outputport         │ Output Port          │
        │ UNKNOWN            │  64 │ (anything else)    │ unknown              │
        └────────────────────┴─────┴────────────────────┴──────────────────────┘

        ALL_KINDS               = every bit above
        ALL_EXCEPT_CONNECTIONS  = ALL_KINDS without CONNECTION

Examples:
    >>> kind_from_tag("inputport")
    <ComponentKind.INPUT_PORT: 16>
    >>> ComponentKind.PROCESSOR.label
    'Processor'
    >>> parse_kinds("processor, Input Port") == ComponentKind.PROCESSOR | ComponentKind.INPUT_PORT
    True

Tags:
    enum, bitmask, classification, nifi-spine
"""

from __future__ import annotations

from enum import IntFlag

UNKNOWN_LABEL = "unknown"


class ComponentKind(IntFlag):
    """Kind of a flow component, usable as a filter mask."""

    PROCESS_GROUP = 1
    REMOTE_PROCESS_GROUP = 2
    PROCESSOR = 4
    CONNECTION = 8
    INPUT_PORT = 16
    OUTPUT_PORT = 32
    UNKNOWN = 64

    @property
    def label(self) -> str:
        """Human-readable title; ``"unknown"`` for anything not a single known kind."""
        return _TITLES.get(self, UNKNOWN_LABEL)

    @property
    def tag(self) -> str | None:
        """Lower-case tag used in status snapshot keys, ``None`` for UNKNOWN."""
        return _TAGS_BY_KIND.get(self)

    def accepts(self, kind: ComponentKind) -> bool:
        """True when ``kind`` shares at least one bit with this mask."""
        return (self & kind) != 0


ALL_KINDS = (
    ComponentKind.PROCESS_GROUP
    | ComponentKind.REMOTE_PROCESS_GROUP
    | ComponentKind.PROCESSOR
    | ComponentKind.CONNECTION
    | ComponentKind.INPUT_PORT
    | ComponentKind.OUTPUT_PORT
    | ComponentKind.UNKNOWN
)

ALL_EXCEPT_CONNECTIONS = ALL_KINDS & ~ComponentKind.CONNECTION

_KINDS_BY_TAG: dict[str, ComponentKind] = {
    "processgroup": ComponentKind.PROCESS_GROUP,
    "remoteprocessgroup": ComponentKind.REMOTE_PROCESS_GROUP,
    "processor": ComponentKind.PROCESSOR,
    "connection": ComponentKind.CONNECTION,
    "inputport": ComponentKind.INPUT_PORT,
    "outputport": ComponentKind.OUTPUT_PORT,
}

_TAGS_BY_KIND = {kind: tag for tag, kind in _KINDS_BY_TAG.items()}

_TITLES: dict[ComponentKind, str] = {
    ComponentKind.PROCESS_GROUP: "Process Group",
    ComponentKind.REMOTE_PROCESS_GROUP: "Remote Process Group",
    ComponentKind.PROCESSOR: "Processor",
    ComponentKind.CONNECTION: "Connection",
    ComponentKind.INPUT_PORT: "Input Port",
    ComponentKind.OUTPUT_PORT: "Output Port",
}

_PRESETS = {
    "all": ALL_KINDS,
    "allexceptconnections": ALL_EXCEPT_CONNECTIONS,
}


def kind_from_tag(tag: str) -> ComponentKind:
    """Map a lower-case snapshot tag to its kind. Matching is case-sensitive."""
    return _KINDS_BY_TAG.get(tag, ComponentKind.UNKNOWN)


def kind_from_label(label: str) -> ComponentKind:
    """Inverse of ``ComponentKind.label``."""
    for kind, title in _TITLES.items():
        if title == label:
            return kind
    return ComponentKind.UNKNOWN


def parse_kinds(text: str) -> ComponentKind:
    """
    Parse a comma-separated list of kinds into a mask.

    Each item may be a tag (``inputport``), a title (``Input Port``), an enum
    name (``INPUT_PORT``) or a preset (``all``, ``all-except-connections``).
    Case, spaces, dashes and underscores are ignored.

    Raises:
        ValueError: on an empty list or an unrecognised item
    """
    mask = ComponentKind(0)
    for item in text.split(","):
        token = item.strip().lower().replace(" ", "").replace("-", "").replace("_", "")
        if not token:
            continue
        if token in _PRESETS:
            mask |= _PRESETS[token]
        elif token in _KINDS_BY_TAG:
            mask |= _KINDS_BY_TAG[token]
        elif token == UNKNOWN_LABEL:
            mask |= ComponentKind.UNKNOWN
        else:
            raise ValueError(f"Unknown component kind: {item.strip()!r}")
    if not mask:
        raise ValueError("No component kind given")
    return mask


__all__ = [
    "ComponentKind",
    "ALL_KINDS",
    "ALL_EXCEPT_CONNECTIONS",
    "UNKNOWN_LABEL",
    "kind_from_tag",
    "kind_from_label",
    "parse_kinds",
]
