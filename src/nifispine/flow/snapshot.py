"""
Access to the snapshot envelopes of a process-group status document.

A status response looks like::

    {"processGroupStatus": {
        "aggregateSnapshot": {
            "id": "...", "name": "...",
            "processorStatusSnapshots": [
                {"id": "...", "processorStatusSnapshot": {"id": "...", "name": "..."}}
            ],
            "processGroupStatusSnapshots": [
                {"id": "...", "processGroupStatusSnapshot": {... same shape ...}}
            ]
        }
    }}

Keys ending in ``StatusSnapshots`` hold arrays of wrappers; each wrapper holds
one key ending in ``StatusSnapshot`` whose value is the node itself.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from nifispine.core.errors import InvalidFormatError

SNAPSHOTS_SUFFIX = "StatusSnapshots"
SNAPSHOT_SUFFIX = "StatusSnapshot"
ROOT_SNAPSHOTS_KEY = "processGroupStatusSnapshots"


def kind_tag_for_key(raw_key: str) -> str:
    """``remoteProcessGroupStatusSnapshots`` → ``remoteprocessgroup``."""
    return raw_key.replace(SNAPSHOTS_SUFFIX, "").lower()


def unwrap_snapshot(node: Any) -> Mapping[str, Any] | None:
    """Return the payload of one ``*StatusSnapshots`` array element.

    The first key ending in ``StatusSnapshot`` (document order) wins.

    Returns:
        The inner map, or ``None`` when the element carries no snapshot key;
        callers skip such elements.

    Raises:
        InvalidFormatError: if ``node`` or the matched value is not an object
    """
    if not isinstance(node, Mapping):
        raise InvalidFormatError(
            f"Snapshot entry must be an object, got {type(node).__name__}"
        )

    for key, value in node.items():
        if isinstance(key, str) and key.endswith(SNAPSHOT_SUFFIX):
            if not isinstance(value, Mapping):
                raise InvalidFormatError(
                    f"Snapshot payload must be an object, got {type(value).__name__}"
                ).with_context(key=key)
            return value

    return None


def iter_snapshot_arrays(node: Mapping[str, Any]) -> Iterator[tuple[str, list[Any]]]:
    """Yield ``(key, array)`` for every ``*StatusSnapshots`` key, sorted by key.

    Raises:
        InvalidFormatError: if a matching key does not hold an array
    """
    for key in sorted(k for k in node if isinstance(k, str) and k.endswith(SNAPSHOTS_SUFFIX)):
        value = node[key]
        if not isinstance(value, list):
            raise InvalidFormatError(
                f"{key} must be an array, got {type(value).__name__}"
            ).with_context(key=key)
        yield key, value


def aggregate_snapshot(document: Any) -> Mapping[str, Any]:
    """Extract ``processGroupStatus.aggregateSnapshot`` from a status response.

    Raises:
        InvalidFormatError: if either level is missing or not an object
    """
    current = document
    for key in ("processGroupStatus", "aggregateSnapshot"):
        if not isinstance(current, Mapping):
            raise InvalidFormatError("Status response is not an object").with_context(key=key)
        if key not in current:
            raise InvalidFormatError(f"Status response lacks {key}").with_context(key=key)
        current = current[key]

    if not isinstance(current, Mapping):
        raise InvalidFormatError("aggregateSnapshot is not an object").with_context(
            key="aggregateSnapshot"
        )
    return current


def as_aggregate_snapshot(document: Any) -> Mapping[str, Any]:
    """Accept either a whole status response or its aggregate snapshot."""
    if isinstance(document, Mapping) and "processGroupStatus" not in document:
        return document
    return aggregate_snapshot(document)


__all__ = [
    "SNAPSHOTS_SUFFIX",
    "SNAPSHOT_SUFFIX",
    "ROOT_SNAPSHOTS_KEY",
    "kind_tag_for_key",
    "unwrap_snapshot",
    "iter_snapshot_arrays",
    "aggregate_snapshot",
    "as_aggregate_snapshot",
]
