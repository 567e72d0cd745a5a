"""Ready-made component predicates for ``all_with`` and ``tree``.

Examples:
    >>> keep = all_of(name_matches("Put*"), has_attribute("runStatus", "Running"))
    >>> client.all_with(["root"], ComponentKind.PROCESSOR, True, keep)
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase
from typing import Any

from nifispine.flow.component import Component, ComponentFilter

_ANY = object()


def name_matches(pattern: str) -> ComponentFilter:
    """Shell-style, case-sensitive match on the component name."""

    def _matches(component: Component) -> bool:
        return fnmatchcase(component.name, pattern)

    return _matches


def id_in(ids: Iterable[str]) -> ComponentFilter:
    wanted = frozenset(ids)

    def _matches(component: Component) -> bool:
        return component.id in wanted

    return _matches


def has_attribute(key: str, value: Any = _ANY) -> ComponentFilter:
    """Raw attribute present, and equal to ``value`` when one is given."""

    def _matches(component: Component) -> bool:
        if key not in component.attributes:
            return False
        return value is _ANY or component.attributes[key] == value

    return _matches


def all_of(*predicates: ComponentFilter) -> ComponentFilter:
    def _matches(component: Component) -> bool:
        return all(predicate(component) for predicate in predicates)

    return _matches


__all__ = ["name_matches", "id_in", "has_attribute", "all_of"]
