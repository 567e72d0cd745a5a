"""Depth and cycle protection for recursive snapshot descent."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from nifispine.core.errors import InvalidFormatError

MAX_DEPTH = 512


class DescentGuard:
    """Tracks the nodes on the current descent path.

    Decoded JSON is always a finite tree, but hand-built mappings may share or
    contain themselves; both the nesting depth and re-entry of a node that is
    already on the path are rejected with ``InvalidFormatError``.
    """

    def __init__(self, max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth
        self._active: set[int] = set()

    @property
    def depth(self) -> int:
        return len(self._active)

    @contextmanager
    def enter(self, node: Any) -> Iterator[None]:
        marker = id(node)
        if marker in self._active:
            raise InvalidFormatError("Status document contains a cycle").with_context(
                depth=self.depth
            )
        if self.depth >= self.max_depth:
            raise InvalidFormatError(
                f"Status document nests deeper than {self.max_depth} levels"
            ).with_context(depth=self.depth)

        self._active.add(marker)
        try:
            yield
        finally:
            self._active.discard(marker)


__all__ = ["DescentGuard", "MAX_DEPTH"]
