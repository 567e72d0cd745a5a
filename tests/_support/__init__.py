"""
Test support utilities for nifi-spine tests.

Helpers that don't fit as pytest fixtures but are used across test files.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from nifispine.core.errors import ApiError


def write_temp_json(temp_dir: Path, name: str, content: Any) -> Path:
    """
    Write a value to a temporary JSON file.

    Args:
        temp_dir: Temporary directory path
        name: Filename (without extension)
        content: Value to serialize

    Returns:
        Path to created file
    """
    file_path = temp_dir / f"{name}.json"
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(content, f)
    return file_path


def names_of(components) -> list[str]:
    """Names in order, for compact ordering assertions."""
    return [component.name for component in components]


class FakeTransport:
    """Serves canned JSON bodies keyed by ``(method, path)`` and records calls.

    A route holding an iterator answers with its next item on each call, for
    endpoints that are polled until a request completes.
    """

    def __init__(self, routes: dict[tuple[str, str], Any]):
        self.routes = routes
        self.calls: list[tuple[str, str, Any, Any]] = []
        self.closed = False

    def _serve(self, method: str, path: str, body: Any = None, params: Any = None) -> str:
        self.calls.append((method, path, body, params))
        try:
            response = self.routes[(method, path)]
        except KeyError:
            raise ApiError(f"404 Not Found: {path}", http_status=404) from None
        if isinstance(response, Iterator):
            response = next(response)
        return response if isinstance(response, str) else json.dumps(response)

    def get(self, path, params=None):
        return self._serve("GET", path, params=params)

    def post(self, path, body=None, params=None):
        return self._serve("POST", path, body, params)

    def put(self, path, body=None, params=None):
        return self._serve("PUT", path, body, params)

    def delete(self, path, params=None):
        return self._serve("DELETE", path, params=params)

    def close(self):
        self.closed = True
