"""
Shared pytest fixtures and configuration for nifi-spine tests.

This module provides:
- Sample status documents (aggregate snapshot and full response)
- Settings isolation (no NIFI_* leakage from the developer's shell)
- Logging context cleanup

Builders for custom documents live in ``tests._support.status_documents``.
"""

from pathlib import Path
from typing import Any

import pytest

from nifispine.core.logging import clear_context, configure_logging
from nifispine.core.settings import get_settings
from tests._support.status_documents import sample_flow, status_response


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Drop NIFI_* variables and any .env file so every test sees defaults."""
    import os

    for key in list(os.environ):
        if key.startswith("NIFI_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings(_force_reload=True)
    yield
    get_settings(_force_reload=True)


@pytest.fixture(autouse=True)
def clean_log_context():
    """Quiet logging bound to the current stderr, with no leftover context."""
    configure_logging(level="WARNING", json_format=True)
    clear_context()
    yield
    clear_context()


# =============================================================================
# Status Documents
# =============================================================================


@pytest.fixture
def flow() -> dict[str, Any]:
    """Aggregate snapshot of the three-level sample flow."""
    return sample_flow()


@pytest.fixture
def flow_response(flow: dict[str, Any]) -> dict[str, Any]:
    """Full status response wrapping ``flow``."""
    return status_response(flow)
