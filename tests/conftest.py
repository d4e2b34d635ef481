from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from tests._fixtures.docs_builder import DocsBuilder

FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


@pytest.fixture
def docs_builder(tmp_path: Path) -> DocsBuilder:
    """Provide a reusable documentation project rooted at the pytest tmp_path."""
    return DocsBuilder(tmp_path)


@pytest.fixture
def fixed_clock():
    """Clock returning a constant moment, for deterministic headers and timestamps."""
    return lambda: FIXED_NOW
