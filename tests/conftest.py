"""
Pytest configuration for SubSlayer tests

Provides fixtures shared across unit and integration tests
"""

from __future__ import annotations

import os
import tempfile
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

# Importing subslayer.api.app initializes the schema at import time; keep that
# out of the package directory.
os.environ.setdefault(
    "SUBSLAYER_DB_PATH", str(Path(tempfile.mkdtemp(prefix="subslayer-tests-")) / "app.db")
)

from subslayer.extraction.dates import DateNormalizer  # noqa: E402
from subslayer.infrastructure.database import init_database, reset_pool  # noqa: E402
from subslayer.observability.telemetry import reset_metrics  # noqa: E402

REFERENCE_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
REFERENCE_DATE = date(2025, 6, 1)


@pytest.fixture(autouse=True)
def clean_metrics():
    """Counters are process-global; start each test from zero."""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def normalizer():
    """Normalizer pinned to 2025-06-01 UTC."""
    return DateNormalizer(tz="UTC", clock=lambda: REFERENCE_NOW)


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database for one test."""
    db_path = tmp_path / "subslayer.db"
    monkeypatch.setenv("SUBSLAYER_DB_PATH", str(db_path))
    reset_pool()
    init_database()
    yield db_path
    reset_pool()
