"""Pytest configuration for test isolation.

The application reads API keys and the settings-file location from the
environment, and the ``db`` client keeps one process-wide engine. Left alone,
a developer's real keys or an engine bound by an earlier test would leak into
later tests (a stray key turns "missing key" assertions into live HTTP calls).

The autouse fixtures below point the settings file at the test's temporary
directory, clear every credential variable, and dispose the shared engine
after each test.
"""

# ruff: noqa: E402, I001
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Make the workspace packages importable without an install.
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs/db/src"), str(_ROOT)]
    if p not in sys.path
]

from db.client import dispose_engine

from tests.helpers.db import bootstrap_sqlite_db

_CREDENTIAL_ENV = (
    "WANGKU_TERMAI_API_KEY",
    "WANGKU_GEMINI_API_KEY",
    "GEMINI_API_KEY",
    "WANGKU_TERMAI_BASE_URL",
    "WANGKU_GEMINI_BASE_URL",
    "WANGKU_GEMINI_MODEL",
    "WANGKU_REQUEST_TIMEOUT",
    "WANGKU_CONTEXT_LIMIT",
    "WANGKU_USER_ID",
    "DATABASE_URL",
)


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Force a per-test settings file and an empty credential environment."""

    for name in _CREDENTIAL_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WANGKU_SETTINGS_FILE", os.fspath(tmp_path / "settings.json"))


@pytest.fixture(autouse=True)
def _fresh_engine():
    dispose_engine()
    yield
    dispose_engine()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """File-backed SQLite database with every table created."""

    return bootstrap_sqlite_db(tmp_path / "wangku-test.db")
