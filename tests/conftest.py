"""Shared test fixtures for the vault curator."""

import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import structlog

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tidy.models import TidySettings  # noqa: E402
from undo import UndoStore  # noqa: E402
from vault import VaultStorage  # noqa: E402

PARA_FOLDERS = ("inbox", "Projects", "Areas", "Resources", "Archives", "Tasks")

# 2026-01-15 12:00 UTC
T0 = 1768478400.0
DAY = 24 * 60 * 60


class FakeClock:
    """Settable clock for undo retention tests."""

    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, days: float = 0, seconds: float = 0):
        self.now += days * DAY + seconds


@pytest.fixture
def settings():
    return TidySettings(
        canonical_folders=PARA_FOLDERS,
        system_paths=("logs/", "ix:"),
    )


@pytest.fixture
def vault(tmp_path):
    return VaultStorage(tmp_path / "vault")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def undo_store(tmp_path, clock):
    return UndoStore(tmp_path / "state" / "filing-history.json", clock=clock)


@pytest.fixture
def provider():
    """LLM provider stub; set provider.generate.return_value per test."""
    return MagicMock()


@pytest.fixture
def make_notes(vault):
    """Create several notes at once: make_notes({path: content})."""

    def _make(notes: dict[str, str]):
        for path, content in notes.items():
            vault.write_note(path, content)
        return vault

    return _make


@pytest.fixture(autouse=True)
def restore_logging():
    """CLI runs call setup_logging(); put the root logger back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
