"""Shared fixtures for xptracker tests."""

import os
from datetime import date

import pytest

from xptracker.ledger import Ledger

FIXED_DAY = date(2025, 9, 4)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Strip XPTRACKER_* env vars for test isolation."""
    for key in list(os.environ):
        if key.startswith("XPTRACKER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def log_path(tmp_path):
    """Path to a log file that does not exist yet."""
    return tmp_path / "xp_log.txt"


@pytest.fixture
def ledger():
    """Ledger for 'Alice' with the default categories and a fixed date."""
    return Ledger("Alice", today=lambda: FIXED_DAY)


@pytest.fixture
def unit_ledger():
    """Ledger whose single category earns 1 XP per minute."""
    return Ledger("Alice", multipliers={"STUDY": 1}, today=lambda: FIXED_DAY)
