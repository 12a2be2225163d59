"""Tests for settings loaded from the environment."""

import logging
import sys
from pathlib import Path

import pytest

from xptracker import config


def test_defaults():
    settings = config.load_settings()
    assert settings.log_file == Path("xp_log.txt")
    assert settings.multipliers == {"STUDY": 5, "CODING": 6, "WORKOUT": 8, "WRITING": 4}
    assert settings.recent_entries == 10
    assert settings.log_level == logging.INFO


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("XPTRACKER_LOG_FILE", str(tmp_path / "other.txt"))
    monkeypatch.setenv("XPTRACKER_LOG_LEVEL", "debug")
    monkeypatch.setenv("XPTRACKER_RECENT_ENTRIES", "25")
    monkeypatch.setenv("XPTRACKER_MULTIPLIERS", "reading=3, coding=7")
    settings = config.load_settings()
    assert settings.log_file == tmp_path / "other.txt"
    assert settings.log_level == logging.DEBUG
    assert settings.recent_entries == 25
    assert settings.multipliers == {"READING": 3, "CODING": 7}


@pytest.mark.parametrize("value", ["0", "500", "lots"])
def test_bad_int_falls_back(monkeypatch, value):
    monkeypatch.setenv("XPTRACKER_RECENT_ENTRIES", value)
    assert config.load_settings().recent_entries == 10


@pytest.mark.parametrize("value", ["STUDY", "STUDY=0", "STUDY=x", ",,", "MY CAT=2"])
def test_bad_multipliers_fall_back(monkeypatch, value):
    monkeypatch.setenv("XPTRACKER_MULTIPLIERS", value)
    assert config.load_settings().multipliers == config.DEFAULT_MULTIPLIERS


def test_bad_log_level_falls_back(monkeypatch):
    monkeypatch.setenv("XPTRACKER_LOG_LEVEL", "loud")
    assert config.load_settings().log_level == logging.INFO


def test_setup_logging_writes_file(tmp_path):
    path = tmp_path / "debug.log"
    logger = config.setup_logging(path, logging.DEBUG)
    try:
        logging.getLogger("xptracker.data").debug("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in path.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
        sys.excepthook = sys.__excepthook__
