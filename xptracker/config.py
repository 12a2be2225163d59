"""Configuration for the XP tracker.

Defaults live in module constants.  ``load_settings`` reads a handful of
``XPTRACKER_*`` environment variables on top of them; bad values are logged
and the default is kept, so a typo never stops the window from opening.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

log = logging.getLogger(__name__)

# Session log written next to wherever the app is launched from.
LOG_FILE = "xp_log.txt"
# Diagnostic log for the application itself (not the session data).
DEBUG_LOG_FILE = "xp_tracker.log"

# XP earned per minute, in display order.
DEFAULT_MULTIPLIERS: Dict[str, int] = {
    "STUDY": 5,
    "CODING": 6,
    "WORKOUT": 8,
    "WRITING": 4,
}

MIN_MINUTES = 1
MAX_MINUTES = 300
XP_PER_LEVEL = 1000

DEFAULT_USERNAME = "Player"
TICK_MS = 1000
RECENT_ENTRIES_SHOWN = 10


@dataclass
class Settings:
    log_file: Path = Path(LOG_FILE)
    debug_log_file: Path = Path(DEBUG_LOG_FILE)
    log_level: int = logging.INFO
    multipliers: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_MULTIPLIERS))
    recent_entries: int = RECENT_ENTRIES_SHOWN


def get_env_int(name: str, default: int, min_val: int, max_val: int) -> int:
    """Get integer from environment with validation."""
    try:
        value = int(os.environ.get(name, default))
        if value < min_val or value > max_val:
            log.info("%s=%s out of range (%s-%s), using default %s", name, value, min_val, max_val, default)
            return default
        return value
    except (ValueError, TypeError):
        log.info("%s invalid, using default %s", name, default)
        return default


def parse_multipliers(text: str) -> Dict[str, int]:
    """
    Parse ``NAME=INT,NAME=INT`` into an ordered category map.

    Names are upper-cased.  Raises ``ValueError`` on an empty map, a
    non-positive multiplier or a name that could not be written to the
    comma-separated log.
    """
    result: Dict[str, int] = {}
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition("=")
        name = name.strip().upper()
        if not sep or not name or " " in name:
            raise ValueError(f"Invalid multiplier entry: {part!r}")
        xp = int(value.strip())
        if xp < 1:
            raise ValueError(f"Multiplier for {name} must be positive")
        result[name] = xp
    if not result:
        raise ValueError("No categories configured")
    return result


def _env_level(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    if isinstance(level, int):
        return level
    log.info("%s=%s is not a logging level, using default", name, raw)
    return default


def load_settings() -> Settings:
    """Build ``Settings`` from the defaults and the environment."""
    settings = Settings()
    settings.log_file = Path(os.environ.get("XPTRACKER_LOG_FILE") or LOG_FILE)
    settings.debug_log_file = Path(os.environ.get("XPTRACKER_DEBUG_LOG") or DEBUG_LOG_FILE)
    settings.log_level = _env_level("XPTRACKER_LOG_LEVEL", logging.INFO)
    settings.recent_entries = get_env_int("XPTRACKER_RECENT_ENTRIES", RECENT_ENTRIES_SHOWN, 1, 100)
    raw = os.environ.get("XPTRACKER_MULTIPLIERS")
    if raw:
        try:
            settings.multipliers = parse_multipliers(raw)
        except ValueError as exc:
            log.warning("XPTRACKER_MULTIPLIERS ignored: %s", exc)
    return settings


def setup_logging(log_path: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """Send ``xptracker`` log records to a UTF-8 file and log crashes there too."""
    logger = logging.getLogger("xptracker")
    logger.setLevel(level)
    handler = logging.FileHandler(log_path or DEBUG_LOG_FILE, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    sys.excepthook = log_unhandled_exception
    return logger


def log_unhandled_exception(exc_type, exc, tb) -> None:
    logging.getLogger("xptracker").error("Unhandled exception", exc_info=(exc_type, exc, tb))
