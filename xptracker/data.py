"""
Data layer for the XP tracker.

Sessions are appended to a flat text file rather than a database so the
history stays readable and hand-editable.  Each save writes one block::

    === Session for <username> on <timestamp> ===
    <date>,<category>,<minutes>,<xp>
    ...
    <blank line>

Blocks repeat in append order.  Reading is tolerant: a line that does not
parse is skipped and counted rather than failing the whole load, so a
manual edit or an interrupted write only ever costs the lines it touched.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple, Union

from xptracker.config import LOG_FILE
from xptracker.errors import InvalidUsernameError, StoreReadError, StoreWriteError
from xptracker.models import ActivityEntry, Baseline, parse_whole_number

if TYPE_CHECKING:
    from xptracker.ledger import Ledger

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

HEADER_PREFIX = "=== Session for "
HEADER_DELIMITER = " on "
HEADER_SUFFIX = " ==="


@dataclass
class ParseResult:
    """Entries recovered from the log plus how many lines were skipped."""

    entries: List[ActivityEntry] = field(default_factory=list)
    skipped: int = 0


def _resolve(path: Optional[PathLike]) -> Path:
    return Path(path) if path is not None else Path(LOG_FILE)


def validate_username(name: str) -> str:
    """
    Return ``name`` stripped, if it reads back unchanged from a header line.

    The header ends the username at the first ``" on "``, so a name that
    contains it (or ends in ``" on"``) would be saved under someone else.
    Commas and line breaks are refused as well.

    :raises InvalidUsernameError: ``name`` is empty or cannot round-trip.
    """
    name = (name or "").strip()
    if not name:
        raise InvalidUsernameError("Enter a name.", name)
    if (name + HEADER_DELIMITER).find(HEADER_DELIMITER) != len(name):
        raise InvalidUsernameError(f"Names cannot contain {HEADER_DELIMITER.strip()!r} as a separate word.", name)
    if any(ch in name for ch in ",\r\n"):
        raise InvalidUsernameError("Names cannot contain commas or line breaks.", name)
    return name


def format_header(username: str, timestamp: datetime) -> str:
    """Return the header line that opens a session block."""
    return f"{HEADER_PREFIX}{username}{HEADER_DELIMITER}{timestamp.isoformat()}{HEADER_SUFFIX}"


def parse_header_user(line: str) -> Optional[str]:
    """
    Extract the username from a header line.

    The username is the text between the prefix and the first ``" on "``
    after it.  Returns ``None`` when there is no delimiter or the name is
    empty, which leaves the lines that follow unattributed.
    """
    start = len(HEADER_PREFIX)
    on_idx = line.find(HEADER_DELIMITER, start)
    if on_idx <= start:
        return None
    user = line[start:on_idx].strip()
    return user or None


def parse_entry_line(line: str, user: str) -> Optional[ActivityEntry]:
    """Parse one ``date,category,minutes,xp`` line, or return ``None`` if malformed."""
    parts = line.split(",")
    if len(parts) != 4:
        return None
    minutes = parse_whole_number(parts[2])
    xp = parse_whole_number(parts[3])
    if minutes is None or xp is None:
        return None
    return ActivityEntry(
        date=parts[0].strip(),
        category=parts[1].strip(),
        minutes=minutes,
        xp=xp,
        user=user,
    )


def parse_log_lines(lines: Iterable[str]) -> ParseResult:
    """
    Parse log lines into entries.

    A line is skipped (and counted in ``skipped``) when it does not have
    exactly four fields, when minutes or xp are not whole numbers, or when
    no header has named a user yet.  Blank lines are separators and are not
    counted.
    """
    result = ParseResult()
    current_user: Optional[str] = None
    for raw in lines:
        line = raw.rstrip("\r\n")
        if line.startswith(HEADER_PREFIX):
            current_user = parse_header_user(line)
            continue
        if not line.strip():
            continue
        entry = parse_entry_line(line, current_user) if current_user else None
        if entry is None:
            result.skipped += 1
            continue
        result.entries.append(entry)
    return result


# --- Logging and Retrieval ---
def append_session(
    username: str,
    timestamp: datetime,
    entries: Iterable[ActivityEntry],
    path: Optional[PathLike] = None,
) -> int:
    """
    Append one session block and return the number of entries written.

    :param username: Name written into the header line.
    :param timestamp: When the session was saved.
    :param entries: Entries to write, in order.
    :param path: Log file; defaults to ``xp_log.txt`` in the working directory.
    :return: Count of entry lines written; 0 when ``entries`` is empty.
    :raises StoreWriteError: If the file cannot be opened, written or flushed.
    """
    entries = list(entries)
    if not entries:
        return 0
    target = _resolve(path)
    lines = [format_header(username, timestamp)]
    lines.extend(e.to_csv() for e in entries)
    try:
        with open(target, "a", encoding="utf-8", newline="\n") as f:
            f.write("\n".join(lines) + "\n\n")
            f.flush()
            os.fsync(f.fileno())
    except OSError as exc:
        log.error("Could not append session to %s: %s", target, exc)
        raise StoreWriteError(f"Error saving log: {exc}", str(target)) from exc
    log.info("Saved %d entries for %s to %s", len(entries), username, target)
    return len(entries)


def read_log(path: Optional[PathLike] = None) -> ParseResult:
    """
    Read and parse the whole log file.

    A missing file is not an error; it simply has no history yet.

    :raises StoreReadError: If the file exists but cannot be read.
    """
    target = _resolve(path)
    if not target.exists():
        log.debug("No log file at %s", target)
        return ParseResult()
    try:
        # utf-8-sig drops a byte-order mark left by some editors.
        with open(target, "r", encoding="utf-8-sig") as f:
            result = parse_log_lines(f)
    except (OSError, UnicodeDecodeError) as exc:
        log.error("Could not read %s: %s", target, exc)
        raise StoreReadError(f"Error reading history: {exc}", str(target)) from exc
    if result.skipped:
        log.warning("Skipped %d malformed line(s) in %s", result.skipped, target)
    return result


def load_all(path: Optional[PathLike] = None) -> List[ActivityEntry]:
    """Return every persisted entry across all users, in file order."""
    return read_log(path).entries


def entries_for_user(entries: Iterable[ActivityEntry], username: str) -> List[ActivityEntry]:
    """Filter ``entries`` to ``username``, ignoring case."""
    wanted = username.strip().casefold()
    return [e for e in entries if e.user.casefold() == wanted]


def load_baseline_for_user(username: str, path: Optional[PathLike] = None) -> Baseline:
    """Sum every persisted entry belonging to ``username`` (case-insensitive)."""
    baseline = Baseline.from_entries(entries_for_user(load_all(path), username))
    log.info(
        "Loaded baseline for %s: %d XP over %d entries",
        username,
        baseline.total_xp,
        baseline.entry_count,
    )
    return baseline


def baseline_or_empty(
    username: str, path: Optional[PathLike] = None
) -> Tuple[Baseline, Optional[StoreReadError]]:
    """
    Load ``username``'s baseline, falling back to no history on a read error.

    :return: The baseline and the read error, if one was swallowed, so the
        caller can report it.
    """
    try:
        return load_baseline_for_user(username, path), None
    except StoreReadError as exc:
        log.warning("Starting %s with no history: %s", username, exc)
        return Baseline.empty(), exc


def save_unsaved(ledger: "Ledger", timestamp: datetime, path: Optional[PathLike] = None) -> int:
    """
    Append the ledger's unsaved entries as one session and mark them saved.

    Entries are only marked once the append succeeded; on ``StoreWriteError``
    the ledger is left untouched so the same entries can be saved again.

    :return: Count of entries written; 0 when nothing was pending.
    """
    written = append_session(ledger.username, timestamp, ledger.unsaved_entries, path)
    ledger.mark_saved(written)
    return written
