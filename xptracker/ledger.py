"""In-memory ledger for the XP tracker.

The ``Ledger`` owns the entries recorded during the current run and keeps
running totals alongside them.  It is decoupled from storage: the window
loads a ``Baseline`` from ``xptracker.data`` once and hands it in when it
wants all-time figures, and writes ``unsaved_entries`` out when the user
saves.
"""
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Callable, Dict, List, Mapping, Optional

from xptracker.config import DEFAULT_MULTIPLIERS, DEFAULT_USERNAME, MAX_MINUTES, MIN_MINUTES
from xptracker.errors import NotANumberError, OutOfRangeError
from xptracker.models import ActivityEntry, Baseline, Totals, fold_totals, level_progress, parse_whole_number

log = logging.getLogger(__name__)


def validate_manual_minutes(raw: str) -> int:
    """
    Validate the text typed into the manual minutes field.

    Only whole numbers between ``MIN_MINUTES`` and ``MAX_MINUTES`` are
    accepted.  The timer path does not go through here.

    :raises NotANumberError: ``raw`` is empty or not a whole number.
    :raises OutOfRangeError: the number is outside the allowed range.
    """
    text = (raw or "").strip()
    if not text:
        raise NotANumberError(f"Enter minutes between {MIN_MINUTES} and {MAX_MINUTES}.", raw)
    value = parse_whole_number(text)
    if value is None:
        raise NotANumberError(
            f"Minutes must be a whole number between {MIN_MINUTES} and {MAX_MINUTES}.", raw
        )
    if value < MIN_MINUTES or value > MAX_MINUTES:
        raise OutOfRangeError(f"Minutes must be between {MIN_MINUTES} and {MAX_MINUTES}.", raw)
    return value


def minutes_from_seconds(seconds: float) -> int:
    """Round elapsed seconds to whole minutes, halves rounding up (30 s is 1 min)."""
    if seconds < 0:
        raise ValueError("Elapsed seconds cannot be negative")
    return int(math.floor(seconds / 60.0 + 0.5))


def split_minutes(minutes: int, chunk: int = MAX_MINUTES) -> List[int]:
    """Split ``minutes`` into pieces no larger than ``chunk`` (650 -> 300, 300, 50)."""
    pieces = []
    while minutes > 0:
        piece = min(minutes, chunk)
        pieces.append(piece)
        minutes -= piece
    return pieces


class Ledger:
    """
    Entries recorded in this run, with their running totals.

    ``total_xp`` and ``xp_by_category`` are caches of folding ``entries``
    and are only ever changed together with it.  Entries are never removed
    or edited.
    """

    def __init__(
        self,
        username: str = DEFAULT_USERNAME,
        multipliers: Optional[Mapping[str, int]] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.username = username
        self.multipliers: Dict[str, int] = dict(multipliers or DEFAULT_MULTIPLIERS)
        self.today = today
        self.entries: List[ActivityEntry] = []
        self.total_xp = 0
        self.xp_by_category: Dict[str, int] = {}
        self._saved_count = 0

    @property
    def categories(self) -> List[str]:
        return list(self.multipliers)

    def multiplier(self, category: str) -> int:
        try:
            return self.multipliers[category]
        except KeyError:
            raise ValueError(f"Unknown category: {category}") from None

    def record_minutes(self, category: str, minutes: int) -> List[ActivityEntry]:
        """
        Record ``minutes`` of ``category`` and return the entries created.

        Durations above ``MAX_MINUTES`` are split into several entries so no
        single persisted line exceeds the bound.  XP is computed per chunk,
        which sums to ``minutes * multiplier`` exactly.
        """
        rate = self.multiplier(category)
        if minutes < MIN_MINUTES:
            raise ValueError(f"Minutes must be at least {MIN_MINUTES}")
        day = self.today().isoformat()
        created = []
        for chunk in split_minutes(minutes):
            entry = ActivityEntry(date=day, category=category, minutes=chunk, xp=chunk * rate, user=self.username)
            self.entries.append(entry)
            self.total_xp += entry.xp
            self.xp_by_category[category] = self.xp_by_category.get(category, 0) + entry.xp
            created.append(entry)
        log.debug("Recorded %d min of %s in %d entries", minutes, category, len(created))
        return created

    def record_elapsed(self, category: str, seconds: float) -> List[ActivityEntry]:
        """Record a stopwatch duration; under half a minute records nothing."""
        minutes = minutes_from_seconds(seconds)
        if minutes < MIN_MINUTES:
            log.debug("Timer ran %ss, nothing recorded", seconds)
            return []
        return self.record_minutes(category, minutes)

    def this_session_totals(self) -> Totals:
        """Totals of this run alone, read from the running caches."""
        level, into, fraction = level_progress(self.total_xp)
        return Totals(
            level=level,
            total_xp=self.total_xp,
            xp_into_level=into,
            progress_fraction=fraction,
            per_category_xp=dict(self.xp_by_category),
            entry_count=len(self.entries),
        )

    def all_time_totals(self, baseline: Optional[Baseline]) -> Totals:
        """Totals of ``baseline`` plus everything recorded in this run."""
        return fold_totals(baseline, self.entries)

    # Save bookkeeping: entries before ``_saved_count`` are already in the log.
    @property
    def unsaved_entries(self) -> List[ActivityEntry]:
        return self.entries[self._saved_count:]

    @property
    def has_unsaved(self) -> bool:
        return self._saved_count < len(self.entries)

    def mark_saved(self, count: Optional[int] = None) -> None:
        """Mark the next ``count`` unsaved entries (default: all) as written."""
        if count is None:
            count = len(self.entries) - self._saved_count
        self._saved_count = min(len(self.entries), self._saved_count + count)
