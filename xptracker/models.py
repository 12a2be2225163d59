"""Records and derived figures for the XP tracker.

``ActivityEntry`` is one recorded chunk of time.  ``Baseline`` and
``Totals`` are summaries; both are produced by folding a sequence of
entries, never stored on their own.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from xptracker.config import XP_PER_LEVEL

_WHOLE_NUMBER = re.compile(r"[+-]?[0-9]+")


def parse_whole_number(text: str) -> Optional[int]:
    """Return ``text`` as an int when it is a plain whole number, else ``None``."""
    text = text.strip()
    if not _WHOLE_NUMBER.fullmatch(text):
        return None
    return int(text)


@dataclass(frozen=True)
class ActivityEntry:
    date: str
    category: str
    minutes: int
    xp: int
    user: str

    def to_csv(self) -> str:
        """Render the entry as the ``date,category,minutes,xp`` log line."""
        return f"{self.date},{self.category},{self.minutes},{self.xp}"


@dataclass(frozen=True)
class Baseline:
    """A user's persisted totals, loaded once when the window opens."""

    total_xp: int = 0
    entry_count: int = 0
    per_category_xp: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "Baseline":
        return cls()

    @classmethod
    def from_entries(cls, entries: Iterable[ActivityEntry]) -> "Baseline":
        total, count, by_cat = _sum_entries(entries)
        return cls(total_xp=total, entry_count=count, per_category_xp=by_cat)


@dataclass(frozen=True)
class Totals:
    level: int
    total_xp: int
    xp_into_level: int
    progress_fraction: float
    per_category_xp: Dict[str, int]
    entry_count: int

    @property
    def progress_percent(self) -> str:
        return f"{self.progress_fraction:.0%}"


def level_progress(total_xp: int) -> Tuple[int, int, float]:
    """Return ``(level, xp_into_level, progress_fraction)`` for ``total_xp``."""
    level = total_xp // XP_PER_LEVEL + 1
    into = total_xp % XP_PER_LEVEL
    fraction = 0.0 if total_xp == 0 else into / XP_PER_LEVEL
    return level, into, fraction


def _sum_entries(entries: Iterable[ActivityEntry]) -> Tuple[int, int, Dict[str, int]]:
    total = 0
    count = 0
    by_cat: Dict[str, int] = {}
    for entry in entries:
        total += entry.xp
        count += 1
        by_cat[entry.category] = by_cat.get(entry.category, 0) + entry.xp
    return total, count, by_cat


def fold_totals(baseline: Optional[Baseline], entries: Iterable[ActivityEntry]) -> Totals:
    """
    Fold ``entries`` on top of ``baseline`` into ``Totals``.

    Categories keep their first-seen order: baseline categories first, then
    any new ones from ``entries``.
    """
    baseline = baseline or Baseline.empty()
    run_total, run_count, run_by_cat = _sum_entries(entries)
    by_cat = dict(baseline.per_category_xp)
    for category, xp in run_by_cat.items():
        by_cat[category] = by_cat.get(category, 0) + xp
    total = baseline.total_xp + run_total
    level, into, fraction = level_progress(total)
    return Totals(
        level=level,
        total_xp=total,
        xp_into_level=into,
        progress_fraction=fraction,
        per_category_xp=by_cat,
        entry_count=baseline.entry_count + run_count,
    )
