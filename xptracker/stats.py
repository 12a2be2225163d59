"""Text shown in the stats panel and the history tab.

``compile_history`` gathers everything known about one username: the
persisted entries and, when that username is the one using the window, the
entries recorded in this run but not yet saved.  The ``format_*`` helpers
turn totals into the monospaced text the window displays.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from xptracker.config import RECENT_ENTRIES_SHOWN, XP_PER_LEVEL
from xptracker.data import entries_for_user
from xptracker.models import ActivityEntry, Totals, fold_totals


@dataclass
class HistoryReport:
    username: str
    entries: List[ActivityEntry] = field(default_factory=list)
    includes_unsaved: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def totals(self) -> Totals:
        return fold_totals(None, self.entries)

    def recent(self, limit: int = RECENT_ENTRIES_SHOWN) -> List[ActivityEntry]:
        """Most recent entries first."""
        return list(reversed(self.entries[-limit:])) if limit > 0 else []


def same_user(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


def compile_history(
    query: str,
    stored: Iterable[ActivityEntry],
    active_user: Optional[str] = None,
    unsaved: Iterable[ActivityEntry] = (),
) -> HistoryReport:
    """
    Collect the entries for ``query`` (case-insensitive).

    ``unsaved`` entries are appended only when ``query`` names
    ``active_user``; saved ones are already part of ``stored``.
    """
    query = query.strip()
    if not query:
        raise ValueError("Enter a username to view.")
    report = HistoryReport(username=query, entries=entries_for_user(stored, query))
    if active_user is not None and same_user(query, active_user):
        extra = list(unsaved)
        if extra:
            report.entries.extend(extra)
            report.includes_unsaved = True
    return report


def level_text(totals: Totals) -> str:
    return f"Level: {totals.level}  ({totals.xp_into_level}/{XP_PER_LEVEL} to next)"


def _category_lines(per_category: Dict[str, int], indent: str = "  ") -> List[str]:
    return [f"{indent}{name:<8} : {xp}" for name, xp in per_category.items()]


def format_stats(all_time: Totals, session: Totals) -> str:
    """Render the all-time breakdown followed by this run's figures."""
    lines = [f"Entries (all-time): {all_time.entry_count}", "XP by category (all-time):"]
    if all_time.per_category_xp:
        lines.extend(_category_lines(all_time.per_category_xp))
    else:
        lines.append("  (no entries yet)")
    lines.append("")
    lines.append("This session only:")
    lines.append(f"  Entries: {session.entry_count}")
    if session.per_category_xp:
        lines.extend(_category_lines(session.per_category_xp))
    else:
        lines.append("  XP by category: (none yet)")
    return "\n".join(lines) + "\n"


def format_history(report: HistoryReport, recent_limit: int = RECENT_ENTRIES_SHOWN) -> str:
    """Render a history report, or the explicit no-entries message."""
    if report.is_empty:
        return f"No entries found for user: {report.username}"
    totals = report.totals
    lines = [f"--- History for {report.username} ---"]
    if report.includes_unsaved:
        lines.append("(includes unsaved entries from this session)")
    lines.append(f"Entries recorded: {totals.entry_count}")
    lines.append(f"Total XP: {totals.total_xp}")
    lines.append(
        f"Level: {totals.level}  ({totals.xp_into_level}/{XP_PER_LEVEL} to next level, "
        f"{totals.progress_percent})"
    )
    lines.append("")
    lines.append("XP by category:")
    lines.extend(_category_lines(totals.per_category_xp))
    lines.append("")
    lines.append("Most recent entries:")
    for e in report.recent(recent_limit):
        lines.append(f"  {e.date}  {e.category}  {e.minutes}m  {e.xp} XP")
    return "\n".join(lines) + "\n"
