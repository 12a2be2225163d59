"""Analytics for the XP tracker.

Entries are loaded into a pandas ``DataFrame`` and grouped by category or
by day.  ``build_figure`` draws the grouped XP with matplotlib; the
window in ``xptracker.views`` embeds the figure with ``FigureCanvasTkAgg``.
"""
from __future__ import annotations

from typing import Iterable

import matplotlib

# Non-interactive backend; the window embeds figures itself.
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from xptracker.models import ActivityEntry  # noqa: E402

COLUMNS = ["date", "category", "minutes", "xp", "user"]
GROUPINGS = ("category", "day")


def entries_frame(entries: Iterable[ActivityEntry]) -> pd.DataFrame:
    """One row per entry with a parsed ``day`` column (NaT when the date is bad)."""
    df = pd.DataFrame(
        [(e.date, e.category, e.minutes, e.xp, e.user) for e in entries],
        columns=COLUMNS,
    )
    df["minutes"] = pd.to_numeric(df["minutes"], errors="coerce").fillna(0).astype(int)
    df["xp"] = pd.to_numeric(df["xp"], errors="coerce").fillna(0).astype(int)
    df["day"] = pd.to_datetime(df["date"], format="%Y-%m-%d", errors="coerce")
    return df


def xp_by_category(df: pd.DataFrame) -> pd.Series:
    """Total XP per category, largest first."""
    if df.empty:
        return pd.Series(dtype="int64")
    return df.groupby("category")["xp"].sum().sort_values(ascending=False)


def xp_by_day(df: pd.DataFrame) -> pd.Series:
    """Total XP per calendar day in date order; rows with unparsable dates are dropped."""
    dated = df.dropna(subset=["day"])
    if dated.empty:
        return pd.Series(dtype="int64")
    return dated.groupby(dated["day"].dt.date)["xp"].sum().sort_index()


def build_figure(df: pd.DataFrame, group_by: str = "category", title: str = ""):
    """
    Draw XP grouped by ``group_by`` ("category" pie or "day" bar).

    :return: A matplotlib ``Figure``, or ``None`` when there is nothing to plot.
    """
    if group_by not in GROUPINGS:
        raise ValueError(f"Unknown grouping: {group_by}")
    grouped = xp_by_category(df) if group_by == "category" else xp_by_day(df)
    if grouped.empty:
        return None
    fig = plt.Figure(figsize=(6, 4))
    ax = fig.add_subplot(111)
    if group_by == "category":
        ax.pie(grouped.values.tolist(), labels=grouped.index.tolist(), autopct="%1.1f%%", startangle=90)
        ax.axis("equal")  # equal aspect ratio ensures a circle
    else:
        labels = [d.isoformat() for d in grouped.index]
        ax.bar(labels, grouped.values.tolist())
        ax.set_ylabel("XP")
        ax.tick_params(axis="x", labelrotation=45)
    ax.set_title(title or f"XP by {group_by}")
    fig.tight_layout()
    return fig
