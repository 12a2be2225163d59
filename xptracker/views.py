"""Secondary views for the XP tracker window.

``HistoryView`` fills the History tab: type a username, compile every
persisted entry for it and show the totals.  ``AnalyticsView`` is a
toplevel window charting a user's XP by category or by day.  Both read the
log file on demand and never write to it.
"""
from __future__ import annotations

import logging
from tkinter import messagebox
from typing import TYPE_CHECKING, List, Optional

import customtkinter as ctk
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from xptracker.analytics import GROUPINGS, build_figure, entries_frame
from xptracker.data import entries_for_user, load_all
from xptracker.errors import StoreReadError
from xptracker.models import ActivityEntry
from xptracker.stats import compile_history, format_history, same_user

if TYPE_CHECKING:
    from xptracker.ui import XPTrackerApp

log = logging.getLogger(__name__)


def _read_entries(app: "XPTrackerApp") -> List[ActivityEntry]:
    """Load the log, reporting a read failure and carrying on with no history."""
    try:
        return load_all(app.settings.log_file)
    except StoreReadError as exc:
        messagebox.showerror("History Error", str(exc), parent=app)
        return []


class HistoryView(ctk.CTkFrame):
    """Compiled history for any username, shown inside the History tab."""

    def __init__(self, parent, app: "XPTrackerApp") -> None:
        super().__init__(parent)
        self.app = app
        self._build_query_row()
        self._build_text()

    def _build_query_row(self) -> None:
        frame = ctk.CTkFrame(self)
        frame.pack(fill="x", padx=10, pady=5)
        ctk.CTkLabel(frame, text="Username to view:").pack(side="left", padx=5)
        self.user_entry = ctk.CTkEntry(frame, width=200)
        self.user_entry.insert(0, self.app.ledger.username)
        self.user_entry.pack(side="left", padx=5, fill="x", expand=True)
        self.user_entry.bind("<Return>", lambda _e: self.show_history())
        btn = ctk.CTkButton(frame, text="View History", command=self.show_history)
        btn.pack(side="left", padx=5)

    def _build_text(self) -> None:
        self.text = ctk.CTkTextbox(self, font=ctk.CTkFont(family="Courier", size=13), wrap="none")
        self.text.pack(fill="both", expand=True, padx=10, pady=5)
        self.text.configure(state="disabled")

    def _set_text(self, value: str) -> None:
        self.text.configure(state="normal")
        self.text.delete("1.0", "end")
        self.text.insert("1.0", value)
        self.text.configure(state="disabled")

    def show_history(self) -> None:
        """Compile and display totals for the username in the query field."""
        query = self.user_entry.get().strip()
        if not query:
            messagebox.showwarning("History", "Enter a username to view.", parent=self.app)
            return
        ledger = self.app.ledger
        report = compile_history(
            query,
            _read_entries(self.app),
            active_user=ledger.username,
            unsaved=ledger.unsaved_entries,
        )
        log.debug("History for %s: %d entries", query, len(report.entries))
        self._set_text(format_history(report, self.app.settings.recent_entries))


class AnalyticsView(ctk.CTkToplevel):
    """A toplevel window charting one user's XP."""

    def __init__(self, parent: "XPTrackerApp") -> None:
        super().__init__(parent)
        self.app = parent
        self.title("XP Analytics")
        self.geometry("800x560")
        self.resizable(True, True)
        self.group_by: str = "category"
        self.canvas: Optional[FigureCanvasTkAgg] = None

        self._build_controls()
        self._build_chart_area()
        self.refresh_chart()

    def _build_controls(self) -> None:
        frame = ctk.CTkFrame(self)
        frame.pack(fill="x", padx=10, pady=5)
        ctk.CTkLabel(frame, text="Username:").pack(side="left", padx=2)
        self.user_entry = ctk.CTkEntry(frame, width=160)
        self.user_entry.insert(0, self.app.ledger.username)
        self.user_entry.pack(side="left", padx=2)

        ctk.CTkLabel(frame, text="Group by:").pack(side="left", padx=2)
        self.group_var = ctk.StringVar(value=self.group_by)
        opt = ctk.CTkOptionMenu(frame, variable=self.group_var, values=list(GROUPINGS))
        opt.pack(side="left", padx=2)

        btn = ctk.CTkButton(frame, text="Update", command=self.refresh_chart)
        btn.pack(side="left", padx=5)

    def _build_chart_area(self) -> None:
        self.chart_frame = ctk.CTkFrame(self)
        self.chart_frame.pack(fill="both", expand=True, padx=10, pady=5)
        self.empty_label = ctk.CTkLabel(self.chart_frame, text="")
        self.empty_label.pack(pady=20)

    def refresh_chart(self) -> None:
        """Regroup the user's entries and redraw the chart."""
        username = self.user_entry.get().strip() or self.app.ledger.username
        self.group_by = self.group_var.get()
        entries = entries_for_user(_read_entries(self.app), username)
        if same_user(username, self.app.ledger.username):
            entries.extend(self.app.ledger.unsaved_entries)
        fig = build_figure(entries_frame(entries), self.group_by, title=f"XP by {self.group_by} for {username}")
        if self.canvas:
            self.canvas.get_tk_widget().destroy()
            self.canvas = None
        if fig is None:
            self.empty_label.configure(text=f"No entries found for user: {username}")
            return
        self.empty_label.configure(text="")
        self.canvas = FigureCanvasTkAgg(fig, master=self.chart_frame)
        self.canvas.draw()
        self.canvas.get_tk_widget().pack(fill="both", expand=True)
