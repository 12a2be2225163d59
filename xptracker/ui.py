"""User interface for the XP tracker.

This module builds the primary customtkinter window: a sidebar with the
analytics window, appearance mode selector and exit button, and a tab view
with "Log & Stats" (manual entry, a single live timer and the all-time
stats panel) and "History".  The window owns the ``Ledger`` for the run and
the ``Baseline`` loaded for the user at startup; all arithmetic happens
there, the widgets only display it.
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime
from tkinter import messagebox
from typing import Optional

import customtkinter as ctk

from xptracker.config import (
    DEFAULT_USERNAME,
    MAX_MINUTES,
    MIN_MINUTES,
    TICK_MS,
    Settings,
    load_settings,
    log_unhandled_exception,
)
from xptracker.data import baseline_or_empty, save_unsaved, validate_username
from xptracker.errors import InvalidUsernameError, StoreWriteError, ValidationError
from xptracker.ledger import Ledger, minutes_from_seconds, validate_manual_minutes
from xptracker.models import Baseline
from xptracker.stats import format_stats, level_text
from xptracker.timer import Stopwatch
from xptracker.views import AnalyticsView, HistoryView

log = logging.getLogger(__name__)

PRIMARY_COLOR = "#238636"
PRIMARY_HOVER = "#1c6a2b"


class XPTrackerApp(ctk.CTk):
    """Main application window for the XP tracker."""

    def __init__(self, settings: Optional[Settings] = None, username: Optional[str] = None) -> None:
        super().__init__()
        self.settings = settings or load_settings()
        ctk.set_appearance_mode("light")

        self.withdraw()
        if username is None:
            username = self._ask_username()
        self.ledger = Ledger(validate_username(username), self.settings.multipliers)
        self.baseline = self._load_baseline()
        self.stopwatch = Stopwatch()

        self.title(f"XP Tracker - {self.ledger.username}")
        self.geometry("900x660")
        self.protocol("WM_DELETE_WINDOW", self.on_exit)

        # Sidebar for navigation
        self.sidebar = ctk.CTkFrame(self, width=180)
        self.sidebar.pack(side="left", fill="y")
        self.build_sidebar()

        self.tabs = ctk.CTkTabview(self)
        self.tabs.pack(side="right", expand=True, fill="both", padx=10, pady=10)
        self.log_tab = self.tabs.add("Log & Stats")
        self.history_tab = self.tabs.add("History")

        self._build_manual_row(self.log_tab)
        self._build_timer_row(self.log_tab)
        self._build_stats_panel(self.log_tab)
        self.history_view = HistoryView(self.history_tab, self)
        self.history_view.pack(fill="both", expand=True)

        self._install_shortcuts()
        self.update_stats()
        # The read error was already reported once; don't repeat it here.
        if self._startup_read_ok:
            self.history_view.show_history()
        self.deiconify()
        self.tick_loop()

    def report_callback_exception(self, exc, val, tb):  # type: ignore[override]
        """Log exceptions raised inside button, shortcut and ``after`` callbacks."""
        log_unhandled_exception(exc, val, tb)
        messagebox.showerror("Unexpected Error", f"{exc.__name__}: {val}", parent=self)

    # --- startup ---
    def _ask_username(self) -> str:
        prompt = "Enter your name:"
        while True:
            dialog = ctk.CTkInputDialog(text=prompt, title="XP Tracker")
            name = dialog.get_input()
            if not name or not name.strip():
                return DEFAULT_USERNAME
            try:
                return validate_username(name)
            except InvalidUsernameError as exc:
                log.info("Rejected username %r: %s", name, exc)
                prompt = f"{exc}\nEnter your name:"

    def _load_baseline(self) -> Baseline:
        baseline, error = baseline_or_empty(self.ledger.username, self.settings.log_file)
        self._startup_read_ok = error is None
        if error is not None:
            messagebox.showerror("History Error", str(error))
        return baseline

    # --- layout ---
    def build_sidebar(self) -> None:
        """Create the analytics button, appearance mode selector and exit button."""
        label = ctk.CTkLabel(self.sidebar, text=self.ledger.username, font=ctk.CTkFont(weight="bold"))
        label.pack(pady=20, padx=10)

        btn_analytics = ctk.CTkButton(self.sidebar, text="Analytics", command=self.open_analytics_view)
        btn_analytics.pack(pady=5, padx=10, fill="x")

        mode_frame = ctk.CTkFrame(self.sidebar)
        mode_frame.pack(pady=10, padx=10, fill="x")
        ctk.CTkLabel(mode_frame, text="Mode:").pack(side="left")
        self.mode_var = ctk.StringVar(value="light")
        mode_menu = ctk.CTkOptionMenu(mode_frame, variable=self.mode_var, values=["light", "dark"], command=self._set_mode)
        mode_menu.pack(side="left", padx=5)

        btn_exit = ctk.CTkButton(
            self.sidebar,
            text="Exit",
            fg_color="#c72626",
            hover_color="#d23b3b",
            command=self.on_exit,
        )
        btn_exit.pack(side="bottom", pady=(20, 10), padx=10, fill="x")

    def _card(self, parent, title: str) -> ctk.CTkFrame:
        card = ctk.CTkFrame(parent)
        card.pack(fill="x", padx=5, pady=5)
        ctk.CTkLabel(card, text=title, font=ctk.CTkFont(size=13, weight="bold")).pack(anchor="w", padx=10, pady=(6, 0))
        return card

    def _build_manual_row(self, parent) -> None:
        card = self._card(parent, "Add Activity (Manual)")
        row = ctk.CTkFrame(card, fg_color="transparent")
        row.pack(fill="x", padx=10, pady=6)

        ctk.CTkLabel(row, text="Category:").pack(side="left", padx=4)
        self.category_var = ctk.StringVar(value=self.ledger.categories[0])
        ctk.CTkOptionMenu(row, variable=self.category_var, values=self.ledger.categories).pack(side="left", padx=4)

        ctk.CTkLabel(row, text="Minutes:").pack(side="left", padx=4)
        self.minutes_entry = ctk.CTkEntry(row, width=70, placeholder_text=f"{MIN_MINUTES}-{MAX_MINUTES}")
        self.minutes_entry.insert(0, "30")
        self.minutes_entry.pack(side="left", padx=4)

        add_btn = ctk.CTkButton(
            row, text="Add Activity  (Ctrl+A)", fg_color=PRIMARY_COLOR, hover_color=PRIMARY_HOVER, command=self.handle_add_activity
        )
        add_btn.pack(side="left", padx=4)
        ctk.CTkButton(row, text="Save Log  (Ctrl+S)", command=self.save_log).pack(side="left", padx=4)

    def _build_timer_row(self, parent) -> None:
        card = self._card(parent, "Live Timer (Single, by Category)")
        row = ctk.CTkFrame(card, fg_color="transparent")
        row.pack(fill="x", padx=10, pady=6)

        ctk.CTkLabel(row, text="Timer Category:").pack(side="left", padx=4)
        self.timer_category_var = ctk.StringVar(value=self.ledger.categories[0])
        self.timer_category_menu = ctk.CTkOptionMenu(row, variable=self.timer_category_var, values=self.ledger.categories)
        self.timer_category_menu.pack(side="left", padx=4)

        self.timer_label = ctk.CTkLabel(row, text=self.stopwatch.display, font=ctk.CTkFont(family="Courier", size=13, weight="bold"))
        self.timer_label.pack(side="left", padx=10)

        self.timer_start_btn = ctk.CTkButton(
            row, text="Start", width=90, fg_color=PRIMARY_COLOR, hover_color=PRIMARY_HOVER, command=self.on_timer_start_pause
        )
        self.timer_start_btn.pack(side="left", padx=4)
        ctk.CTkButton(row, text="Stop & Add", width=110, command=self.on_timer_stop_and_add).pack(side="left", padx=4)

    def _build_stats_panel(self, parent) -> None:
        card = self._card(parent, "All-Time Stats (History + This Session)")
        header = ctk.CTkFrame(card, fg_color="transparent")
        header.pack(fill="x", padx=10, pady=6)
        bold = ctk.CTkFont(size=14, weight="bold")
        self.level_label = ctk.CTkLabel(header, text="Level: 1", font=bold)
        self.level_label.pack(side="left", padx=4)
        self.total_label = ctk.CTkLabel(header, text="Total XP: 0", font=bold)
        self.total_label.pack(side="left", padx=20)
        self.progress_bar = ctk.CTkProgressBar(header, progress_color="#3498db")
        self.progress_bar.pack(side="left", padx=4, fill="x", expand=True)
        self.progress_label = ctk.CTkLabel(header, text="0%", width=40)
        self.progress_label.pack(side="left", padx=4)

        self.stats_text = ctk.CTkTextbox(card, height=220, font=ctk.CTkFont(family="Courier", size=13))
        self.stats_text.pack(fill="both", expand=True, padx=10, pady=(0, 10))
        self.stats_text.configure(state="disabled")

    def _install_shortcuts(self) -> None:
        modifier = "Command" if sys.platform == "darwin" else "Control"
        for key, handler in (("a", self.handle_add_activity), ("s", self.save_log), ("h", self.show_history)):
            self.bind_all(f"<{modifier}-{key}>", lambda _e, h=handler: h())

    def _set_mode(self, mode: str) -> None:
        """Change the global appearance mode."""
        if mode.lower() == "dark":
            ctk.set_appearance_mode("dark")
        else:
            ctk.set_appearance_mode("light")

    # --- periodic refresh ---
    def tick_loop(self) -> None:
        """Advance the stopwatch display once per second; never touches the ledger."""
        self.stopwatch.tick()
        self.timer_label.configure(text=self.stopwatch.display)
        self.after(TICK_MS, self.tick_loop)

    def update_stats(self) -> None:
        """Recompute all-time and this-session totals and redraw the stats panel."""
        all_time = self.ledger.all_time_totals(self.baseline)
        session = self.ledger.this_session_totals()
        self.level_label.configure(text=level_text(all_time))
        self.total_label.configure(text=f"Total XP: {all_time.total_xp}")
        self.progress_bar.set(all_time.progress_fraction)
        self.progress_label.configure(text=all_time.progress_percent)
        self.stats_text.configure(state="normal")
        self.stats_text.delete("1.0", "end")
        self.stats_text.insert("1.0", format_stats(all_time, session))
        self.stats_text.configure(state="disabled")

    # --- actions ---
    def _added_message(self, minutes: int, category: str) -> str:
        xp = minutes * self.ledger.multiplier(category)
        return f"Added: {minutes} minute(s) of {category} for {xp} XP."

    def handle_add_activity(self) -> None:
        """Validate the manual minutes field and record the activity."""
        raw = self.minutes_entry.get()
        try:
            minutes = validate_manual_minutes(raw)
        except ValidationError as exc:
            log.info("Rejected manual minutes %r: %s", raw, exc.reason)
            self.bell()
            messagebox.showerror("Invalid Minutes", str(exc), parent=self)
            self.minutes_entry.focus_set()
            self.minutes_entry.select_range(0, "end")
            return
        category = self.category_var.get()
        self.ledger.record_minutes(category, minutes)
        self.update_stats()
        messagebox.showinfo("Activity Added", self._added_message(minutes, category), parent=self)

    def on_timer_start_pause(self) -> None:
        running = self.stopwatch.toggle(self.timer_category_var.get())
        self.timer_start_btn.configure(text="Pause" if running else "Start")
        # Category stays locked after a pause until Stop & Add.
        self.timer_category_menu.configure(state="disabled" if self.stopwatch.locked else "normal")

    def _reset_timer_ui(self) -> None:
        self.timer_start_btn.configure(text="Start")
        self.timer_label.configure(text=self.stopwatch.display)
        self.timer_category_menu.configure(state="normal")

    def on_timer_stop_and_add(self) -> None:
        """Stop the stopwatch and record its rounded minutes."""
        category, seconds = self.stopwatch.stop()
        category = category or self.timer_category_var.get()
        self._reset_timer_ui()
        created = self.ledger.record_elapsed(category, seconds)
        if not created:
            messagebox.showinfo("Timer", "Timer is less than 1 minute. Nothing added.", parent=self)
            return
        self.update_stats()
        minutes = sum(e.minutes for e in created)
        messagebox.showinfo("Timer Added", self._added_message(minutes, category), parent=self)

    def save_log(self) -> bool:
        """Append unsaved entries to the log file; returns whether anything was written."""
        if not self.ledger.has_unsaved:
            messagebox.showwarning("Save Log", "Nothing to save yet.", parent=self)
            return False
        try:
            written = save_unsaved(self.ledger, datetime.now(), self.settings.log_file)
        except StoreWriteError as exc:
            messagebox.showerror("Save Error", str(exc), parent=self)
            return False
        messagebox.showinfo(
            "Saved",
            f"Saved {written} entries to:\n{self.settings.log_file.resolve()}",
            parent=self,
        )
        return True

    def show_history(self) -> None:
        self.tabs.set("History")
        self.history_view.show_history()

    def open_analytics_view(self) -> None:
        """Open the analytics window and bring it to front."""
        av = AnalyticsView(self)
        av.focus()
        av.lift()

    def on_exit(self) -> None:
        """Offer to record a running timer and save unsaved entries, then close."""
        if self.stopwatch.locked:
            self.stopwatch.pause()
            self.timer_start_btn.configure(text="Start")
            minutes = minutes_from_seconds(self.stopwatch.elapsed_sec)
            answer = messagebox.askyesnocancel(
                "Timer Active",
                f"The timer has unrecorded time.\nAdd the rounded minutes ({minutes} min) to "
                f"\"{self.stopwatch.category}\" before exiting?",
                icon=messagebox.WARNING,
                parent=self,
            )
            if answer is None:
                return
            category, seconds = self.stopwatch.stop()
            if answer and category:
                self.ledger.record_elapsed(category, seconds)
            self._reset_timer_ui()
            self.update_stats()

        if not self.ledger.has_unsaved:
            if messagebox.askyesno("Exit", "No new entries to save. Exit now?", parent=self):
                self._close()
            return

        answer = messagebox.askyesnocancel("Save before exit", "Save your current session before exit?", parent=self)
        if answer is None:
            return
        if answer:
            # A failed save is reported by save_log; closing continues either way.
            self.save_log()
        self._close()

    def _close(self) -> None:
        log.info("Closing XP tracker for %s", self.ledger.username)
        self.destroy()
