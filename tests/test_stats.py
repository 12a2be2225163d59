"""Tests for history compilation and the stats/history text."""

from datetime import datetime

import pytest

from xptracker import data
from xptracker.models import ActivityEntry, Baseline
from xptracker.stats import compile_history, format_history, format_stats, level_text


def _entry(user="Alice", category="STUDY", minutes=10, xp=50, date="2025-09-01"):
    return ActivityEntry(date=date, category=category, minutes=minutes, xp=xp, user=user)


class TestCompileHistory:
    def test_no_entries_is_explicit_empty_report(self):
        report = compile_history("Nobody", [_entry()])
        assert report.is_empty
        assert format_history(report) == "No entries found for user: Nobody"

    def test_empty_log_is_empty_report(self):
        assert compile_history("Alice", []).is_empty

    def test_blank_query_rejected(self):
        with pytest.raises(ValueError):
            compile_history("   ", [_entry()])

    @pytest.mark.parametrize("query", ["alice", "ALICE", "Alice"])
    def test_case_insensitive(self, query):
        report = compile_history(query, [_entry(), _entry(user="Bob")])
        assert len(report.entries) == 1

    def test_merges_unsaved_for_active_user(self):
        stored = [_entry()]
        unsaved = [_entry(category="CODING", xp=60)]
        report = compile_history("alice", stored, active_user="Alice", unsaved=unsaved)
        assert report.includes_unsaved
        assert report.totals.total_xp == 110

    def test_other_user_does_not_see_unsaved(self):
        report = compile_history("Bob", [_entry(user="Bob")], active_user="Alice", unsaved=[_entry()])
        assert not report.includes_unsaved
        assert report.totals.total_xp == 50

    def test_unsaved_only_history_not_empty(self):
        report = compile_history("Alice", [], active_user="Alice", unsaved=[_entry()])
        assert not report.is_empty

    def test_recent_newest_first_limited(self):
        entries = [_entry(minutes=m, xp=m) for m in range(1, 16)]
        report = compile_history("Alice", entries)
        assert [e.minutes for e in report.recent(10)] == list(range(15, 5, -1))


class TestSaveThenHistory:
    """Saving marks entries as written so nothing is counted twice."""

    def test_second_save_appends_only_new_entries(self, ledger, log_path):
        ledger.record_minutes("STUDY", 10)
        data.append_session("Alice", datetime(2025, 9, 4), ledger.unsaved_entries, log_path)
        ledger.mark_saved()
        assert data.append_session("Alice", datetime(2025, 9, 4), ledger.unsaved_entries, log_path) == 0
        assert len(data.load_all(log_path)) == 1

    def test_history_after_save_not_double_counted(self, ledger, log_path):
        ledger.record_minutes("STUDY", 10)
        written = data.append_session("Alice", datetime(2025, 9, 4), ledger.unsaved_entries, log_path)
        ledger.mark_saved(written)
        ledger.record_minutes("CODING", 5)
        report = compile_history(
            "Alice", data.load_all(log_path), active_user=ledger.username, unsaved=ledger.unsaved_entries
        )
        assert report.totals.total_xp == 50 + 30
        assert report.totals.entry_count == 2


class TestFormatting:
    def test_format_history_lines(self):
        entries = [
            _entry(category="STUDY", minutes=200, xp=1000, date="2025-09-01"),
            _entry(category="CODING", minutes=250, xp=1500, date="2025-09-02"),
            _entry(category="STUDY", minutes=10, xp=50, date="2025-09-03"),
        ]
        text = format_history(compile_history("Alice", entries, active_user="Alice", unsaved=[]))
        assert text.splitlines() == [
            "--- History for Alice ---",
            "Entries recorded: 3",
            "Total XP: 2550",
            "Level: 3  (550/1000 to next level, 55%)",
            "",
            "XP by category:",
            "  STUDY    : 1050",
            "  CODING   : 1500",
            "",
            "Most recent entries:",
            "  2025-09-03  STUDY  10m  50 XP",
            "  2025-09-02  CODING  250m  1500 XP",
            "  2025-09-01  STUDY  200m  1000 XP",
        ]

    def test_format_history_marks_unsaved(self):
        report = compile_history("Alice", [], active_user="Alice", unsaved=[_entry()])
        assert "(includes unsaved entries from this session)" in format_history(report)

    def test_format_stats_empty(self, ledger):
        all_time = ledger.all_time_totals(Baseline.empty())
        text = format_stats(all_time, ledger.this_session_totals())
        assert "Entries (all-time): 0" in text
        assert "  (no entries yet)" in text
        assert "  XP by category: (none yet)" in text

    def test_format_stats_with_baseline(self, ledger):
        baseline = Baseline(total_xp=40, entry_count=1, per_category_xp={"WRITING": 40})
        ledger.record_minutes("STUDY", 2)
        text = format_stats(ledger.all_time_totals(baseline), ledger.this_session_totals())
        lines = text.splitlines()
        assert lines[0] == "Entries (all-time): 2"
        assert "  WRITING  : 40" in lines
        assert lines[-2:] == ["  Entries: 1", "  STUDY    : 10"]

    def test_level_text(self, unit_ledger):
        unit_ledger.record_minutes("STUDY", 999)
        assert level_text(unit_ledger.this_session_totals()) == "Level: 1  (999/1000 to next)"
