"""Stopwatch state for the live timer row.

Only the window's once-per-second ``after`` callback calls ``tick``.  The
stopwatch never writes to the ledger; ``stop`` hands the elapsed seconds
back and the caller decides what to record.
"""
from __future__ import annotations

from typing import Optional, Tuple


def format_duration(seconds: float) -> str:
    """Format seconds into ``HH:MM:SS`` for display."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class Stopwatch:
    def __init__(self) -> None:
        self.elapsed_sec = 0
        self.running = False
        self.category: Optional[str] = None

    @property
    def locked(self) -> bool:
        """The category cannot change while timing, or after a pause until stopped."""
        return self.running or self.elapsed_sec > 0

    @property
    def display(self) -> str:
        return format_duration(self.elapsed_sec)

    def start(self, category: str) -> None:
        if not self.locked:
            self.category = category
        self.running = True

    def pause(self) -> None:
        self.running = False

    def toggle(self, category: str) -> bool:
        """Start or pause; returns whether the stopwatch is now running."""
        if self.running:
            self.pause()
        else:
            self.start(category)
        return self.running

    def tick(self) -> int:
        if self.running:
            self.elapsed_sec += 1
        return self.elapsed_sec

    def stop(self) -> Tuple[Optional[str], int]:
        """Stop, reset and return ``(category, elapsed seconds)``."""
        result = (self.category, self.elapsed_sec)
        self.running = False
        self.elapsed_sec = 0
        self.category = None
        return result
