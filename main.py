"""Entry point for the XP tracker.

Running this file asks for a username, loads that user's saved history
from ``xp_log.txt`` and opens the ``XPTrackerApp`` window defined in
``xptracker.ui``.
"""

from xptracker.config import load_settings, setup_logging
from xptracker.ui import XPTrackerApp


def main() -> None:
    settings = load_settings()
    setup_logging(settings.debug_log_file, settings.log_level)
    # Instantiate and run the primary application window
    app = XPTrackerApp(settings)
    app.mainloop()


if __name__ == "__main__":
    main()
