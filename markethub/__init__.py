"""Market data hub: timers, scheduled restarts, alarm mail, tick conversion and CSV storage."""

__version__ = "0.1.0"