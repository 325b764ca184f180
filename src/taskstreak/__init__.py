"""taskstreak: reactive task store with streak tracking and due-date reminders."""

__version__ = "0.1.0"
