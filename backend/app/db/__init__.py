"""Database models for Daybook."""

from .models import (
    Base,
    JournalEntry,
    SessionToken,
    SettingEntry,
    User,
)

__all__ = [
    "Base",
    "JournalEntry",
    "SessionToken",
    "SettingEntry",
    "User",
]
