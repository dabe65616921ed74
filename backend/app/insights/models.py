from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

NO_MOOD = "\u2014"


@dataclass(frozen=True, slots=True)
class JournalEntryRecord:
    """Read-only view of a journal entry as seen by the analytics engine."""

    entry_date: date
    mood: str = "Neutral"
    secondary_moods: str = ""
    tags: str = ""
    content: str = ""
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, entry: Any) -> JournalEntryRecord:
        return cls(
            entry_date=entry.entry_date,
            mood=entry.mood or "",
            secondary_moods=entry.secondary_moods_csv or "",
            tags=entry.tags_csv or "",
            content=entry.content or "",
            updated_at=entry.updated_at,
        )


@dataclass(frozen=True, slots=True)
class NameCount:
    name: str
    count: int


@dataclass(frozen=True, slots=True)
class NameCountPct:
    name: str
    count: int
    percent: int


def _frozen(mapping: Mapping[Any, int] | None = None) -> Mapping[Any, int]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True, slots=True)
class AnalyticsResult:
    """Aggregates for one user over an inclusive date range."""

    start: date
    end: date
    total_entries: int = 0
    mood_counts: Mapping[str, int] = field(default_factory=_frozen)
    mood_percentages: Mapping[str, int] = field(default_factory=_frozen)
    most_frequent_mood: str = NO_MOOD
    current_streak: int = 0
    longest_streak: int = 0
    missed_days: tuple[date, ...] = ()
    top_tags: tuple[NameCount, ...] = ()
    tag_breakdown: tuple[NameCountPct, ...] = ()
    avg_words_by_day: Mapping[date, int] = field(default_factory=_frozen)


__all__ = [
    "AnalyticsResult",
    "JournalEntryRecord",
    "NO_MOOD",
    "NameCount",
    "NameCountPct",
]
