from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING

from ..metrics import INSIGHTS_LATENCY
from ..utils.dates import as_date
from ..utils.text import count_words, split_labels, strip_html
from .categories import category_for_tag
from .models import NO_MOOD, AnalyticsResult, JournalEntryRecord, NameCount, NameCountPct

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..services.storage import StorageService

logger = logging.getLogger(__name__)

TOP_TAGS_LIMIT = 12
DEFAULT_MOOD = "Neutral"
CANONICAL_MOODS: tuple[str, ...] = ("Positive", "Neutral", "Negative")
_CANONICAL_LOOKUP = {mood.casefold(): mood for mood in CANONICAL_MOODS}


class InsightsEngine:
    """Compute analytics snapshots over a user's journal."""

    def __init__(self, storage: StorageService) -> None:
        self._storage = storage

    async def get_insights(
        self,
        user_id: int,
        start: date | datetime,
        end: date | datetime,
    ) -> AnalyticsResult:
        start_day = as_date(start)
        end_day = as_date(end)
        started = time.perf_counter()
        records = await self._storage.fetch_entry_records(user_id, start_day, end_day)
        result = compute_insights(records, start_day, end_day)
        INSIGHTS_LATENCY.observe(time.perf_counter() - started)
        logger.debug(
            "insights computed",
            extra={
                "extra_fields": {
                    "entries": result.total_entries,
                    "range_days": (end_day - start_day).days + 1,
                }
            },
        )
        return result


def compute_insights(
    entries: Iterable[JournalEntryRecord],
    start: date | datetime,
    end: date | datetime,
) -> AnalyticsResult:
    """Aggregate entries falling inside ``[start, end]``.

    Records dated outside the range are ignored. An inverted range yields
    the empty result.
    """

    start_day = as_date(start)
    end_day = as_date(end)
    if start_day > end_day:
        return AnalyticsResult(
            start=start_day,
            end=end_day,
            mood_counts=MappingProxyType(dict.fromkeys(CANONICAL_MOODS, 0)),
            mood_percentages=MappingProxyType(dict.fromkeys(CANONICAL_MOODS, 0)),
        )

    in_range = [
        entry for entry in entries if start_day <= as_date(entry.entry_date) <= end_day
    ]
    total = len(in_range)
    entry_dates = {as_date(entry.entry_date) for entry in in_range}

    mood_counts = _tally(
        (_normalize_mood(entry.mood) for entry in in_range),
        seed=CANONICAL_MOODS,
    )
    mood_percentages = {
        label: _percent(count, total) for label, count in mood_counts.items()
    }
    most_frequent = _rank(mood_counts)[0][0] if total else NO_MOOD

    tag_counts = _tally(
        tag for entry in in_range for tag in split_labels(entry.tags)
    )
    top_tags = tuple(
        NameCount(name, count) for name, count in _rank(tag_counts)[:TOP_TAGS_LIMIT]
    )

    category_counts: Counter[str] = Counter()
    for entry in in_range:
        categories = {
            category
            for category in map(category_for_tag, split_labels(entry.tags))
            if category is not None
        }
        category_counts.update(categories)
    tag_breakdown = tuple(
        NameCountPct(name, count, _percent(count, total))
        for name, count in _rank(category_counts)
    )

    return AnalyticsResult(
        start=start_day,
        end=end_day,
        total_entries=total,
        mood_counts=MappingProxyType(mood_counts),
        mood_percentages=MappingProxyType(mood_percentages),
        most_frequent_mood=most_frequent,
        current_streak=_current_streak(end_day, entry_dates),
        longest_streak=_longest_streak(start_day, end_day, entry_dates),
        missed_days=tuple(day for day in _iter_days(start_day, end_day) if day not in entry_dates),
        top_tags=top_tags,
        tag_breakdown=tag_breakdown,
        avg_words_by_day=MappingProxyType(_average_words_by_day(in_range)),
    )


def _iter_days(start: date, end: date) -> Iterator[date]:
    # offsets from start never step past date.max
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def _normalize_mood(mood: str | None) -> str:
    value = (mood or "").strip()
    if not value:
        return DEFAULT_MOOD
    return _CANONICAL_LOOKUP.get(value.casefold(), value)


def _tally(labels: Iterable[str], seed: Sequence[str] = ()) -> dict[str, int]:
    """Count labels case-insensitively, keyed by the first spelling seen."""

    display: dict[str, str] = {}
    counts: Counter[str] = Counter()
    for label in seed:
        key = label.casefold()
        display.setdefault(key, label)
        counts.setdefault(key, 0)
    for label in labels:
        key = label.casefold()
        display.setdefault(key, label)
        counts[key] += 1
    return {display[key]: counts[key] for key in display}


def _rank(counts: dict[str, int] | Counter[str]) -> list[tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: (-item[1], item[0].casefold(), item[0]))


def _percent(count: int, total: int) -> int:
    # round() is half-to-even
    return round(count * 100 / total) if total else 0


def _current_streak(end: date, entry_dates: set[date]) -> int:
    streak = 0
    check = end
    while check in entry_dates:
        streak += 1
        if check == date.min:
            break
        check -= timedelta(days=1)
    return streak


def _longest_streak(start: date, end: date, entry_dates: set[date]) -> int:
    longest = 0
    current = 0
    for day in _iter_days(start, end):
        if day in entry_dates:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def _average_words_by_day(entries: Sequence[JournalEntryRecord]) -> dict[date, int]:
    totals: dict[date, list[int]] = {}
    for entry in entries:
        bucket = totals.setdefault(as_date(entry.entry_date), [0, 0])
        bucket[0] += count_words(strip_html(entry.content))
        bucket[1] += 1
    return {
        day: round(words / count)
        for day, (words, count) in sorted(totals.items())
    }


__all__ = [
    "CANONICAL_MOODS",
    "InsightsEngine",
    "TOP_TAGS_LIMIT",
    "compute_insights",
]
