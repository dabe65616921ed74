"""Journal analytics."""

from .analytics import CANONICAL_MOODS, TOP_TAGS_LIMIT, InsightsEngine, compute_insights
from .categories import CATEGORIES, category_for_tag
from .models import NO_MOOD, AnalyticsResult, JournalEntryRecord, NameCount, NameCountPct

__all__ = [
    "AnalyticsResult",
    "CANONICAL_MOODS",
    "CATEGORIES",
    "InsightsEngine",
    "JournalEntryRecord",
    "NO_MOOD",
    "NameCount",
    "NameCountPct",
    "TOP_TAGS_LIMIT",
    "category_for_tag",
    "compute_insights",
]
