from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from ..insights import AnalyticsResult


class TagCount(BaseModel):
    name: str
    count: int = Field(..., ge=0)


class CategoryShare(BaseModel):
    name: str
    count: int = Field(..., ge=0)
    percent: int = Field(..., ge=0)


class AnalyticsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: date = Field(alias="from")
    end: date = Field(alias="to")
    total_entries: int
    mood_counts: dict[str, int]
    mood_percentages: dict[str, int]
    most_frequent_mood: str
    current_streak: int
    longest_streak: int
    missed_days: list[date]
    top_tags: list[TagCount]
    tag_breakdown: list[CategoryShare]
    avg_words_by_day: dict[date, int]

    @classmethod
    def from_result(cls, result: AnalyticsResult) -> AnalyticsResponse:
        return cls(
            start=result.start,
            end=result.end,
            total_entries=result.total_entries,
            mood_counts=dict(result.mood_counts),
            mood_percentages=dict(result.mood_percentages),
            most_frequent_mood=result.most_frequent_mood,
            current_streak=result.current_streak,
            longest_streak=result.longest_streak,
            missed_days=list(result.missed_days),
            top_tags=[TagCount(name=item.name, count=item.count) for item in result.top_tags],
            tag_breakdown=[
                CategoryShare(name=item.name, count=item.count, percent=item.percent)
                for item in result.tag_breakdown
            ],
            avg_words_by_day=dict(result.avg_words_by_day),
        )
