from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from ..db.models import JournalEntry
from ..utils.text import snippet_from_html, split_labels


class JournalUpsert(BaseModel):
    id: int | None = Field(default=None, ge=1)
    entry_date: date
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=100_000)
    mood: str = Field(default="Neutral", max_length=50)
    secondary_moods: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @field_validator("entry_date", mode="before")
    @classmethod
    def _truncate_entry_date(cls, value: object) -> object:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @field_validator("secondary_moods", "tags", mode="before")
    @classmethod
    def _accept_csv(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return split_labels(value)
        return value

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title is required")
        return stripped


class JournalEntryModel(BaseModel):
    id: int
    entry_date: date
    title: str
    content: str
    mood: str
    secondary_moods: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    snippet: str = ""
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: JournalEntry) -> JournalEntryModel:
        return cls(
            id=entry.id,
            entry_date=entry.entry_date,
            title=entry.title,
            content=entry.content,
            mood=entry.mood,
            secondary_moods=split_labels(entry.secondary_moods_csv),
            tags=split_labels(entry.tags_csv),
            snippet=snippet_from_html(entry.content),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class JournalListResponse(BaseModel):
    items: list[JournalEntryModel]
