from __future__ import annotations

from datetime import date, datetime


def as_date(value: date | datetime) -> date:
    """Truncate a timestamp to its calendar day."""

    if isinstance(value, datetime):
        return value.date()
    return value


__all__ = ["as_date"]
