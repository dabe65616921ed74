from __future__ import annotations

import html
import re
from collections.abc import Iterable

_TAG_RE = re.compile(r"<.*?>")
_WORD_RE = re.compile(r"\b(?:[^\W_]|')+\b", flags=re.UNICODE)


def strip_html(value: str | None) -> str:
    """Drop markup from rich text and decode entities."""

    if not value or not value.strip():
        return ""
    no_tags = _TAG_RE.sub("", value)
    return html.unescape(no_tags).strip()


def count_words(text: str | None) -> int:
    if not text or not text.strip():
        return 0
    return len(_WORD_RE.findall(text))


def split_labels(csv_value: str | None) -> list[str]:
    """Parse a comma-separated label field.

    Tokens are trimmed, empty tokens dropped and duplicates removed
    case-insensitively. The first spelling seen wins.
    """

    if not csv_value or not csv_value.strip():
        return []
    seen: set[str] = set()
    labels: list[str] = []
    for raw in csv_value.split(","):
        label = raw.strip()
        if not label:
            continue
        key = label.casefold()
        if key in seen:
            continue
        seen.add(key)
        labels.append(label)
    return labels


def join_labels(labels: Iterable[str] | None) -> str:
    if not labels:
        return ""
    return ",".join(split_labels(",".join(labels)))


def snippet_from_html(value: str | None, max_len: int = 90) -> str:
    text = strip_html(value).replace("\r", "").replace("\n", " ").strip()
    if len(text) > max_len:
        return text[:max_len] + "..."
    return text


def has_real_text(value: str | None) -> bool:
    return bool(strip_html(value).strip())


__all__ = [
    "count_words",
    "has_real_text",
    "join_labels",
    "snippet_from_html",
    "split_labels",
    "strip_html",
]
