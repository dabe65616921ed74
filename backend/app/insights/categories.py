from __future__ import annotations

from types import MappingProxyType

WORK = "Work"
HEALTH = "Health"
TRAVEL = "Travel"
RELATIONSHIPS = "Relationships"
STUDIES = "Studies"
FINANCE = "Finance"
SELF_CARE = "Self-care"
HOBBIES = "Hobbies"
PERSONAL = "Personal"

CATEGORIES: tuple[str, ...] = (
    WORK,
    HEALTH,
    TRAVEL,
    RELATIONSHIPS,
    STUDIES,
    FINANCE,
    SELF_CARE,
    HOBBIES,
    PERSONAL,
)

_CATEGORY_TAGS: dict[str, tuple[str, ...]] = {
    WORK: ("Work", "Career", "Projects", "Planning"),
    HEALTH: ("Health", "Fitness", "Exercise", "Yoga"),
    TRAVEL: ("Travel", "Vacation", "Holiday", "Nature"),
    RELATIONSHIPS: ("Family", "Friends", "Relationships", "Parenting"),
    STUDIES: ("Studies", "Reading", "Writing", "Reflection"),
    FINANCE: ("Finance", "Shopping"),
    SELF_CARE: ("Self-care", "Meditation", "Personal Growth", "Spirituality"),
    HOBBIES: ("Hobbies", "Music", "Cooking"),
    PERSONAL: ("Birthday", "Celebration"),
}

# casefolded tag -> category
TAG_CATEGORIES = MappingProxyType(
    {
        tag.casefold(): category
        for category, tags in _CATEGORY_TAGS.items()
        for tag in tags
    }
)


def category_for_tag(tag: str) -> str | None:
    return TAG_CATEGORIES.get(tag.strip().casefold())


__all__ = ["CATEGORIES", "TAG_CATEGORIES", "category_for_tag"]
