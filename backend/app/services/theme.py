from __future__ import annotations

LIGHT = "light"
DARK = "dark"
DEFAULT_THEME = LIGHT


def normalize_theme(value: str | None) -> str:
    """Map any incoming theme name onto ``light`` or ``dark``."""

    theme = (value or "").strip().lower()
    if theme.startswith("theme-"):
        theme = theme.removeprefix("theme-")
    return DARK if theme == DARK else LIGHT


def css_class(theme: str | None) -> str:
    return f"theme-{normalize_theme(theme)}"


def theme_setting_key(user_id: int) -> str:
    return f"theme:{user_id}"


__all__ = ["DEFAULT_THEME", "css_class", "normalize_theme", "theme_setting_key"]
