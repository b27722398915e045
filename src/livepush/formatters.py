"""Formatting helpers for notification text."""

from __future__ import annotations


def format_centiseconds(value: int | None) -> str:
    """Format centiseconds as m:ss or h:mm:ss, or '\u2014' if None."""
    if value is None:
        return "\u2014"
    total = max(value, 0) // 100
    hours, rest = divmod(total, 3600)
    mins, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def format_time_behind(value: int | None) -> str | None:
    """Format a deficit as +m:ss. Zero means leading, None means unknown."""
    if value is None:
        return None
    if value == 0:
        return "leading"
    return f"+{format_centiseconds(value)}"


def format_result(value: str | None) -> str:
    """Render a provider time field.

    With unformatted times the provider sends plain centiseconds; anything
    else is already human readable and passes through.
    """
    if not value:
        return ""
    text = value.strip()
    if text.isdigit():
        return format_centiseconds(int(text))
    if text.startswith("+") and text[1:].isdigit():
        return format_time_behind(int(text[1:])) or ""
    return text


def format_place(place: int | str | None) -> str | None:
    if place is None or place == "":
        return None
    return str(place)
