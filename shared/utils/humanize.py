"""Formatting helpers for human-friendly numbers."""
from __future__ import annotations

__all__ = ["ordinal"]


def ordinal(value: int) -> str:
    """Return ``value`` with its English ordinal suffix (``1st``, ``12th``, ``23rd``)."""

    number = int(value)
    if 10 <= abs(number) % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(abs(number) % 10, "th")
    return f"{number}{suffix}"
