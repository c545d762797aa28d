"""
Relative date text for care states and suggestions.

Kept out of the services so the wording can be unit-tested on its own.
Both helpers take an explicit ``now`` so output is deterministic.
"""

from __future__ import annotations
from datetime import date, datetime


def _as_date(value, now: datetime) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None and now.tzinfo is not None:
            value = value.astimezone(now.tzinfo)
        return value.date()
    return value


def relative_date(value, now: datetime) -> str:
    """Convert a past date/datetime to 'today', 'yesterday', '3 days ago', ..."""
    if not value:
        return "never"

    delta = (now.date() - _as_date(value, now)).days

    if delta <= 0:
        return "today"
    elif delta == 1:
        return "yesterday"
    elif delta < 7:
        return f"{delta} days ago"
    elif delta < 14:
        return "1 week ago"
    elif delta < 30:
        weeks = delta // 7
        return f"{weeks} weeks ago"
    elif delta < 60:
        return "1 month ago"
    else:
        # Fall back to formatted date for older entries
        return _as_date(value, now).strftime("%b %d, %Y")


def relative_day(value, now: datetime) -> str:
    """Convert an upcoming date/datetime to 'today', 'tomorrow' or 'Mon DD'."""
    delta = (_as_date(value, now) - now.date()).days
    if delta <= 0:
        return "today"
    if delta == 1:
        return "tomorrow"
    return _as_date(value, now).strftime("%b %d")
