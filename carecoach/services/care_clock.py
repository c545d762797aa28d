"""
Care clock: when is a plant next due, and how late is it?

All arithmetic is calendar-day based in the time zone of ``now``. Adding
``timedelta(days=n)`` to an aware datetime keeps its wall-clock time, so a
plant watered at 9am is due at 9am N days later even across a DST switch.

Policy for plants with no care history: they are immediately actionable.
``due_status`` reports them as due today (``never_logged=True``) and every
caller (state resolver, overdue-watering rule, analytics) goes through it.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Iterable, Optional

from ..models import CareEvent, CareType, DueStatus, Plant


def _to_local(value: datetime, now: datetime) -> datetime:
    """Express ``value`` in ``now``'s time zone (no-op for naive datetimes)."""
    if value.tzinfo is not None and now.tzinfo is not None:
        return value.astimezone(now.tzinfo)
    return value


def start_of_day(now: datetime) -> datetime:
    return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)


def is_same_day(value: datetime, now: datetime) -> bool:
    return _to_local(value, now).date() == now.date()


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (negative if reversed)."""
    return (_to_local(later, earlier).date() - earlier.date()).days


def next_due_date(frequency_days: int, last_event: datetime, now: Optional[datetime] = None) -> datetime:
    """``last_event`` plus ``frequency_days`` calendar days, in ``now``'s zone when given."""
    base = _to_local(last_event, now) if now is not None else last_event
    return base + timedelta(days=frequency_days)


def due_status(frequency_days: int, last_event: Optional[datetime], now: datetime) -> DueStatus:
    """
    Compute due status for one care type.

    Args:
        frequency_days: Care interval in days. Non-positive values mean
            "always overdue" rather than an error.
        last_event: When this care type was last performed, if ever
        now: Reference instant; its calendar date is "today"

    Returns:
        DueStatus with next_due, is_due_today, is_overdue, days_overdue
    """
    if last_event is None:
        return DueStatus(
            next_due=None,
            is_due_today=True,
            is_overdue=False,
            days_overdue=0,
            never_logged=True,
        )

    today = now.date()

    if frequency_days <= 0:
        last_local = _to_local(last_event, now)
        return DueStatus(
            next_due=last_local,
            is_due_today=False,
            is_overdue=True,
            days_overdue=max(1, (today - last_local.date()).days),
        )

    next_due = next_due_date(frequency_days, last_event, now)
    due_day = next_due.date()

    if due_day < today:
        return DueStatus(
            next_due=next_due,
            is_due_today=False,
            is_overdue=True,
            days_overdue=max(1, (today - due_day).days),
        )

    return DueStatus(
        next_due=next_due,
        is_due_today=due_day == today,
        is_overdue=False,
        days_overdue=0,
    )


def last_care_at(plant: Plant, care_type: CareType, events: Iterable[CareEvent] = ()) -> Optional[datetime]:
    """
    Most recent time ``care_type`` was performed on ``plant``.

    Uses the latest matching care event, falling back to the timestamp
    stored on the plant record (whichever is newer wins).
    """
    latest = plant.last_care(care_type)
    for event in events:
        if event.plant_id != plant.id or event.care_type != care_type or event.timestamp is None:
            continue
        if latest is None or event.timestamp > latest:
            latest = event.timestamp
    return latest


def watering_status(plant: Plant, now: datetime, events: Iterable[CareEvent] = ()) -> DueStatus:
    last = last_care_at(plant, CareType.WATERING, events)
    return due_status(plant.watering_frequency_days, last, now)


def fertilizing_status(plant: Plant, now: datetime, events: Iterable[CareEvent] = ()) -> DueStatus:
    last = last_care_at(plant, CareType.FERTILIZING, events)
    return due_status(plant.fertilizing_frequency_days, last, now)
