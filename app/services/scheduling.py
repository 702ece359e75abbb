"""
Pure scheduling helpers: interval arithmetic, slot generation and the
appointment status rules.

Nothing here touches the database, so the appointment service and the
tests share exactly the same rules.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from app.core.exceptions import PermissionDeniedError, ValidationError

Interval = Tuple[datetime, datetime]

# Statuses whose time range still occupies the coach's calendar
BLOCKING_STATUSES = ("scheduled", "confirmed", "completed", "no_show")
TERMINAL_STATUSES = ("completed", "cancelled", "no_show")
CLIENT_SETTABLE_STATUSES = ("confirmed", "cancelled")


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def appointment_window(start: datetime, duration_minutes: int) -> Interval:
    """Half-open [start, start + duration) in UTC."""
    if duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")
    start = as_utc(start)
    return start, start + timedelta(minutes=duration_minutes)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """[a_start, a_end) and [b_start, b_end) intersect iff a_start < b_end and b_start < a_end.

    Touching intervals (one ends exactly when the other starts) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def overlaps_any(window: Interval, busy: Iterable[Interval]) -> bool:
    start, end = window
    return any(intervals_overlap(start, end, b_start, b_end) for b_start, b_end in busy)


def generate_available_slots(
    day: date,
    duration_minutes: int,
    busy: Iterable[Interval],
    window_start_hour: int = 8,
    window_end_hour: int = 18,
    not_before: Optional[datetime] = None,
) -> List[datetime]:
    """
    Enumerate back-to-back slots of ``duration_minutes`` across the working
    window of ``day`` (UTC) and keep the ones that overlap nothing in ``busy``.

    Args:
        day: Calendar day to enumerate
        duration_minutes: Slot length, also the step between slot starts
        busy: Existing [start, end) intervals for the coach
        window_start_hour: First slot start
        window_end_hour: Every slot must end by this hour
        not_before: Drop slots starting before this instant (e.g. now)

    Returns:
        Slot start times in ascending order
    """
    if duration_minutes <= 0:
        raise ValidationError("duration must be positive")
    if not 0 <= window_start_hour < window_end_hour <= 24:
        raise ValidationError("Invalid working window")

    busy = [(as_utc(start), as_utc(end)) for start, end in busy]
    step = timedelta(minutes=duration_minutes)
    cursor = datetime.combine(day, time(window_start_hour), tzinfo=timezone.utc)
    window_end = datetime.combine(day, time(0), tzinfo=timezone.utc) + timedelta(hours=window_end_hour)
    cutoff = as_utc(not_before) if not_before else None

    slots = []
    while cursor + step <= window_end:
        if (cutoff is None or cursor >= cutoff) and not overlaps_any((cursor, cursor + step), busy):
            slots.append(cursor)
        cursor += step
    return slots


def validate_status_change(actor_role: str, current: str, new: str) -> None:
    """
    Enforce who may move an appointment into which status.

    Clients may only confirm or cancel, and only while the appointment is
    still open. ``no_show`` is reserved for coaches and admins, who may
    otherwise set any status.

    Raises:
        PermissionDeniedError: The actor's role may not set ``new``
        ValidationError: The transition is not possible from ``current``
    """
    if new == current:
        return

    if actor_role == "client":
        if new not in CLIENT_SETTABLE_STATUSES:
            raise PermissionDeniedError("Clients can only confirm or cancel appointments")
        if current in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot change an appointment that is {current}")
        if new == "confirmed" and current != "scheduled":
            raise ValidationError(f"Cannot confirm an appointment that is {current}")
        return

    if actor_role not in ("coach", "admin"):
        raise PermissionDeniedError("Not allowed to change appointment status")
