"""
Domain time utilities (pure).

Centralized timestamp validation plus the calendar-day helpers used by the
report date window.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError

DateLike = Union[date, str, None]

# Last representable instant of a day at millisecond precision.
END_OF_DAY = time(23, 59, 59, 999000)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the requirement that stored timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timezone(name: str) -> tzinfo:
    """Resolve an IANA timezone name; "UTC" never needs the tz database."""

    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown timezone: {name!r}") from exc


def parse_date(name: str, value: DateLike) -> Optional[date]:
    """Accept a date, a datetime (its date part) or an ISO 'YYYY-MM-DD' string."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}") from exc
    raise ValidationError(f"{name} must be a date, got {type(value).__name__}")


def day_bounds(
    start: DateLike,
    end: DateLike,
    tz: tzinfo = timezone.utc,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Convert a calendar-date window into a closed UTC instant window.

    The start bound is 00:00:00.000 of the start day and the end bound is
    23:59:59.999 of the end day, both interpreted in ``tz``. Either side may be
    omitted, in which case that side is open.
    """

    start_day = parse_date("start", start)
    end_day = parse_date("end", end)

    if start_day and end_day and start_day > end_day:
        raise ValidationError(f"start ({start_day}) must not be after end ({end_day})")

    lower = None
    upper = None
    if start_day is not None:
        lower = datetime.combine(start_day, time.min, tzinfo=tz).astimezone(timezone.utc)
    if end_day is not None:
        upper = datetime.combine(end_day, END_OF_DAY, tzinfo=tz).astimezone(timezone.utc)
    return lower, upper


def format_local(value: datetime, tz: tzinfo = timezone.utc) -> str:
    """Render a timestamp as 'M/D/YYYY, h:MM:SS AM' in the given timezone."""

    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
