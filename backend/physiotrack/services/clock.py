from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from physiotrack.core.settings import settings


def clinic_zone() -> ZoneInfo:
    return ZoneInfo(settings.clinic_timezone)


def local_now() -> datetime:
    """Current wall-clock time in the clinic timezone, as a naive datetime."""
    return datetime.now(clinic_zone()).replace(tzinfo=None)


def to_local_naive(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(clinic_zone()).replace(tzinfo=None)


def start_of_day(value: datetime | date) -> datetime:
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, time.min)


def day_window(value: datetime) -> tuple[datetime, datetime]:
    start = start_of_day(value)
    return start, start + timedelta(days=1)


def shift_month_start(base_date: date, months: int) -> date:
    month_index = base_date.month - 1 + months
    year = base_date.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)


def month_window(now: datetime, months_back: int) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` bounds of the calendar month ``months_back`` before ``now``."""
    first = shift_month_start(now.date().replace(day=1), -months_back)
    return start_of_day(first), start_of_day(shift_month_start(first, 1))
