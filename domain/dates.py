"""Calendar date arithmetic.

Stays are calendar dates without a time component, so all arithmetic is done
on ``datetime.date``. Wall-clock instants (notification anchors, audit
timestamps) are naive local datetimes. Where a date has to become an instant
without a meaningful time, it is anchored at local noon.
"""
import re
from datetime import date, datetime, time, timedelta
from typing import Any

NEUTRAL_TIME = time(12, 0)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DMY_DATE = re.compile(r"^\d{2}-\d{2}-\d{4}$")


def today() -> date:
    """Current calendar day on the local clock"""
    return date.today()


def tomorrow() -> date:
    return add_days(today(), 1)


def now() -> datetime:
    """Current local wall-clock instant"""
    return datetime.now()


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def nights_between(check_in: date, check_out: date) -> int:
    """Number of nights between two calendar dates (negative if reversed)"""
    return (check_out - check_in).days


def days_inclusive(start: date, end: date) -> int:
    """Inclusive day count used for display, e.g. 01-07 to 04-07 is 4 days"""
    return nights_between(start, end) + 1


def format_for_display(value: date) -> str:
    """Format a calendar date as DD-MM-YYYY"""
    return value.strftime("%d-%m-%Y")


def at_time(value: date, wall_clock: time = NEUTRAL_TIME) -> datetime:
    """Anchor a calendar date at a local wall-clock time"""
    return datetime.combine(value, wall_clock)


def parse_time(value: str) -> time:
    """Parse an HH:MM wall-clock time"""
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


def _unwrap(value: Any) -> Any:
    """Convert storage timestamp wrappers into plain datetimes"""
    for method in ("to_datetime", "ToDatetime", "toDate"):
        converter = getattr(value, method, None)
        if callable(converter):
            return converter()
    return value


def parse_date(value: Any) -> date:
    """Normalize any supported date representation to a calendar date"""
    value = _unwrap(value)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if "T" in text or " " in text:
            text = re.split(r"[T ]", text, maxsplit=1)[0]
        if _ISO_DATE.match(text):
            return date.fromisoformat(text)
        if _DMY_DATE.match(text):
            day, month, year = text.split("-")
            return date(int(year), int(month), int(day))
    raise ValueError(f"Unrecognized date value: {value!r}")


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_timestamp(value: Any) -> datetime:
    """Normalize any supported timestamp representation to a local datetime"""
    value = _unwrap(value)
    if isinstance(value, datetime):
        return _to_local_naive(value)
    if isinstance(value, date):
        return at_time(value)
    if isinstance(value, str):
        text = value.strip()
        if _ISO_DATE.match(text) or _DMY_DATE.match(text):
            return at_time(parse_date(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _to_local_naive(datetime.fromisoformat(text))
        except ValueError:
            return at_time(parse_date(text))
    raise ValueError(f"Unrecognized timestamp value: {value!r}")
