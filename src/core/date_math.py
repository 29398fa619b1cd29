"""Date arithmetic and the clock used for timestamps."""

from datetime import UTC, date, datetime, timedelta
from typing import Protocol

from dateutil import parser as date_parser


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to a settable instant."""

    def __init__(self, instant: datetime) -> None:
        self.instant = instant if instant.tzinfo else instant.replace(tzinfo=UTC)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs: float) -> None:
        self.instant += timedelta(**kwargs)


def add_days(value: date, days: int) -> date | None:
    """Add calendar days to a date; None when the result lies beyond the calendar."""
    try:
        return value + timedelta(days=days)
    except OverflowError:
        return None


def is_after(value: date, limit: date | None) -> bool:
    """True when ``limit`` is set and ``value`` falls strictly after it."""
    return limit is not None and value > limit


def to_date(value: date | datetime | str) -> date:
    """Coerce a date, datetime or date string into a calendar date.

    Raises:
        ValueError: If a string cannot be parsed as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(value).date()
    except (ValueError, OverflowError):
        pass
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError) as e:
        msg = f"Invalid date: {value}"
        raise ValueError(msg) from e


def to_datetime(value: date | datetime | str) -> datetime:
    """Coerce a value into a timezone-aware UTC datetime; naive input is taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = date_parser.isoparse(value)
        except (ValueError, OverflowError):
            try:
                parsed = date_parser.parse(value)
            except (ValueError, OverflowError) as e:
                msg = f"Invalid datetime: {value}"
                raise ValueError(msg) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def whole_years_between(start: date, end: date) -> int:
    """Completed years from ``start`` to ``end``."""
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years
