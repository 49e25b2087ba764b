"""Date range and age labels derived from photo capture times."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

_DAYS_PER_WEEK = 7
_WEEK_BAND_END_DAYS = 60
_MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class TemporalMetadata:
    """Human-readable date range and age for a set of photos."""

    date_range: str = ""
    age_string: str = ""


def describe_photo_dates(
    taken_at: Iterable[datetime | None], birthday: date | None = None
) -> TemporalMetadata:
    """Build the date range and age labels for a set of capture times.

    Missing capture times are ignored. The age is measured at the midpoint
    between the earliest and latest capture time.
    """
    known = [value for value in taken_at if value is not None]
    if not known:
        return TemporalMetadata()
    earliest = min(known)
    latest = max(known)
    age_string = ""
    if birthday is not None:
        midpoint = earliest + (latest - earliest) / 2
        age_string = format_age(birthday, midpoint.date())
    return TemporalMetadata(
        date_range=format_date_range(earliest.date(), latest.date()),
        age_string=age_string,
    )


def format_date_range(start: date, end: date) -> str:
    """Format an inclusive date range for a page header."""
    if start == end:
        return f"{start:%B} {start.day}, {start.year}"
    if (start.year, start.month) == (end.year, end.month):
        return f"{start:%B} {start.day}–{end.day}, {start.year}"
    if start.year == end.year:
        return f"{start:%b} {start.day} – {end:%b} {end.day}, {end.year}"
    return (
        f"{start:%b} {start.day}, {start.year} – "
        f"{end:%b} {end.day}, {end.year}"
    )


def format_age(birthday: date, on: date) -> str:
    """Return the child's age on a given day, or an empty string before birth."""
    if on < birthday:
        return ""
    days = (on - birthday).days
    if days == 0:
        return "Newborn"
    if days < _DAYS_PER_WEEK:
        return f"{_plural(days, 'day')} old"
    if days < _WEEK_BAND_END_DAYS:
        return f"{_plural(days // _DAYS_PER_WEEK, 'week')} old"

    years, months = _whole_years_and_months(birthday, on)
    if years == 0:
        return f"{_plural(months, 'month')} old"
    if months == 0:
        return f"{_plural(years, 'year')} old"
    return f"{_plural(years, 'year')}, {_plural(months, 'month')} old"


def _whole_years_and_months(birthday: date, on: date) -> tuple[int, int]:
    total_months = (on.year - birthday.year) * _MONTHS_PER_YEAR + (
        on.month - birthday.month
    )
    if on.day < birthday.day:
        total_months -= 1
    return divmod(total_months, _MONTHS_PER_YEAR)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
