"""Period keys for calendar aggregation: month, year and ISO week buckets."""

from __future__ import annotations

import enum
from datetime import date, timedelta

from leave_ledger.exceptions import UnsupportedGranularityError

_ONE_WEEK = timedelta(days=7)


class Granularity(enum.StrEnum):
    """Size of the bucket a date is grouped into."""

    MONTH = "month"
    YEAR = "year"
    WEEK = "week"

    @classmethod
    def parse(cls, value: str | Granularity | None) -> Granularity:
        """Normalise a caller-supplied groupBy value, rejecting anything unknown."""
        if isinstance(value, Granularity):
            return value
        normalized = (value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedGranularityError(value) from None


def period_key(day: date, granularity: str | Granularity) -> str:
    """Return the bucket key for ``day``.

    ``month`` -> ``"YYYY-MM"``, ``year`` -> ``"YYYY"`` and ``week`` ->
    ``"YYYY-Www"`` using the ISO week-based year, so 2024-12-30 maps to
    ``"2025-W01"``.
    """
    match Granularity.parse(granularity):
        case Granularity.MONTH:
            return f"{day.year:04d}-{day.month:02d}"
        case Granularity.YEAR:
            return f"{day.year:04d}"
        case Granularity.WEEK:
            iso = day.isocalendar()
            return f"{iso.year:04d}-W{iso.week:02d}"


def _next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def enumerate_periods(from_date: date, to_date: date, granularity: str | Granularity) -> list[str]:
    """List every period key touched by ``[from_date, to_date]`` in chronological order.

    Partial periods at either end are included. An empty list is returned when
    ``from_date`` is after ``to_date``.
    """
    grain = Granularity.parse(granularity)
    periods: list[str] = []
    if from_date > to_date:
        return periods

    match grain:
        case Granularity.MONTH:
            cursor = date(from_date.year, from_date.month, 1)
            while cursor <= to_date:
                periods.append(period_key(cursor, grain))
                cursor = _next_month(cursor)
        case Granularity.YEAR:
            periods.extend(f"{year:04d}" for year in range(from_date.year, to_date.year + 1))
        case Granularity.WEEK:
            # Walk Mondays so a trailing partial week is never stepped over.
            cursor = from_date - timedelta(days=from_date.weekday())
            while cursor <= to_date:
                periods.append(period_key(cursor, grain))
                cursor += _ONE_WEEK

    return periods
