"""Spread a quantity of leave days evenly over the calendar days of a span.

Every consumer that needs to know how many days a leave "counts for" in some
year or period goes through this module, so the ledger and the calendar
aggregates always agree.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, TypeVar

from leave_ledger.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

K = TypeVar("K")

# Per-day shares keep eight fractional digits; per-year totals are rounded to six.
PER_DAY_QUANTUM = Decimal("0.00000001")
YEAR_QUANTUM = Decimal("0.000001")

_ONE_DAY = timedelta(days=1)


def span_days(start: date, end: date) -> int:
    """Inclusive number of calendar days in ``start..end``."""
    return (end - start).days + 1


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each calendar day in ``start..end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += _ONE_DAY


def per_day_share(start: date, end: date, total: Decimal) -> Decimal:
    """Split ``total`` evenly over the days of ``start..end``.

    The result is rounded half-up to eight fractional digits.
    """
    span = span_days(start, end)
    if span <= 0:
        raise InvalidArgumentError(f"Invalid span {start}..{end}")
    return (Decimal(total) / Decimal(span)).quantize(PER_DAY_QUANTUM, rounding=ROUND_HALF_UP)


def clip_to_window(
    start: date,
    end: date,
    window_start: date,
    window_end: date,
) -> tuple[date, date] | None:
    """Intersect ``start..end`` with the window, or None if they do not overlap."""
    clipped_start = max(start, window_start)
    clipped_end = min(end, window_end)
    if clipped_start > clipped_end:
        return None
    return clipped_start, clipped_end


def bucket_by(
    start: date,
    end: date,
    per_day: Decimal,
    key_fn: Callable[[date], K],
) -> dict[K, Decimal]:
    """Add ``per_day`` once for every day of ``start..end`` into ``key_fn(day)``."""
    buckets: dict[K, Decimal] = defaultdict(Decimal)
    for day in iter_days(start, end):
        buckets[key_fn(day)] += per_day
    return dict(buckets)


def calendar_year(day: date) -> int:
    return day.year


def distribute_within_window(
    start: date,
    end: date,
    total: Decimal,
    window_start: date,
    window_end: date,
    key_fn: Callable[[date], K],
) -> dict[K, Decimal]:
    """Bucket the part of a leave that falls inside the window.

    The per-day share is always computed over the full ``start..end`` span,
    then only the days inside the window are counted.
    """
    clipped = clip_to_window(start, end, window_start, window_end)
    if clipped is None:
        return {}
    per_day = per_day_share(start, end, total)
    return bucket_by(clipped[0], clipped[1], per_day, key_fn)


def distribute_across_years(start: date, end: date, total: Decimal) -> dict[int, Decimal]:
    """Per-calendar-year share of a leave, each rounded half-up to six digits."""
    per_day = per_day_share(start, end, total)
    buckets = bucket_by(start, end, per_day, calendar_year)
    return {year: amount.quantize(YEAR_QUANTUM, rounding=ROUND_HALF_UP) for year, amount in sorted(buckets.items())}
