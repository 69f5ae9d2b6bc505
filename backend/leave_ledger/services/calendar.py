"""Calendar views that merge holidays, leaves and office visits.

Two read-only views are built here: a per-day view for one user, and per-period
totals (month, year or ISO week) for one user or everyone. Leave days in the
totals are spread with the same per-day share the ledger uses.
"""

from __future__ import annotations

import calendar
import logging
from collections import Counter, defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from leave_ledger.config import get_settings
from leave_ledger.exceptions import InvalidArgumentError, NotFoundError, RangeTooLargeError
from leave_ledger.models.enums import DayLabel, VisitType
from leave_ledger.schemas.calendar import CalendarDayView, PeriodAggregate
from leave_ledger.services.directory import get_user_directory
from leave_ledger.services.distribution import distribute_within_window, iter_days, span_days
from leave_ledger.services.holiday import fetch_holidays_between
from leave_ledger.services.leave import find_overlapping_leaves
from leave_ledger.services.periods import Granularity, enumerate_periods, period_key
from leave_ledger.services.policy import get_policy_codes
from leave_ledger.services.visit import fetch_visits_between

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_ONE = Decimal(1)


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def resolve_window(
    from_date: date | None = None,
    to_date: date | None = None,
    year: int | None = None,
    month: int | None = None,
    *,
    today: date | None = None,
) -> tuple[date, date]:
    """Turn daily-view query parameters into a concrete ``(from, to)`` window.

    An explicit from/to pair wins, then a year/month pair, then the current
    month. The window may not be inverted or longer than
    ``daily_view_max_range_days``.
    """
    if from_date is not None and to_date is not None:
        start, end = from_date, to_date
    elif year is not None and month is not None:
        if not 1 <= month <= 12:
            logger.warning("Rejected daily view window: invalid month=%s", month)
            raise InvalidArgumentError(f"Invalid month: {month}")
        try:
            start, end = _month_bounds(year, month)
        except ValueError:
            raise InvalidArgumentError(f"Invalid year/month: {year}-{month}") from None
    else:
        current = today or date.today()
        start, end = _month_bounds(current.year, current.month)

    if start > end:
        logger.warning("Rejected daily view window: from %s is after to %s", start, end)
        raise InvalidArgumentError("from date cannot be after to date")

    max_days = get_settings().daily_view_max_range_days
    days = span_days(start, end)
    if days > max_days:
        logger.warning("Rejected daily view window: %d days exceeds %d", days, max_days)
        raise RangeTooLargeError(f"Date range too large: {days} days (max {max_days})")

    return start, end


async def get_daily_view(
    session: AsyncSession,
    user_id: uuid.UUID,
    from_date: date | None = None,
    to_date: date | None = None,
    year: int | None = None,
    month: int | None = None,
) -> list[CalendarDayView]:
    """One entry per date of the window with holiday, leave and visit details.

    Details are overlaid in that order. A holiday always labels its day; a
    leave or visit only labels a day nothing else has claimed yet, but their
    details are still filled in.
    """
    if not await get_user_directory().exists_user(user_id):
        raise NotFoundError(f"User not found with id: {user_id}")
    start, end = resolve_window(from_date, to_date, year, month)
    logger.debug("get_daily_view user_id=%s from=%s to=%s", user_id, start, end)

    holidays = await fetch_holidays_between(session, start, end)
    leaves = await find_overlapping_leaves(session, start, end, user_id)
    visits = await fetch_visits_between(session, start, end, user_id)
    policy_codes = await get_policy_codes(session, {lv.policy_id for lv in leaves})

    days = {day: CalendarDayView(date=day, day_of_week=day.isoweekday()) for day in iter_days(start, end)}

    for holiday in holidays:
        view = days.get(holiday.holiday_date)
        if view is None:
            continue
        view.holiday_name = holiday.name
        view.holiday_type = holiday.holiday_type
        view.label = DayLabel.HOLIDAY

    for leave in leaves:
        first = max(leave.start_date, start)
        last = min(leave.end_date, end)
        for day in iter_days(first, last):
            view = days[day]
            view.leave_policy_code = policy_codes.get(leave.policy_id)
            view.leave_days = format(leave.total_days, "f")
            view.leave_day_part = leave.day_part
            view.leave_notes = leave.notes
            if view.label == DayLabel.NONE:
                view.label = DayLabel.LEAVE

    for visit in visits:
        view = days.get(visit.visit_date)
        if view is None:
            continue
        view.visit_type = visit.visit_type
        view.visit_notes = visit.notes
        if view.label == DayLabel.NONE:
            view.label = DayLabel.VISIT

    return list(days.values())


async def get_period_aggregates(
    session: AsyncSession,
    from_date: date,
    to_date: date,
    group_by: str | Granularity,
    user_id: uuid.UUID | None = None,
) -> list[PeriodAggregate]:
    """Visit, leave and holiday totals for every period touched by the window.

    Periods with nothing in them are still returned, with zero counts. Leave
    days are summed as fractions per period and rounded half-up to a whole
    number only at the end. Without a ``user_id`` every user is counted.
    """
    grain = Granularity.parse(group_by)
    if from_date > to_date:
        raise InvalidArgumentError("from date cannot be after to date")
    logger.debug("get_period_aggregates user_id=%s from=%s to=%s group_by=%s", user_id, from_date, to_date, grain)

    visits = await fetch_visits_between(session, from_date, to_date, user_id)
    leaves = await find_overlapping_leaves(session, from_date, to_date, user_id)
    holidays = await fetch_holidays_between(session, from_date, to_date)

    def key_fn(day: date) -> str:
        return period_key(day, grain)

    visit_counts: dict[str, Counter[VisitType]] = defaultdict(Counter)
    for visit in visits:
        visit_counts[key_fn(visit.visit_date)][VisitType.bucket_for(visit.visit_type)] += 1

    leave_days: dict[str, Decimal] = defaultdict(Decimal)
    for leave in leaves:
        shares = distribute_within_window(
            leave.start_date, leave.end_date, leave.total_days, from_date, to_date, key_fn
        )
        for key, amount in shares.items():
            leave_days[key] += amount

    holiday_counts = Counter(key_fn(h.holiday_date) for h in holidays)

    aggregates: list[PeriodAggregate] = []
    for period in enumerate_periods(from_date, to_date, grain):
        counts = visit_counts.get(period, Counter())
        leave_total = leave_days.get(period, Decimal(0))
        aggregates.append(
            PeriodAggregate(
                period=period,
                wfo=counts[VisitType.WFO],
                wfh=counts[VisitType.WFH],
                hybrid=counts[VisitType.HYBRID],
                others=counts[VisitType.OTHERS],
                leave=int(leave_total.quantize(_ONE, rounding=ROUND_HALF_UP)),
                holiday=holiday_counts.get(period, 0),
            )
        )
    return aggregates
