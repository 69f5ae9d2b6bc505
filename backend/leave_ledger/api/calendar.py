# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from leave_ledger.db import SessionDep
from leave_ledger.schemas.calendar import CalendarDayView, PeriodAggregate
from leave_ledger.services import calendar as calendar_service

calendar_router = APIRouter(prefix="/calendar", tags=["calendar"])


@calendar_router.get("/daily", response_model=list[CalendarDayView])
async def get_daily_view(
    session: SessionDep,
    user_id: uuid.UUID = Query(),
    from_date: date | None = Query(default=None, alias="from"),
    to_date: date | None = Query(default=None, alias="to"),
    year: int | None = Query(default=None),
    month: int | None = Query(default=None),
) -> list[CalendarDayView]:
    """Per-day view of a user's holidays, leaves and office visits.

    Defaults to the current month when no range or year/month is given.
    """
    return await calendar_service.get_daily_view(session, user_id, from_date, to_date, year, month)


@calendar_router.get("/aggregates", response_model=list[PeriodAggregate])
async def get_period_aggregates(
    session: SessionDep,
    from_date: date = Query(alias="from"),
    to_date: date = Query(alias="to"),
    group_by: str = Query(default="month"),
    user_id: uuid.UUID | None = Query(default=None),
) -> list[PeriodAggregate]:
    """Visit, leave and holiday totals per month, year or ISO week."""
    return await calendar_service.get_period_aggregates(session, from_date, to_date, group_by, user_id)
