# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from leave_ledger.db import SessionDep
from leave_ledger.schemas.holiday import CreateHolidayRequest, HolidayListResponse, HolidayResponse
from leave_ledger.services import holiday as holiday_service

holidays_router = APIRouter(prefix="/holidays", tags=["holidays"])


@holidays_router.post(
    "",
    response_model=HolidayResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_holiday(
    payload: CreateHolidayRequest,
    session: SessionDep,
) -> HolidayResponse:
    """Create a holiday."""
    return await holiday_service.create_holiday(session, payload)


@holidays_router.get(
    "",
    response_model=HolidayListResponse,
)
async def list_holidays(
    session: SessionDep,
    from_date: date | None = Query(default=None, alias="from"),
    to_date: date | None = Query(default=None, alias="to"),
) -> HolidayListResponse:
    """List holidays with an optional date range."""
    return await holiday_service.list_holidays(session, from_date, to_date)


@holidays_router.delete(
    "/{holiday_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
) -> None:
    """Delete a holiday."""
    await holiday_service.delete_holiday(session, holiday_id)
