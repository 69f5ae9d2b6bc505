# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from leave_ledger.models.enums import HolidayType


class CreateHolidayRequest(BaseModel):
    """Request body for creating a holiday."""

    holiday_date: date
    name: str = Field(min_length=1, max_length=100)
    holiday_type: HolidayType = HolidayType.MANDATORY
    description: str | None = None


class HolidayResponse(BaseModel):
    """Response schema for a holiday."""

    id: uuid.UUID
    holiday_date: date
    name: str
    holiday_type: HolidayType
    description: str | None


class HolidayListResponse(BaseModel):
    """Holidays in a date range."""

    items: list[HolidayResponse]
    total: int
