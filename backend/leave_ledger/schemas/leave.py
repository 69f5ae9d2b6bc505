# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leave_ledger.models.enums import DayPart

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeaveRequest(BaseModel):
    """Request body for recording a leave.

    ``total_days`` is optional; when omitted it is derived from the day part
    (0.5 for a half day) or from the inclusive span length.
    """

    user_id: uuid.UUID
    policy_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal | None = Field(default=None, max_digits=6, decimal_places=2)
    day_part: DayPart | None = None
    notes: str | None = None


class UpdateLeaveRequest(BaseModel):
    """Partial update for a leave. Only the fields that are set are applied."""

    policy_id: uuid.UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    total_days: Decimal | None = Field(default=None, max_digits=6, decimal_places=2)
    day_part: DayPart | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.start_date is not None and self.end_date is not None and self.end_date < self.start_date:
            msg = "end_date cannot be before start_date"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a single leave."""

    id: uuid.UUID
    user_id: uuid.UUID
    policy_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal
    day_part: DayPart | None
    notes: str | None
    created_at: datetime


class LeaveListResponse(BaseModel):
    """All leaves of a user."""

    items: list[LeaveResponse]
    total: int
