# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel

from leave_ledger.models.enums import VisitType


class UpsertVisitRequest(BaseModel):
    """Record where a user worked on a date, replacing any earlier entry."""

    user_id: uuid.UUID
    visit_date: date
    visit_type: VisitType
    notes: str | None = None


class VisitResponse(BaseModel):
    """Response schema for an office visit."""

    id: uuid.UUID
    user_id: uuid.UUID
    visit_date: date
    day_of_week: int
    visit_type: VisitType | None
    notes: str | None


class VisitListResponse(BaseModel):
    """Visits of a user in a date range."""

    items: list[VisitResponse]
    total: int
