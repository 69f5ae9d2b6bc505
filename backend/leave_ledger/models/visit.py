# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import UUIDBase


class OfficeVisit(UUIDBase, table=True):
    """Where a user worked on a given date. At most one per user per day."""

    __tablename__ = "office_visit"
    __table_args__ = (sa.UniqueConstraint("user_id", "visit_date", name="uq_office_visit_user_date"),)

    user_id: uuid.UUID = Field(index=True)
    visit_date: date = Field(index=True)
    day_of_week: int
    visit_type: str | None = Field(default=None, max_length=32)
    notes: str | None = Field(default=None, sa_type=sa.Text)
