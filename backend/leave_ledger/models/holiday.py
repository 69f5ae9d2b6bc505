# ruff: noqa: TC003
from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import UUIDBase
from leave_ledger.models.enums import HolidayType


class Holiday(UUIDBase, table=True):
    """An organisation-wide holiday shown on every user's calendar."""

    __tablename__ = "holiday"
    __table_args__ = (sa.UniqueConstraint("holiday_date", "name", name="uq_holiday_date_name"),)

    holiday_date: datetime.date = Field(index=True)
    name: str = Field(max_length=100)
    holiday_type: str = Field(default=HolidayType.MANDATORY, max_length=16)
    description: str | None = Field(default=None, sa_type=sa.Text)
