# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime

from pydantic import BaseModel

from leave_ledger.models.enums import DayLabel


class CalendarDayView(BaseModel):
    """One calendar date with its holiday, leave and visit details overlaid."""

    date: datetime.date
    day_of_week: int
    label: DayLabel = DayLabel.NONE
    holiday_name: str | None = None
    holiday_type: str | None = None
    leave_policy_code: str | None = None
    leave_days: str | None = None
    leave_day_part: str | None = None
    leave_notes: str | None = None
    visit_type: str | None = None
    visit_notes: str | None = None


class PeriodAggregate(BaseModel):
    """Visit, leave and holiday totals for one month, year or ISO week."""

    period: str
    wfo: int = 0
    wfh: int = 0
    hybrid: int = 0
    others: int = 0
    leave: int = 0
    holiday: int = 0
