from sqlmodel import SQLModel

from leave_ledger.models.balance import UserLeaveBalance
from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leave_ledger.models.enums import DayLabel, DayPart, HolidayType, VisitType
from leave_ledger.models.holiday import Holiday
from leave_ledger.models.leave import UserLeave
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.models.visit import OfficeVisit

__all__ = [
    "DayLabel",
    "DayPart",
    "Holiday",
    "HolidayType",
    "LeavePolicy",
    "OfficeVisit",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
    "UserLeave",
    "UserLeaveBalance",
    "VisitType",
]
