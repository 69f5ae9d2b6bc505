from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase


class LeavePolicy(UUIDBase, TimestampMixin, table=True):
    """A kind of leave (e.g. CL, SL) and its yearly allocation seed."""

    __tablename__ = "leave_policy"
    __table_args__ = (sa.UniqueConstraint("policy_code", name="uq_leave_policy_code"),)

    policy_code: str = Field(max_length=50)
    policy_name: str = Field(max_length=100)
    default_annual_days: int = Field(default=0, ge=0, sa_column_kwargs={"server_default": "0"})
    description: str | None = None
