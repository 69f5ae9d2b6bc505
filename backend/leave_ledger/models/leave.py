# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase


class UserLeave(UUIDBase, TimestampMixin, table=True):
    """A single leave taken by a user, spanning start_date..end_date inclusive."""

    __tablename__ = "user_leave"
    __table_args__ = (sa.Index("ix_user_leave_user_dates", "user_id", "start_date", "end_date"),)

    user_id: uuid.UUID = Field(index=True)
    policy_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_policy.id", ondelete="RESTRICT"), nullable=False, index=True
        ),
    )
    start_date: date
    end_date: date
    total_days: Decimal = Field(max_digits=6, decimal_places=2)
    day_part: str | None = Field(default=None, max_length=16)
    notes: str | None = Field(default=None, sa_type=sa.Text)
