# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import UpdatedAtMixin, UUIDBase

# Per-year shares carry six fractional digits; storing them at the same scale
# keeps create/delete round trips exact.
BALANCE_SCALE = 6


class UserLeaveBalance(UUIDBase, UpdatedAtMixin, table=True):
    """Allocated/used/remaining leave days for one user, policy and year."""

    __tablename__ = "user_leave_balance"
    __table_args__ = (sa.UniqueConstraint("user_id", "policy_id", "year", name="uq_leave_balance_key"),)

    user_id: uuid.UUID = Field(index=True)
    policy_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_policy.id", ondelete="CASCADE"), nullable=False),
    )
    year: int
    allocated_days: Decimal = Field(default=Decimal(0), max_digits=14, decimal_places=BALANCE_SCALE)
    used_days: Decimal = Field(default=Decimal(0), max_digits=14, decimal_places=BALANCE_SCALE)
    remaining_days: Decimal = Field(default=Decimal(0), max_digits=14, decimal_places=BALANCE_SCALE)
