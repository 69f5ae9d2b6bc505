# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class BalanceResponse(BaseModel):
    """Allocated/used/remaining days for one user, policy and year.

    ``id`` and ``updated_at`` are None for a default view of a row that has
    not been written yet.
    """

    id: uuid.UUID | None
    user_id: uuid.UUID
    policy_id: uuid.UUID
    year: int
    allocated_days: Decimal
    used_days: Decimal
    remaining_days: Decimal
    updated_at: datetime | None


class BalanceListResponse(BaseModel):
    """Every ledger row of a user."""

    items: list[BalanceResponse]
    total: int


class AdjustBalanceRequest(BaseModel):
    """Signed change to the used days: positive consumes, negative gives back."""

    delta_days: Decimal = Field(max_digits=14, decimal_places=6)


class UpsertBalanceRequest(BaseModel):
    """Administrative overwrite of a ledger row. Omitted fields are derived."""

    allocated_days: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=6)
    used_days: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=6)
    remaining_days: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=6)
