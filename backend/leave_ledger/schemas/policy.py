# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreatePolicyRequest(BaseModel):
    """Request body for creating a leave policy."""

    policy_code: str = Field(min_length=1, max_length=50)
    policy_name: str = Field(min_length=1, max_length=100)
    default_annual_days: int = Field(default=0, ge=0)
    description: str | None = None


class PolicyResponse(BaseModel):
    """Response schema for a leave policy."""

    id: uuid.UUID
    policy_code: str
    policy_name: str
    default_annual_days: int
    description: str | None
    created_at: datetime


class PolicyListResponse(BaseModel):
    """All leave policies."""

    items: list[PolicyResponse]
    total: int


class UpdatePolicyRequest(BaseModel):
    """Partial update for a leave policy. The policy code cannot change."""

    policy_name: str | None = Field(default=None, min_length=1, max_length=100)
    default_annual_days: int | None = Field(default=None, ge=0)
    description: str | None = None
