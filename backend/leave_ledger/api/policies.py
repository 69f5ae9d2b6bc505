# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from leave_ledger.db import SessionDep
from leave_ledger.schemas.policy import (
    CreatePolicyRequest,
    PolicyListResponse,
    PolicyResponse,
    UpdatePolicyRequest,
)
from leave_ledger.services import policy as policy_service

router = APIRouter(prefix="/policies", tags=["policies"])


@router.post("", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_policy(
    payload: CreatePolicyRequest,
    session: SessionDep,
) -> PolicyResponse:
    """Create a leave policy."""
    return await policy_service.create_policy(session, payload)


@router.get("", response_model=PolicyListResponse)
async def list_policies(session: SessionDep) -> PolicyListResponse:
    """List all leave policies."""
    return await policy_service.list_policies(session)


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
) -> PolicyResponse:
    """Get a single leave policy."""
    return await policy_service.get_policy_detail(session, policy_id)


@router.put("/{policy_id}", response_model=PolicyResponse)
async def update_policy(
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
    session: SessionDep,
) -> PolicyResponse:
    """Update a policy's name, yearly allocation or description."""
    return await policy_service.update_policy(session, policy_id, payload)
