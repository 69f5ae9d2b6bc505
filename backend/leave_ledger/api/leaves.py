# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leave_ledger.db import SessionDep
from leave_ledger.schemas.leave import CreateLeaveRequest, LeaveListResponse, LeaveResponse, UpdateLeaveRequest
from leave_ledger.services import leave as leave_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


@leaves_router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def create_leave(
    payload: CreateLeaveRequest,
    session: SessionDep,
) -> LeaveResponse:
    """Record a leave and charge it to the balance ledger."""
    return await leave_service.create_leave(session, payload)


@leaves_router.get("", response_model=LeaveListResponse)
async def list_leaves(
    session: SessionDep,
    user_id: uuid.UUID = Query(),
) -> LeaveListResponse:
    """List all leaves of a user."""
    return await leave_service.list_leaves_for_user(session, user_id)


@leaves_router.get("/{leave_id}", response_model=LeaveResponse)
async def get_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
) -> LeaveResponse:
    return await leave_service.get_leave(session, leave_id)


@leaves_router.patch("/{leave_id}", response_model=LeaveResponse)
async def update_leave(
    leave_id: uuid.UUID,
    payload: UpdateLeaveRequest,
    session: SessionDep,
) -> LeaveResponse:
    """Change a leave; the ledger moves by the difference."""
    return await leave_service.update_leave(session, leave_id, payload)


@leaves_router.delete("/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
) -> None:
    """Delete a leave and give its days back to the ledger."""
    await leave_service.delete_leave(session, leave_id)
