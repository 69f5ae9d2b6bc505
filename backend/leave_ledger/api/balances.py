# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from leave_ledger.db import SessionDep
from leave_ledger.schemas.balance import (
    AdjustBalanceRequest,
    BalanceListResponse,
    BalanceResponse,
    UpsertBalanceRequest,
)
from leave_ledger.services import balance as balance_service

balances_router = APIRouter(prefix="/balances/{user_id}", tags=["balances"])


@balances_router.get("", response_model=BalanceListResponse)
async def list_balances(
    user_id: uuid.UUID,
    session: SessionDep,
    year: int | None = Query(default=None),
) -> BalanceListResponse:
    """List every ledger row of a user, optionally for one year."""
    return await balance_service.list_balances(session, user_id, year)


@balances_router.get("/{policy_id}/{year}", response_model=BalanceResponse)
async def get_balance(
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
    session: SessionDep,
) -> BalanceResponse:
    return await balance_service.get_balance(session, user_id, policy_id, year)


@balances_router.put("/{policy_id}/{year}", response_model=BalanceResponse)
async def upsert_balance(
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
    payload: UpsertBalanceRequest,
    session: SessionDep,
) -> BalanceResponse:
    """Overwrite a ledger row (manual correction)."""
    return await balance_service.upsert_balance(session, user_id, policy_id, year, payload)


@balances_router.post("/{policy_id}/{year}/adjust", response_model=BalanceResponse)
async def adjust_balance(
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
    payload: AdjustBalanceRequest,
    session: SessionDep,
) -> BalanceResponse:
    """Add a signed number of days to the used column."""
    return await balance_service.adjust_balance(session, user_id, policy_id, year, payload.delta_days)


@balances_router.post("/{policy_id}/{year}/recalculate", response_model=BalanceResponse)
async def recalculate_balance(
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
    session: SessionDep,
) -> BalanceResponse:
    """Rebuild a ledger row from the user's leaves."""
    return await balance_service.recalculate_balance(session, user_id, policy_id, year)
