# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.db import unit_of_work
from leave_ledger.exceptions import (
    InsufficientBalanceError,
    InvalidAdjustmentError,
    InvalidArgumentError,
    NotFoundError,
)
from leave_ledger.models.balance import UserLeaveBalance
from leave_ledger.models.leave import UserLeave
from leave_ledger.schemas.balance import BalanceListResponse, BalanceResponse
from leave_ledger.services.directory import get_user_directory
from leave_ledger.services.distribution import YEAR_QUANTUM, calendar_year, distribute_within_window
from leave_ledger.services.locks import LedgerKey, get_ledger_locks
from leave_ledger.services.policy import exists_policy, get_policy_default_days

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.balance import UpsertBalanceRequest

logger = logging.getLogger(__name__)

_ZERO = Decimal(0)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_balance_response(row: UserLeaveBalance) -> BalanceResponse:
    """Map a ledger row to its response schema."""
    return BalanceResponse(
        id=row.id,
        user_id=row.user_id,
        policy_id=row.policy_id,
        year=row.year,
        allocated_days=row.allocated_days,
        used_days=row.used_days,
        remaining_days=row.remaining_days,
        updated_at=row.updated_at,
    )


def _to_days(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(YEAR_QUANTUM, rounding=ROUND_HALF_UP)


async def _validate_ids_exist(session: AsyncSession, user_id: uuid.UUID, policy_id: uuid.UUID) -> None:
    """Raise 404 unless both the user and the policy exist."""
    if not await get_user_directory().exists_user(user_id):
        raise NotFoundError(f"User not found with id: {user_id}")
    if not await exists_policy(session, policy_id):
        raise NotFoundError(f"Leave policy not found with id: {policy_id}")


async def _find_row(
    session: AsyncSession,
    key: LedgerKey,
    *,
    for_update: bool = False,
) -> UserLeaveBalance | None:
    """Load a ledger row, optionally locking it with SELECT ... FOR UPDATE."""
    query = select(UserLeaveBalance).where(
        col(UserLeaveBalance.user_id) == key.user_id,
        col(UserLeaveBalance.policy_id) == key.policy_id,
        col(UserLeaveBalance.year) == key.year,
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def _get_or_create_row_for_update(session: AsyncSession, key: LedgerKey) -> UserLeaveBalance:
    """Get the ledger row with a FOR UPDATE lock, seeding it from the policy if absent."""
    row = await _find_row(session, key, for_update=True)
    if row is None:
        allocated = await get_policy_default_days(session, key.policy_id)
        row = UserLeaveBalance(
            user_id=key.user_id,
            policy_id=key.policy_id,
            year=key.year,
            allocated_days=allocated,
            used_days=_ZERO,
            remaining_days=allocated,
        )
        session.add(row)
        await session.flush()
        logger.info("Seeded ledger row %s with %s allocated days", key, allocated)
    return row


async def _apply_delta(session: AsyncSession, key: LedgerKey, delta: Decimal) -> UserLeaveBalance:
    """Move ``delta`` days into (or out of) the used column of one ledger row.

    The caller must hold the key's lock and own the surrounding transaction.
    Nothing on the row changes when the adjustment is rejected.
    """
    delta = _to_days(delta)
    row = await _get_or_create_row_for_update(session, key)

    new_used = row.used_days + delta
    if new_used < 0:
        logger.warning("Rejected adjustment %s on %s: used would become %s", delta, key, new_used)
        raise InvalidAdjustmentError(f"Used days cannot become negative for year {key.year}")

    new_remaining = row.allocated_days - new_used
    if new_remaining < 0:
        logger.warning("Rejected adjustment %s on %s: remaining would become %s", delta, key, new_remaining)
        raise InsufficientBalanceError(f"Insufficient remaining days for year {key.year}")

    row.used_days = new_used
    row.remaining_days = new_remaining
    row.updated_at = datetime.now(UTC)
    await session.flush()
    return row


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
) -> BalanceResponse:
    """Get the ledger row for a user, policy and year or raise 404."""
    logger.debug("get_balance user_id=%s policy_id=%s year=%s", user_id, policy_id, year)
    await _validate_ids_exist(session, user_id, policy_id)

    row = await _find_row(session, LedgerKey(user_id, policy_id, year))
    if row is None:
        raise NotFoundError("Balance not found for user/policy/year")
    return _build_balance_response(row)


async def list_balances(
    session: AsyncSession,
    user_id: uuid.UUID,
    year: int | None = None,
) -> BalanceListResponse:
    """List a user's ledger rows ordered by year, optionally for one year only."""
    if not await get_user_directory().exists_user(user_id):
        raise NotFoundError(f"User not found with id: {user_id}")

    query = select(UserLeaveBalance).where(col(UserLeaveBalance.user_id) == user_id)
    if year is not None:
        query = query.where(col(UserLeaveBalance.year) == year)
    result = await session.execute(
        query.order_by(col(UserLeaveBalance.year), col(UserLeaveBalance.policy_id))
    )
    rows = list(result.scalars().all())
    return BalanceListResponse(items=[_build_balance_response(r) for r in rows], total=len(rows))


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def adjust_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
    delta: Decimal,
) -> BalanceResponse:
    """Atomically add ``delta`` to the used days of one ledger row.

    A zero delta is a read: it returns the stored row, or an unsaved view
    seeded from the policy default when the row does not exist yet.
    """
    logger.info("adjust_balance user_id=%s policy_id=%s year=%s delta=%s", user_id, policy_id, year, delta)
    await _validate_ids_exist(session, user_id, policy_id)
    key = LedgerKey(user_id, policy_id, year)

    if _to_days(delta) == 0:
        row = await _find_row(session, key)
        if row is not None:
            return _build_balance_response(row)
        allocated = await get_policy_default_days(session, policy_id)
        return BalanceResponse(
            id=None,
            user_id=user_id,
            policy_id=policy_id,
            year=year,
            allocated_days=allocated,
            used_days=_ZERO,
            remaining_days=allocated,
            updated_at=None,
        )

    async with get_ledger_locks().hold([key]), unit_of_work(session):
        row = await _apply_delta(session, key, Decimal(delta))
    return _build_balance_response(row)


async def upsert_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
    payload: UpsertBalanceRequest,
) -> BalanceResponse:
    """Administrative overwrite of a ledger row. Use for manual corrections only.

    A missing row is created with the policy default as its allocation unless
    one is given. Omitted fields keep their stored value; an omitted remaining
    is derived as allocated - used.
    """
    logger.info("upsert_balance (admin) user_id=%s policy_id=%s year=%s", user_id, policy_id, year)
    await _validate_ids_exist(session, user_id, policy_id)
    for name in ("allocated_days", "used_days", "remaining_days"):
        value = getattr(payload, name)
        if value is not None and value < 0:
            raise InvalidArgumentError(f"{name} cannot be negative")

    key = LedgerKey(user_id, policy_id, year)
    async with get_ledger_locks().hold([key]), unit_of_work(session):
        row = await _find_row(session, key, for_update=True)
        if row is None:
            allocated = (
                _to_days(payload.allocated_days)
                if payload.allocated_days is not None
                else await get_policy_default_days(session, policy_id)
            )
            row = UserLeaveBalance(user_id=user_id, policy_id=policy_id, year=year, allocated_days=allocated)
            session.add(row)
        elif payload.allocated_days is not None:
            row.allocated_days = _to_days(payload.allocated_days)

        if payload.used_days is not None:
            row.used_days = _to_days(payload.used_days)
        row.remaining_days = (
            _to_days(payload.remaining_days)
            if payload.remaining_days is not None
            else row.allocated_days - row.used_days
        )
        row.updated_at = datetime.now(UTC)
        await session.flush()

    return _build_balance_response(row)


async def recalculate_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    policy_id: uuid.UUID,
    year: int,
) -> BalanceResponse:
    """Rebuild a ledger row from the leaves that overlap ``year``.

    Each leave contributes the same per-year share it was charged when it was
    recorded. Remaining days are floored at zero instead of failing, so this
    always converges; it is meant for reconciliation, not the request path.
    """
    logger.info("recalculate_balance user_id=%s policy_id=%s year=%s", user_id, policy_id, year)
    await _validate_ids_exist(session, user_id, policy_id)

    key = LedgerKey(user_id, policy_id, year)
    year_start = date(year, 1, 1)
    year_end = date(year, 12, 31)

    async with get_ledger_locks().hold([key]), unit_of_work(session):
        result = await session.execute(
            select(UserLeave).where(
                col(UserLeave.user_id) == user_id,
                col(UserLeave.policy_id) == policy_id,
                col(UserLeave.start_date) <= year_end,
                col(UserLeave.end_date) >= year_start,
            )
        )
        leaves = list(result.scalars().all())

        used = _ZERO
        for leave in leaves:
            share = distribute_within_window(
                leave.start_date, leave.end_date, leave.total_days, year_start, year_end, calendar_year
            ).get(year, _ZERO)
            used += share.quantize(YEAR_QUANTUM, rounding=ROUND_HALF_UP)

        row = await _find_row(session, key, for_update=True)
        if row is None:
            allocated = await get_policy_default_days(session, policy_id)
            row = UserLeaveBalance(user_id=user_id, policy_id=policy_id, year=year, allocated_days=allocated)
            session.add(row)

        remaining = row.allocated_days - used
        if remaining < 0:
            logger.warning("Ledger %s overdrawn by %s days; flooring remaining at zero", key, -remaining)
            remaining = _ZERO

        row.used_days = used
        row.remaining_days = remaining
        row.updated_at = datetime.now(UTC)
        await session.flush()

    logger.info("Recalculated %s from %d leaves: used=%s remaining=%s", key, len(leaves), used, remaining)
    return _build_balance_response(row)
