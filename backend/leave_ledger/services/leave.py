# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, NamedTuple

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.db import unit_of_work
from leave_ledger.exceptions import InvalidArgumentError, NotFoundError
from leave_ledger.models.enums import DayPart
from leave_ledger.models.leave import UserLeave
from leave_ledger.schemas.leave import LeaveListResponse, LeaveResponse
from leave_ledger.services.balance import _apply_delta, _validate_ids_exist
from leave_ledger.services.directory import get_user_directory
from leave_ledger.services.distribution import distribute_across_years, span_days
from leave_ledger.services.locks import LedgerKey, get_ledger_locks
from leave_ledger.services.policy import exists_policy

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.leave import CreateLeaveRequest, UpdateLeaveRequest

logger = logging.getLogger(__name__)

HALF_DAY = Decimal("0.50")
_DAYS_QUANTUM = Decimal("0.01")
# total_days is stored as NUMERIC(6, 2)
MAX_SPAN_DAYS = 9999
_ZERO = Decimal(0)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_response(leave: UserLeave) -> LeaveResponse:
    return LeaveResponse(
        id=leave.id,
        user_id=leave.user_id,
        policy_id=leave.policy_id,
        start_date=leave.start_date,
        end_date=leave.end_date,
        total_days=leave.total_days,
        day_part=DayPart(leave.day_part) if leave.day_part else None,
        notes=leave.notes,
        created_at=leave.created_at,
    )


def _resolve_total_days(
    start: date,
    end: date,
    explicit: Decimal | None,
    day_part: DayPart | None,
) -> Decimal:
    """Work out how many days a leave counts for.

    An explicit value wins (at least half a day, and exactly half a day for a
    MORNING/AFTERNOON leave). Otherwise a half-day part counts 0.5 and anything
    else counts every calendar day of the span.
    """
    half_day = day_part is not None and day_part.is_half_day
    if explicit is not None:
        total = Decimal(explicit).quantize(_DAYS_QUANTUM, rounding=ROUND_HALF_UP)
        if total < HALF_DAY:
            raise InvalidArgumentError("total_days must be at least 0.5")
        if half_day and total != HALF_DAY:
            raise InvalidArgumentError(f"A {day_part} leave must count exactly 0.5 days")
        return total
    if half_day:
        return HALF_DAY
    return Decimal(span_days(start, end)).quantize(_DAYS_QUANTUM)


def _check_dates(start: date, end: date) -> None:
    if end < start:
        raise InvalidArgumentError("end_date cannot be before start_date")
    if span_days(start, end) > MAX_SPAN_DAYS:
        raise InvalidArgumentError(f"A leave cannot span more than {MAX_SPAN_DAYS} days")


async def _get_leave_or_404(session: AsyncSession, leave_id: uuid.UUID) -> UserLeave:
    result = await session.execute(select(UserLeave).where(col(UserLeave.id) == leave_id))
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError(f"Leave not found with id: {leave_id}")
    return leave


def _year_shares(leave: UserLeave) -> dict[int, Decimal]:
    return distribute_across_years(leave.start_date, leave.end_date, leave.total_days)


async def _apply_all(session: AsyncSession, deltas: list[tuple[LedgerKey, Decimal]]) -> None:
    for key, delta in deltas:
        await _apply_delta(session, key, delta)


class _LeaveState(NamedTuple):
    policy_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal
    day_part: str | None


def _keys(deltas: list[tuple[LedgerKey, Decimal]]) -> set[LedgerKey]:
    return {key for key, _ in deltas}


def _release_deltas(leave: UserLeave) -> list[tuple[LedgerKey, Decimal]]:
    return [
        (LedgerKey(leave.user_id, leave.policy_id, year), -share)
        for year, share in _year_shares(leave).items()
        if share != 0
    ]


async def _lock_leave(session: AsyncSession, leave_id: uuid.UUID) -> UserLeave:
    """Reload a leave with SELECT ... FOR UPDATE, raising 404 if it is gone."""
    result = await session.execute(
        select(UserLeave)
        .where(col(UserLeave.id) == leave_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError(f"Leave not found with id: {leave_id}")
    return leave


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_leave(session: AsyncSession, leave_id: uuid.UUID) -> LeaveResponse:
    logger.debug("get_leave leave_id=%s", leave_id)
    return _build_leave_response(await _get_leave_or_404(session, leave_id))


async def list_leaves_for_user(session: AsyncSession, user_id: uuid.UUID) -> LeaveListResponse:
    """Every leave of a user, oldest first."""
    logger.debug("list_leaves_for_user user_id=%s", user_id)
    if not await get_user_directory().exists_user(user_id):
        raise NotFoundError(f"User not found with id: {user_id}")

    result = await session.execute(
        select(UserLeave)
        .where(col(UserLeave.user_id) == user_id)
        .order_by(col(UserLeave.start_date), col(UserLeave.created_at))
    )
    leaves = list(result.scalars().all())
    return LeaveListResponse(items=[_build_leave_response(lv) for lv in leaves], total=len(leaves))


async def find_overlapping_leaves(
    session: AsyncSession,
    from_date: date,
    to_date: date,
    user_id: uuid.UUID | None = None,
) -> list[UserLeave]:
    """Leaves that touch ``[from_date, to_date]``, ordered by start date.

    With no ``user_id`` the leaves of every user are returned.
    """
    query = select(UserLeave).where(
        col(UserLeave.start_date) <= to_date,
        col(UserLeave.end_date) >= from_date,
    )
    if user_id is not None:
        query = query.where(col(UserLeave.user_id) == user_id)
    result = await session.execute(query.order_by(col(UserLeave.start_date), col(UserLeave.created_at)))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_leave(session: AsyncSession, payload: CreateLeaveRequest) -> LeaveResponse:
    """Record a leave and charge it to the ledger of every calendar year it touches.

    The leave row and all of its ledger adjustments commit together; if any
    year lacks the remaining days nothing is written.
    """
    logger.info(
        "create_leave user_id=%s policy_id=%s %s..%s",
        payload.user_id,
        payload.policy_id,
        payload.start_date,
        payload.end_date,
    )
    await _validate_ids_exist(session, payload.user_id, payload.policy_id)
    _check_dates(payload.start_date, payload.end_date)
    total = _resolve_total_days(payload.start_date, payload.end_date, payload.total_days, payload.day_part)

    shares = distribute_across_years(payload.start_date, payload.end_date, total)
    deltas = [
        (LedgerKey(payload.user_id, payload.policy_id, year), share)
        for year, share in shares.items()
        if share != 0
    ]

    async with get_ledger_locks().hold(_keys(deltas)), unit_of_work(session):
        leave = UserLeave(
            user_id=payload.user_id,
            policy_id=payload.policy_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            total_days=total,
            day_part=payload.day_part.value if payload.day_part else None,
            notes=payload.notes,
        )
        session.add(leave)
        await session.flush()
        await _apply_all(session, deltas)

    logger.info("Created leave %s for %s days across years %s", leave.id, total, list(shares))
    return _build_leave_response(leave)


def _plan_update(
    leave: UserLeave,
    payload: UpdateLeaveRequest,
    changes: dict[str, object],
) -> tuple[_LeaveState, list[tuple[LedgerKey, Decimal]]]:
    """Work out the updated leave and the ledger moves it needs.

    Within one policy each year is adjusted by ``new - old``. When the policy
    changes the old share is released from the old policy and the new share is
    charged to the new one.
    """
    old_policy = leave.policy_id
    old_shares = _year_shares(leave)
    new_policy = payload.policy_id or old_policy

    start = payload.start_date or leave.start_date
    end = payload.end_date or leave.end_date
    _check_dates(start, end)

    if "day_part" in changes:
        day_part = payload.day_part
    else:
        day_part = DayPart(leave.day_part) if leave.day_part else None

    dates_changed = start != leave.start_date or end != leave.end_date
    day_part_changed = (day_part.value if day_part else None) != leave.day_part
    if payload.total_days is not None:
        total = _resolve_total_days(start, end, payload.total_days, day_part)
    elif dates_changed or day_part_changed:
        total = _resolve_total_days(start, end, None, day_part)
    else:
        total = leave.total_days

    new_shares = distribute_across_years(start, end, total)

    deltas: list[tuple[LedgerKey, Decimal]] = []
    if new_policy == old_policy:
        for year in sorted(old_shares.keys() | new_shares.keys()):
            delta = new_shares.get(year, _ZERO) - old_shares.get(year, _ZERO)
            if delta != 0:
                deltas.append((LedgerKey(leave.user_id, old_policy, year), delta))
    else:
        deltas.extend((LedgerKey(leave.user_id, old_policy, y), -s) for y, s in old_shares.items() if s != 0)
        deltas.extend((LedgerKey(leave.user_id, new_policy, y), s) for y, s in new_shares.items() if s != 0)

    state = _LeaveState(new_policy, start, end, total, day_part.value if day_part else None)
    return state, deltas


async def update_leave(
    session: AsyncSession,
    leave_id: uuid.UUID,
    payload: UpdateLeaveRequest,
) -> LeaveResponse:
    """Apply a partial update to a leave and move the ledger by the difference.

    The moves are planned from the leave as it stands once its ledger rows are
    locked.
    """
    logger.info("update_leave leave_id=%s", leave_id)
    leave = await _get_leave_or_404(session, leave_id)
    changes = payload.model_dump(exclude_unset=True)
    if payload.policy_id is not None and not await exists_policy(session, payload.policy_id):
        raise NotFoundError(f"Leave policy not found with id: {payload.policy_id}")

    while True:
        held = _keys(_plan_update(leave, payload, changes)[1])
        async with get_ledger_locks().hold(held), unit_of_work(session):
            leave = await _lock_leave(session, leave_id)
            state, deltas = _plan_update(leave, payload, changes)
            if _keys(deltas) <= held:
                leave.policy_id = state.policy_id
                leave.start_date = state.start_date
                leave.end_date = state.end_date
                leave.total_days = state.total_days
                leave.day_part = state.day_part
                if "notes" in changes:
                    leave.notes = payload.notes
                session.add(leave)
                await session.flush()
                await _apply_all(session, deltas)
                break
        logger.debug("Leave %s moved to other ledger rows while waiting, retrying update", leave_id)

    logger.info("Updated leave %s with %d ledger adjustments", leave.id, len(deltas))
    return _build_leave_response(leave)


async def delete_leave(session: AsyncSession, leave_id: uuid.UUID) -> None:
    """Give a leave's days back to the ledger and delete it.

    If any give-back is rejected the leave stays in place. A leave deleted by
    someone else while this call waited for its ledger rows raises 404.
    """
    logger.info("delete_leave leave_id=%s", leave_id)
    leave = await _get_leave_or_404(session, leave_id)

    while True:
        held = _keys(_release_deltas(leave))
        async with get_ledger_locks().hold(held), unit_of_work(session):
            leave = await _lock_leave(session, leave_id)
            deltas = _release_deltas(leave)
            if _keys(deltas) <= held:
                await _apply_all(session, deltas)
                await session.delete(leave)
                break
        logger.debug("Leave %s moved to other ledger rows while waiting, retrying delete", leave_id)

    logger.info("Deleted leave %s", leave_id)
