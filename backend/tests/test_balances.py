"""Tests for the balance ledger: reads, adjustments, admin upserts, recalculation and concurrency."""

from __future__ import annotations

import asyncio
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select

from leave_ledger.exceptions import InsufficientBalanceError, InvalidAdjustmentError, InvalidArgumentError, NotFoundError
from leave_ledger.models import LeavePolicy, UserLeaveBalance
from leave_ledger.schemas.balance import UpsertBalanceRequest
from leave_ledger.schemas.leave import CreateLeaveRequest
from leave_ledger.services import balance as balance_service
from leave_ledger.services import leave as leave_service

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
OTHER_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")


async def _row_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(UserLeaveBalance))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# adjust_balance
# ---------------------------------------------------------------------------


async def test_adjust_seeds_row_from_policy_default(db_session: AsyncSession, policy: LeavePolicy) -> None:
    result = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(3))
    assert result.id is not None
    assert result.allocated_days == Decimal(20)
    assert result.used_days == Decimal(3)
    assert result.remaining_days == Decimal(17)
    assert result.updated_at is not None


async def test_adjust_accumulates_and_gives_back(db_session: AsyncSession, policy: LeavePolicy) -> None:
    await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal("2.5"))
    await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(4))
    result = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(-1))
    assert result.used_days == Decimal("5.5")
    assert result.remaining_days == Decimal("14.5")
    assert result.allocated_days - result.used_days == result.remaining_days


async def test_zero_delta_returns_unsaved_default_view(db_session: AsyncSession, policy: LeavePolicy) -> None:
    result = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(0))
    assert result.id is None
    assert result.updated_at is None
    assert result.allocated_days == Decimal(20)
    assert result.remaining_days == Decimal(20)
    assert await _row_count(db_session) == 0


async def test_zero_delta_returns_existing_row(db_session: AsyncSession, policy: LeavePolicy) -> None:
    written = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(1))
    read = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(0))
    assert read.id == written.id
    assert read.used_days == written.used_days == Decimal(1)


async def test_delta_below_ledger_scale_is_a_read(db_session: AsyncSession, policy: LeavePolicy) -> None:
    result = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal("0.0000001"))
    assert result.id is None
    assert result.used_days == Decimal(0)
    assert await _row_count(db_session) == 0


async def test_negative_used_is_rejected_and_nothing_written(db_session: AsyncSession, policy: LeavePolicy) -> None:
    with pytest.raises(InvalidAdjustmentError):
        await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(-1))
    assert await _row_count(db_session) == 0


async def test_overdraw_is_rejected_and_row_unchanged(db_session: AsyncSession, policy: LeavePolicy) -> None:
    await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(15))
    with pytest.raises(InsufficientBalanceError):
        await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(6))

    row = await balance_service.get_balance(db_session, USER_ID, policy.id, 2025)
    assert row.used_days == Decimal(15)
    assert row.remaining_days == Decimal(5)


async def test_adjust_can_use_exactly_the_remaining_days(db_session: AsyncSession, policy: LeavePolicy) -> None:
    result = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(20))
    assert result.remaining_days == Decimal(0)


async def test_adjust_unknown_user_or_policy(db_session: AsyncSession, policy: LeavePolicy) -> None:
    with pytest.raises(NotFoundError):
        await balance_service.adjust_balance(db_session, uuid.uuid4(), policy.id, 2025, Decimal(1))
    with pytest.raises(NotFoundError):
        await balance_service.adjust_balance(db_session, USER_ID, uuid.uuid4(), 2025, Decimal(1))


async def test_keys_are_independent(db_session: AsyncSession, policy: LeavePolicy, sick_policy: LeavePolicy) -> None:
    await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(5))
    other_year = await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2026, Decimal(1))
    other_policy = await balance_service.adjust_balance(db_session, USER_ID, sick_policy.id, 2025, Decimal(1))
    other_user = await balance_service.adjust_balance(db_session, OTHER_USER_ID, policy.id, 2025, Decimal(1))
    assert other_year.used_days == Decimal(1)
    assert other_policy.remaining_days == Decimal(9)
    assert other_user.remaining_days == Decimal(19)


# ---------------------------------------------------------------------------
# get_balance / list_balances
# ---------------------------------------------------------------------------


async def test_get_missing_balance_is_not_found(db_session: AsyncSession, policy: LeavePolicy) -> None:
    with pytest.raises(NotFoundError):
        await balance_service.get_balance(db_session, USER_ID, policy.id, 2025)


async def test_list_balances_ordered_by_year(db_session: AsyncSession, policy: LeavePolicy) -> None:
    await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2026, Decimal(1))
    await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2024, Decimal(1))
    await balance_service.adjust_balance(db_session, OTHER_USER_ID, policy.id, 2025, Decimal(1))

    listing = await balance_service.list_balances(db_session, USER_ID)
    assert [b.year for b in listing.items] == [2024, 2026]
    assert listing.total == 2

    only_2026 = await balance_service.list_balances(db_session, USER_ID, 2026)
    assert [b.year for b in only_2026.items] == [2026]


# ---------------------------------------------------------------------------
# upsert_balance
# ---------------------------------------------------------------------------


async def test_upsert_new_row_uses_policy_default(db_session: AsyncSession, policy: LeavePolicy) -> None:
    result = await balance_service.upsert_balance(
        db_session, USER_ID, policy.id, 2025, UpsertBalanceRequest(used_days=Decimal(4))
    )
    assert result.allocated_days == Decimal(20)
    assert result.used_days == Decimal(4)
    assert result.remaining_days == Decimal(16)


async def test_upsert_existing_row_keeps_omitted_fields(db_session: AsyncSession, policy: LeavePolicy) -> None:
    await balance_service.adjust_balance(db_session, USER_ID, policy.id, 2025, Decimal(3))
    result = await balance_service.upsert_balance(
        db_session, USER_ID, policy.id, 2025, UpsertBalanceRequest(allocated_days=Decimal(25))
    )
    assert result.allocated_days == Decimal(25)
    assert result.used_days == Decimal(3)
    assert result.remaining_days == Decimal(22)


async def test_upsert_rejects_negative_values(db_session: AsyncSession, policy: LeavePolicy) -> None:
    payload = UpsertBalanceRequest.model_construct(used_days=Decimal(-1))
    with pytest.raises(InvalidArgumentError):
        await balance_service.upsert_balance(db_session, USER_ID, policy.id, 2025, payload)


# ---------------------------------------------------------------------------
# recalculate_balance
# ---------------------------------------------------------------------------


async def _record_leave(session: AsyncSession, policy_id: uuid.UUID, start: date, end: date, **kwargs: object) -> None:
    await leave_service.create_leave(
        session,
        CreateLeaveRequest(user_id=USER_ID, policy_id=policy_id, start_date=start, end_date=end, **kwargs),
    )


async def test_recalculate_restores_drifted_row(db_session: AsyncSession, policy: LeavePolicy) -> None:
    await _record_leave(db_session, policy.id, date(2025, 3, 3), date(2025, 3, 5))
    await _record_leave(db_session, policy.id, date(2024, 12, 30), date(2025, 1, 2))
    await balance_service.upsert_balance(
        db_session, USER_ID, policy.id, 2025, UpsertBalanceRequest(used_days=Decimal(0))
    )

    result = await balance_service.recalculate_balance(db_session, USER_ID, policy.id, 2025)
    assert result.used_days == Decimal(5)
    assert result.remaining_days == Decimal(15)


async def test_recalculate_is_idempotent(db_session: AsyncSession, policy: LeavePolicy) -> None:
    await _record_leave(db_session, policy.id, date(2025, 12, 29), date(2026, 1, 3), total_days=Decimal(4))
    before = await balance_service.get_balance(db_session, USER_ID, policy.id, 2025)

    first = await balance_service.recalculate_balance(db_session, USER_ID, policy.id, 2025)
    second = await balance_service.recalculate_balance(db_session, USER_ID, policy.id, 2025)
    assert first.used_days == before.used_days
    assert second.used_days == first.used_days
    assert second.remaining_days == first.remaining_days


async def test_recalculate_counts_only_the_given_policy(
    db_session: AsyncSession, policy: LeavePolicy, sick_policy: LeavePolicy
) -> None:
    await _record_leave(db_session, policy.id, date(2025, 4, 1), date(2025, 4, 2))
    await _record_leave(db_session, sick_policy.id, date(2025, 5, 1), date(2025, 5, 3))

    result = await balance_service.recalculate_balance(db_session, USER_ID, policy.id, 2025)
    assert result.used_days == Decimal(2)


async def test_recalculate_floors_remaining_at_zero(db_session: AsyncSession, policy: LeavePolicy) -> None:
    await _record_leave(db_session, policy.id, date(2025, 6, 2), date(2025, 6, 6))
    await balance_service.upsert_balance(
        db_session, USER_ID, policy.id, 2025, UpsertBalanceRequest(allocated_days=Decimal(2), used_days=Decimal(0))
    )

    result = await balance_service.recalculate_balance(db_session, USER_ID, policy.id, 2025)
    assert result.allocated_days == Decimal(2)
    assert result.used_days == Decimal(5)
    assert result.remaining_days == Decimal(0)


async def test_recalculate_creates_missing_row(db_session: AsyncSession, policy: LeavePolicy) -> None:
    result = await balance_service.recalculate_balance(db_session, USER_ID, policy.id, 2030)
    assert result.id is not None
    assert result.used_days == Decimal(0)
    assert result.remaining_days == Decimal(20)


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


async def test_concurrent_adjustments_on_one_key_are_serialised(
    session_factory: async_sessionmaker[AsyncSession], policy: LeavePolicy
) -> None:
    async def consume_one_day() -> None:
        async with session_factory() as session:
            await balance_service.adjust_balance(session, USER_ID, policy.id, 2025, Decimal(1))

    await asyncio.gather(*(consume_one_day() for _ in range(8)))

    async with session_factory() as session:
        row = await balance_service.get_balance(session, USER_ID, policy.id, 2025)
    assert row.used_days == Decimal(8)
    assert row.remaining_days == Decimal(12)


async def test_concurrent_overdraw_never_goes_negative(
    session_factory: async_sessionmaker[AsyncSession], policy: LeavePolicy
) -> None:
    async def consume_three_days() -> None:
        async with session_factory() as session:
            await balance_service.adjust_balance(session, USER_ID, policy.id, 2025, Decimal(3))

    results = await asyncio.gather(*(consume_three_days() for _ in range(10)), return_exceptions=True)

    failures = [r for r in results if isinstance(r, BaseException)]
    assert len(failures) == 4
    assert all(isinstance(f, InsufficientBalanceError) for f in failures)

    async with session_factory() as session:
        row = await balance_service.get_balance(session, USER_ID, policy.id, 2025)
    assert row.used_days == Decimal(18)
    assert row.remaining_days == Decimal(2)


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


async def test_balance_endpoints(async_client: AsyncClient, policy: LeavePolicy) -> None:
    base = f"/balances/{USER_ID}/{policy.id}/2025"

    resp = await async_client.get(base)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"

    resp = await async_client.post(f"{base}/adjust", json={"delta_days": "2.5"})
    assert resp.status_code == 200
    assert Decimal(resp.json()["used_days"]) == Decimal("2.5")

    resp = await async_client.put(base, json={"allocated_days": "30"})
    assert resp.status_code == 200
    assert Decimal(resp.json()["remaining_days"]) == Decimal("27.5")

    resp = await async_client.post(f"{base}/recalculate")
    assert resp.status_code == 200
    data = resp.json()
    assert Decimal(data["used_days"]) == Decimal(0)
    assert Decimal(data["allocated_days"]) == Decimal(30)

    resp = await async_client.get(f"/balances/{USER_ID}")
    assert resp.status_code == 200
    assert resp.json()["total"] == 1


async def test_adjust_endpoint_rejects_overdraw(async_client: AsyncClient, policy: LeavePolicy) -> None:
    resp = await async_client.post(f"/balances/{USER_ID}/{policy.id}/2025/adjust", json={"delta_days": "21"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "InsufficientBalanceError"


async def test_upsert_endpoint_validates_payload(async_client: AsyncClient, policy: LeavePolicy) -> None:
    resp = await async_client.put(f"/balances/{USER_ID}/{policy.id}/2025", json={"used_days": "-1"})
    assert resp.status_code == 422
