# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.exceptions import AppError, NotFoundError
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.schemas.policy import PolicyListResponse, PolicyResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.policy import CreatePolicyRequest, UpdatePolicyRequest

logger = logging.getLogger(__name__)


def _build_policy_response(policy: LeavePolicy) -> PolicyResponse:
    return PolicyResponse(
        id=policy.id,
        policy_code=policy.policy_code,
        policy_name=policy.policy_name,
        default_annual_days=policy.default_annual_days,
        description=policy.description,
        created_at=policy.created_at,
    )


async def create_policy(session: AsyncSession, payload: CreatePolicyRequest) -> PolicyResponse:
    """Create a leave policy. Policy codes are unique."""
    existing = await session.execute(
        select(LeavePolicy).where(col(LeavePolicy.policy_code) == payload.policy_code)
    )
    if existing.scalar_one_or_none() is not None:
        raise AppError("Policy with this code already exists", status_code=409)

    policy = LeavePolicy(
        policy_code=payload.policy_code,
        policy_name=payload.policy_name,
        default_annual_days=payload.default_annual_days,
        description=payload.description,
    )
    session.add(policy)
    await session.commit()
    logger.info("Created leave policy %s (%s)", policy.id, policy.policy_code)
    return _build_policy_response(policy)


async def list_policies(session: AsyncSession) -> PolicyListResponse:
    """List every leave policy ordered by code."""
    count_result = await session.execute(select(func.count()).select_from(LeavePolicy))
    total = count_result.scalar_one()

    result = await session.execute(select(LeavePolicy).order_by(col(LeavePolicy.policy_code)))
    policies = list(result.scalars().all())

    return PolicyListResponse(items=[_build_policy_response(p) for p in policies], total=total)


async def get_policy(session: AsyncSession, policy_id: uuid.UUID) -> LeavePolicy | None:
    result = await session.execute(select(LeavePolicy).where(col(LeavePolicy.id) == policy_id))
    return result.scalar_one_or_none()


async def get_policy_detail(session: AsyncSession, policy_id: uuid.UUID) -> PolicyResponse:
    """Get a single policy or raise 404."""
    policy = await get_policy(session, policy_id)
    if policy is None:
        raise NotFoundError(f"Leave policy not found with id: {policy_id}")
    return _build_policy_response(policy)


async def update_policy(
    session: AsyncSession,
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
) -> PolicyResponse:
    """Apply a partial update to a leave policy. The code never changes.

    A new ``default_annual_days`` only seeds ledger rows created from now on;
    existing rows keep their allocation.
    """
    policy = await get_policy(session, policy_id)
    if policy is None:
        raise NotFoundError(f"Leave policy not found with id: {policy_id}")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("policy_name") is not None:
        policy.policy_name = changes["policy_name"]
    if changes.get("default_annual_days") is not None:
        policy.default_annual_days = changes["default_annual_days"]
    if "description" in changes:
        policy.description = changes["description"]
    session.add(policy)
    await session.commit()

    logger.info("Updated leave policy %s fields=%s", policy.id, sorted(changes))
    return _build_policy_response(policy)


async def exists_policy(session: AsyncSession, policy_id: uuid.UUID) -> bool:
    return await get_policy(session, policy_id) is not None


async def get_policy_default_days(session: AsyncSession, policy_id: uuid.UUID) -> Decimal:
    """Yearly allocation used to seed a fresh ledger row."""
    policy = await get_policy(session, policy_id)
    if policy is None:
        raise NotFoundError(f"Leave policy not found with id: {policy_id}")
    return Decimal(policy.default_annual_days)


async def get_policy_codes(session: AsyncSession, policy_ids: set[uuid.UUID]) -> dict[uuid.UUID, str]:
    """Map policy ids to their codes in a single query."""
    if not policy_ids:
        return {}
    result = await session.execute(
        select(col(LeavePolicy.id), col(LeavePolicy.policy_code)).where(col(LeavePolicy.id).in_(list(policy_ids)))
    )
    return {row[0]: row[1] for row in result.all()}
