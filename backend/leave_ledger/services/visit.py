from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.exceptions import InvalidArgumentError, NotFoundError
from leave_ledger.models.enums import VisitType
from leave_ledger.models.visit import OfficeVisit
from leave_ledger.schemas.visit import VisitListResponse, VisitResponse
from leave_ledger.services.directory import get_user_directory

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.visit import UpsertVisitRequest

logger = logging.getLogger(__name__)


def _build_visit_response(visit: OfficeVisit) -> VisitResponse:
    return VisitResponse(
        id=visit.id,
        user_id=visit.user_id,
        visit_date=visit.visit_date,
        day_of_week=visit.day_of_week,
        visit_type=VisitType.bucket_for(visit.visit_type) if visit.visit_type else None,
        notes=visit.notes,
    )


async def upsert_visit(session: AsyncSession, payload: UpsertVisitRequest) -> VisitResponse:
    """Record where a user worked on a date, replacing any earlier entry for that date."""
    if not await get_user_directory().exists_user(payload.user_id):
        raise NotFoundError(f"User not found with id: {payload.user_id}")

    result = await session.execute(
        select(OfficeVisit).where(
            col(OfficeVisit.user_id) == payload.user_id,
            col(OfficeVisit.visit_date) == payload.visit_date,
        )
    )
    visit = result.scalar_one_or_none()
    if visit is None:
        visit = OfficeVisit(user_id=payload.user_id, visit_date=payload.visit_date, day_of_week=0)

    visit.day_of_week = payload.visit_date.isoweekday()
    visit.visit_type = payload.visit_type.value
    visit.notes = payload.notes
    session.add(visit)
    await session.commit()

    logger.info("Recorded %s visit for user %s on %s", visit.visit_type, visit.user_id, visit.visit_date)
    return _build_visit_response(visit)


async def fetch_visits_between(
    session: AsyncSession,
    from_date: date,
    to_date: date,
    user_id: uuid.UUID | None = None,
) -> list[OfficeVisit]:
    """Visits dated within ``[from_date, to_date]``; every user's when ``user_id`` is None."""
    query = select(OfficeVisit).where(
        col(OfficeVisit.visit_date) >= from_date,
        col(OfficeVisit.visit_date) <= to_date,
    )
    if user_id is not None:
        query = query.where(col(OfficeVisit.user_id) == user_id)
    result = await session.execute(query.order_by(col(OfficeVisit.visit_date)))
    return list(result.scalars().all())


async def list_visits(
    session: AsyncSession,
    user_id: uuid.UUID,
    from_date: date,
    to_date: date,
) -> VisitListResponse:
    logger.debug("list_visits user_id=%s from=%s to=%s", user_id, from_date, to_date)
    if from_date > to_date:
        raise InvalidArgumentError("from date cannot be after to date")
    visits = await fetch_visits_between(session, from_date, to_date, user_id)
    return VisitListResponse(items=[_build_visit_response(v) for v in visits], total=len(visits))


async def delete_visit(session: AsyncSession, visit_id: uuid.UUID) -> None:
    """Delete a visit or raise 404."""
    result = await session.execute(select(OfficeVisit).where(col(OfficeVisit.id) == visit_id))
    visit = result.scalar_one_or_none()
    if visit is None:
        raise NotFoundError(f"Visit not found with id: {visit_id}")

    await session.delete(visit)
    await session.commit()
    logger.info("Deleted visit %s", visit_id)
