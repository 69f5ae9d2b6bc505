from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.exceptions import AppError, InvalidArgumentError, NotFoundError
from leave_ledger.models.enums import HolidayType
from leave_ledger.models.holiday import Holiday
from leave_ledger.schemas.holiday import HolidayListResponse, HolidayResponse

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.holiday import CreateHolidayRequest

logger = logging.getLogger(__name__)


def _build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        holiday_date=holiday.holiday_date,
        name=holiday.name,
        holiday_type=HolidayType(holiday.holiday_type),
        description=holiday.description,
    )


async def create_holiday(session: AsyncSession, payload: CreateHolidayRequest) -> HolidayResponse:
    """Create a holiday. A date can carry several holidays, but not two with the same name."""
    holiday = Holiday(
        holiday_date=payload.holiday_date,
        name=payload.name,
        holiday_type=payload.holiday_type.value,
        description=payload.description,
    )
    session.add(holiday)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError("Holiday already exists for this date", status_code=409) from None

    await session.commit()
    logger.info("Created holiday %s on %s (%s)", holiday.name, holiday.holiday_date, holiday.holiday_type)
    return _build_holiday_response(holiday)


async def fetch_holidays_between(session: AsyncSession, from_date: date, to_date: date) -> list[Holiday]:
    """Holidays dated within ``[from_date, to_date]`` in date order."""
    result = await session.execute(
        select(Holiday)
        .where(col(Holiday.holiday_date) >= from_date, col(Holiday.holiday_date) <= to_date)
        .order_by(col(Holiday.holiday_date), col(Holiday.name))
    )
    return list(result.scalars().all())


async def list_holidays(
    session: AsyncSession,
    from_date: date | None = None,
    to_date: date | None = None,
) -> HolidayListResponse:
    """List holidays, optionally limited to a date range."""
    logger.debug("list_holidays from=%s to=%s", from_date, to_date)
    if from_date is not None and to_date is not None and from_date > to_date:
        raise InvalidArgumentError("from date cannot be after to date")

    base_filter = []
    if from_date is not None:
        base_filter.append(col(Holiday.holiday_date) >= from_date)
    if to_date is not None:
        base_filter.append(col(Holiday.holiday_date) <= to_date)

    count_result = await session.execute(select(func.count()).select_from(Holiday).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Holiday).where(*base_filter).order_by(col(Holiday.holiday_date), col(Holiday.name))
    )
    holidays = list(result.scalars().all())

    return HolidayListResponse(items=[_build_holiday_response(h) for h in holidays], total=total)


async def delete_holiday(session: AsyncSession, holiday_id: uuid.UUID) -> None:
    """Delete a holiday or raise 404."""
    result = await session.execute(select(Holiday).where(col(Holiday.id) == holiday_id))
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFoundError(f"Holiday not found with id: {holiday_id}")

    await session.delete(holiday)
    await session.commit()
    logger.info("Deleted holiday %s", holiday_id)
