# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from leave_ledger.db import SessionDep
from leave_ledger.schemas.visit import UpsertVisitRequest, VisitListResponse, VisitResponse
from leave_ledger.services import visit as visit_service

visits_router = APIRouter(prefix="/visits", tags=["visits"])


@visits_router.put("", response_model=VisitResponse)
async def upsert_visit(
    payload: UpsertVisitRequest,
    session: SessionDep,
) -> VisitResponse:
    """Record where a user worked on a date."""
    return await visit_service.upsert_visit(session, payload)


@visits_router.get("", response_model=VisitListResponse)
async def list_visits(
    session: SessionDep,
    user_id: uuid.UUID = Query(),
    from_date: date = Query(alias="from"),
    to_date: date = Query(alias="to"),
) -> VisitListResponse:
    return await visit_service.list_visits(session, user_id, from_date, to_date)


@visits_router.delete("/{visit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_visit(
    visit_id: uuid.UUID,
    session: SessionDep,
) -> None:
    await visit_service.delete_visit(session, visit_id)
