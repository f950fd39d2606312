# salon_scheduler/routers/agenda_routes.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from salon_scheduler.auth import get_caller_context
from salon_scheduler.db import get_session
from salon_scheduler.schemas import (
    AgendaItem,
    BlockoutCreate,
    BlockoutCreated,
    CalendarEvent,
    CallerContext,
    SalonAgenda,
)
from salon_scheduler.services import agenda_service, blockout_service

router = APIRouter(
    tags=["agenda"],
)


@router.get("/agenda/me", response_model=List[AgendaItem])
def my_agenda(
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    return agenda_service.professional_agenda(session, ctx, on_date)


@router.get("/agenda/salon", response_model=SalonAgenda)
def salon_agenda(
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    return agenda_service.salon_agenda(session, ctx, on_date)


@router.get("/agenda/calendar", response_model=List[CalendarEvent])
def calendar(
    start: datetime,
    end: datetime,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    return agenda_service.calendar_events(session, ctx, start, end)


@router.post("/blockouts", response_model=BlockoutCreated, status_code=201)
def create_blockout(
    block: BlockoutCreate,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    blockout = blockout_service.create_blockout(
        session,
        ctx,
        start_time=block.start_time,
        end_time=block.end_time,
        reason=block.reason,
        professional_id=block.professional_id,
    )
    return BlockoutCreated(blockout_id=blockout.id)
