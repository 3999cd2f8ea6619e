"""
Calendar API Router

Room x date availability grid and manual room status:
- GET  /api/calendar          grid for a date window
- GET  /api/calendar/rows     same grid, one flat row per (room, date)
- POST /api/calendar/block    close a room for an inclusive date range
- POST /api/calendar/unblock  reopen closed days
- POST /api/calendar/status   dirty / cleaned for one day
- PUT  /api/calendar/price    special price for one day
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..config import Settings, get_settings
from ..engine.grid import grid_to_rows
from ..schemas.calendar import (
    BlockDatesRequest,
    CalendarDayResponse,
    CalendarGridResponse,
    DaysChangedResponse,
    OverrideResponse,
    RoomCalendar,
    RoomStatusRequest,
    SpecialPriceRequest,
    UnblockDatesRequest,
)
from ..services.calendar_service import CalendarService
from ..utils.dependencies import get_calendar_service

router = APIRouter(prefix="/api/calendar", tags=["Calendar"])


@router.get("")
@router.get("/", response_model=CalendarGridResponse)
async def get_calendar(
    start_date: date,
    end_date: date = Query(..., description="Inclusive"),
    room_id: Optional[List[str]] = Query(None, description="Limit to these rooms"),
    service: CalendarService = Depends(get_calendar_service),
    settings: Settings = Depends(get_settings)
):
    """
    Availability grid, one row per room and one cell per date.

    Each cell carries the resolved price, availability and the reason a
    room cannot be sold (closed, needs cleaning, occupied).
    """
    grid = service.get_grid(start_date, end_date, room_id)
    names = {room.id: room.name for room in service.stores.rooms.list_rooms(room_id)}

    rooms = []
    for row in grid:
        if not row:
            continue
        rid = row[0].room_id
        rooms.append(RoomCalendar(
            room_id=rid,
            room_name=names.get(rid, ""),
            days=[CalendarDayResponse.model_validate(day) for day in row],
        ))

    return CalendarGridResponse(
        start_date=start_date,
        end_date=end_date,
        currency=settings.currency,
        rooms=rooms,
    )


@router.get("/rows", response_model=List[CalendarDayResponse])
async def get_calendar_rows(
    start_date: date,
    end_date: date = Query(..., description="Inclusive"),
    room_id: Optional[List[str]] = Query(None),
    service: CalendarService = Depends(get_calendar_service)
):
    """Flat grid for spreadsheet export"""
    grid = service.get_grid(start_date, end_date, room_id)
    return [CalendarDayResponse(**row) for row in grid_to_rows(grid)]


@router.post("/block", response_model=DaysChangedResponse)
async def block_dates(
    payload: BlockDatesRequest,
    service: CalendarService = Depends(get_calendar_service)
):
    """Close a room for every day from start_date to end_date inclusive"""
    days = service.block_dates(payload.room_id, payload.start_date, payload.end_date, payload.note)
    return DaysChangedResponse(room_id=payload.room_id, days=days)


@router.post("/unblock", response_model=DaysChangedResponse)
async def unblock_dates(
    payload: UnblockDatesRequest,
    service: CalendarService = Depends(get_calendar_service)
):
    days = service.unblock_dates(payload.room_id, payload.start_date, payload.end_date)
    return DaysChangedResponse(room_id=payload.room_id, days=days)


@router.post("/status", response_model=OverrideResponse)
async def set_room_status(
    payload: RoomStatusRequest,
    service: CalendarService = Depends(get_calendar_service)
):
    """
    Housekeeping status for one day. `available` clears a dirty or
    closed mark; the response then carries no status.
    """
    override = service.set_room_status(payload.room_id, payload.date, payload.status, payload.note)
    if override is None:
        return OverrideResponse(room_id=payload.room_id, date=payload.date)
    return OverrideResponse.model_validate(override)


@router.put("/price", response_model=OverrideResponse)
async def set_special_price(
    payload: SpecialPriceRequest,
    service: CalendarService = Depends(get_calendar_service)
):
    """Pin the price of one room on one day, or remove the pin with price=null"""
    override = service.set_special_price(payload.room_id, payload.date, payload.price)
    if override is None:
        return OverrideResponse(room_id=payload.room_id, date=payload.date)
    return OverrideResponse.model_validate(override)
