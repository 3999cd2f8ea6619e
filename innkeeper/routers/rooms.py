from fastapi import APIRouter, Depends, status
from typing import List

from ..schemas.room import (
    RoomCreate,
    RoomReorderRequest,
    RoomReorderResponse,
    RoomResponse,
    RoomUpdate,
)
from ..services.room_service import RoomChanges, RoomService
from ..services.sql_stores import SqlStores
from ..utils.dependencies import get_room_service, get_stores

router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


@router.get("")
@router.get("/", response_model=List[RoomResponse])
async def list_rooms(stores: SqlStores = Depends(get_stores)):
    """All rooms in calendar order"""
    return [RoomResponse.model_validate(room) for room in stores.rooms.list_rooms()]


@router.put("/order", response_model=RoomReorderResponse)
async def reorder_rooms(
    payload: RoomReorderRequest,
    service: RoomService = Depends(get_room_service)
):
    """Set the calendar position of several rooms in one transaction"""
    updated = service.reorder_rooms({u.id: u.sort_order for u in payload.updates})
    return RoomReorderResponse(updated=updated)


@router.get("/{room_id}")
@router.get("/{room_id}/", response_model=RoomResponse)
async def get_room(room_id: str, stores: SqlStores = Depends(get_stores)):
    return RoomResponse.model_validate(stores.require_room(room_id))


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(room_data: RoomCreate, service: RoomService = Depends(get_room_service)):
    room = service.create_room(
        name=room_data.name,
        room_type=room_data.room_type,
        base_price=room_data.base_price,
        sort_order=room_data.sort_order,
        room_id=room_data.id,
    )
    return RoomResponse.model_validate(room)


@router.patch("/{room_id}")
@router.patch("/{room_id}/", response_model=RoomResponse)
async def update_room(
    room_id: str,
    changes: RoomUpdate,
    service: RoomService = Depends(get_room_service)
):
    room = service.update_room(room_id, RoomChanges(**changes.model_dump(exclude_unset=True)))
    return RoomResponse.model_validate(room)


@router.delete("/{room_id}")
@router.delete("/{room_id}/")
async def delete_room(room_id: str, service: RoomService = Depends(get_room_service)):
    """
    Delete a room with its past reservations, overrides and room rules.
    Refused (409) while the room has pending, confirmed or checked-in stays.
    """
    service.delete_room(room_id)
    return {"message": "Room deleted", "id": room_id}
