from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from datetime import date, timedelta

from ..config import Settings, get_settings
from ..engine.types import ReservationStatus
from ..schemas.reservation import (
    AvailabilityResponse,
    CheckInRequest,
    ConflictInfo,
    ImportRequest,
    ImportResponse,
    ImportRowResult,
    ReservationCreate,
    ReservationResponse,
    ReservationUpdate,
)
from ..services.booking_service import BookingService, NewReservation, ReservationChanges
from ..services.sql_stores import SqlStores
from ..utils.dependencies import get_booking_service, get_stores

router = APIRouter(prefix="/api/reservations", tags=["Reservations"])


def _to_new_reservation(data: ReservationCreate) -> NewReservation:
    return NewReservation(
        id=data.id,
        room_id=data.room_id,
        guest_name=data.guest_name,
        guest_phone=data.guest_phone,
        check_in_date=data.check_in_date,
        check_out_date=data.check_out_date,
        status=data.status,
        nightly_rate=data.nightly_rate,
        total_amount=data.total_amount,
    )


@router.get("")
@router.get("/", response_model=List[ReservationResponse])
async def list_reservations(
    start_date: date = Query(..., description="First night of the window"),
    end_date: date = Query(..., description="Last night of the window (inclusive)"),
    room_id: Optional[str] = None,
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    stores: SqlStores = Depends(get_stores)
):
    """Reservations staying at least one night between start_date and end_date"""
    reservations = stores.reservations.list_overlapping(
        start_date,
        end_date + timedelta(days=1),
        [room_id] if room_id else None,
    )
    if status_filter:
        reservations = [r for r in reservations if r.status == status_filter]
    return [ReservationResponse.model_validate(r) for r in reservations]


@router.get("/check-availability")
@router.get("/check-availability/", response_model=AvailabilityResponse)
async def check_availability(
    room_id: str,
    check_in_date: date,
    check_out_date: date,
    exclude_reservation_id: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
    settings: Settings = Depends(get_settings)
):
    """
    Check a proposed stay without booking it.

    Lists every conflicting reservation or closed day and prices the stay.
    """
    result = service.check_availability(
        room_id, check_in_date, check_out_date,
        exclude_reservation_id=exclude_reservation_id
    )
    return AvailabilityResponse(
        room_id=result.room_id,
        check_in_date=result.check_in,
        check_out_date=result.check_out,
        available=result.available,
        conflicts=[ConflictInfo.from_result(c) for c in result.conflicts],
        nights=result.quote.num_nights,
        total_amount=result.quote.total,
        currency=settings.currency,
        min_stay=result.quote.min_stay,
        max_stay=result.quote.max_stay,
        violations=list(result.quote.violations),
    )


@router.post("/import")
@router.post("/import/", response_model=ImportResponse)
async def import_reservations(
    payload: ImportRequest,
    service: BookingService = Depends(get_booking_service)
):
    """
    Bulk import (migration from another system).

    Every row gets an outcome; a conflicting row never stops the import.
    """
    outcomes = service.bulk_import(_to_new_reservation(row) for row in payload.reservations)
    results = [
        ImportRowResult(
            row=o.row,
            ok=o.ok,
            reservation_id=o.reservation.id if o.reservation else None,
            error=o.error,
            code=o.code,
            conflicts=[ConflictInfo.from_result(c) for c in o.conflicts],
        )
        for o in outcomes
    ]
    imported = sum(1 for r in results if r.ok)
    return ImportResponse(imported=imported, failed=len(results) - imported, results=results)


@router.get("/{reservation_id}")
@router.get("/{reservation_id}/", response_model=ReservationResponse)
async def get_reservation(reservation_id: str, stores: SqlStores = Depends(get_stores)):
    return ReservationResponse.model_validate(stores.require_reservation(reservation_id))


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    reservation_data: ReservationCreate,
    service: BookingService = Depends(get_booking_service)
):
    """
    Book a room.

    - Rejects overlapping live reservations and closed days (409)
    - Rejects stays outside the arrival night's min/max stay (422)
    - Fills nightly rate and total from the price rules when omitted
    """
    reservation = service.create_reservation(_to_new_reservation(reservation_data))
    return ReservationResponse.model_validate(reservation)


@router.patch("/{reservation_id}")
@router.patch("/{reservation_id}/", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: str,
    changes: ReservationUpdate,
    service: BookingService = Depends(get_booking_service)
):
    reservation = service.update_reservation(
        reservation_id, ReservationChanges(**changes.model_dump(exclude_unset=True))
    )
    return ReservationResponse.model_validate(reservation)


@router.delete("/{reservation_id}")
@router.delete("/{reservation_id}/")
async def delete_reservation(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service)
):
    """Delete a cancelled or checked-out reservation"""
    service.delete_reservation(reservation_id)
    return {"message": "Reservation deleted", "id": reservation_id}


# ==================
# Front-desk actions
# ==================

@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service)
):
    return ReservationResponse.model_validate(service.confirm(reservation_id))


@router.post("/{reservation_id}/check-in", response_model=ReservationResponse)
async def check_in_reservation(
    reservation_id: str,
    payload: Optional[CheckInRequest] = None,
    service: BookingService = Depends(get_booking_service)
):
    """Check the guest in; refused while the room is dirty or closed"""
    reference_date = payload.reference_date if payload and payload.reference_date else date.today()
    return ReservationResponse.model_validate(service.check_in(reservation_id, reference_date))


@router.post("/{reservation_id}/check-out", response_model=ReservationResponse)
async def check_out_reservation(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service)
):
    return ReservationResponse.model_validate(service.check_out(reservation_id))


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service)
):
    return ReservationResponse.model_validate(service.cancel(reservation_id))
