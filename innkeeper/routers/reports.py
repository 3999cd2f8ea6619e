from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..config import Settings, get_settings
from ..schemas.calendar import (
    DailyReportResponse,
    OccupancyDayResponse,
    OccupancyTrendResponse,
    RevenueResponse,
)
from ..schemas.reservation import ReservationResponse
from ..services.report_service import ReportService
from ..utils.dependencies import get_report_service

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/daily", response_model=DailyReportResponse)
async def daily_report(
    reference_date: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    service: ReportService = Depends(get_report_service)
):
    """
    Front-desk day sheet: arrivals, departures, in-house and occupancy.

    A guest extending a stay in the same room is neither a departure
    nor an arrival.
    """
    report = service.daily_report(reference_date or date.today())
    summary = report.summary
    return DailyReportResponse(
        date=summary.date,
        total_rooms=summary.total_rooms,
        in_house=summary.in_house,
        available_rooms=summary.available_rooms,
        occupancy_rate=summary.occupancy_rate,
        arrivals=summary.arrivals,
        departures=summary.departures,
        arrival_list=[ReservationResponse.model_validate(r) for r in report.arrivals],
        departure_list=[ReservationResponse.model_validate(r) for r in report.departures],
    )


@router.get("/occupancy", response_model=OccupancyTrendResponse)
async def occupancy_trend(
    start_date: date = Query(...),
    end_date: date = Query(..., description="Inclusive"),
    service: ReportService = Depends(get_report_service)
):
    """Occupied rooms and occupancy rate for each night of the range"""
    days = service.occupancy_trend(start_date, end_date)
    average = round(sum(d.occupancy_rate for d in days) / len(days), 2) if days else 0.0
    return OccupancyTrendResponse(
        start_date=start_date,
        end_date=end_date,
        average_rate=average,
        days=[OccupancyDayResponse.model_validate(d) for d in days],
    )


@router.get("/revenue", response_model=RevenueResponse)
async def monthly_revenue(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    service: ReportService = Depends(get_report_service),
    settings: Settings = Depends(get_settings)
):
    """
    Booked revenue of the stays arriving in a month.
    Cancelled reservations are excluded.
    """
    summary = service.monthly_revenue(year, month)
    return RevenueResponse(
        year=summary.year,
        month=summary.month,
        currency=settings.currency,
        total_revenue=summary.total_revenue,
        total_reservations=summary.total_reservations,
        average_revenue=summary.average_revenue,
    )
