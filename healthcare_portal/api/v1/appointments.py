"""Appointment endpoints."""

from datetime import date, datetime
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_clock, get_current_identity
from ...scheduling.identity import Identity
from ...scheduling.lifecycle import AppointmentStatus
from ...services.appointment_service import AppointmentService
from ...schemas.appointments import (
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentSummary,
    BookAppointmentRequest,
    CancellationResponse,
    SlotResponse,
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AppointmentService:
    return AppointmentService(db, clock=clock)


@router.get("/slots", response_model=List[SlotResponse])
async def get_available_slots(
    provider_id: int,
    day: Optional[date] = Query(None, alias="date"),
    service: AppointmentService = Depends(get_appointment_service),
    _: Identity = Depends(get_current_identity),
):
    """
    Candidate slots for a provider on one day, defaulting to today.

    Weekends and past days return an empty list.
    """
    target = day or service.clock().date()
    slots = service.get_available_slots(provider_id, target)
    return [SlotResponse(timestamp=s.start, is_available=s.is_available) for s in slots]


@router.get("/slots/week", response_model=List[SlotResponse])
async def get_week_slots(
    provider_id: int,
    start_date: Optional[date] = Query(None),
    service: AppointmentService = Depends(get_appointment_service),
    _: Identity = Depends(get_current_identity),
):
    """Candidate slots for seven consecutive days."""
    start = start_date or service.clock().date()
    slots = service.get_week_slots(provider_id, start)
    return [SlotResponse(timestamp=s.start, is_available=s.is_available) for s in slots]


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    data: BookAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
    identity: Identity = Depends(get_current_identity),
):
    """Book an appointment for a patient with a provider."""
    appointment = service.book_appointment(data, identity)
    return AppointmentResponse.from_appointment(appointment)


@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    service: AppointmentService = Depends(get_appointment_service),
    identity: Identity = Depends(get_current_identity),
):
    """The caller's own appointments ordered by start time."""
    filters = AppointmentFilters(start_date=start_date, end_date=end_date, status=status_filter)
    appointments = service.list_appointments(identity, filters)
    return [AppointmentResponse.from_appointment(a) for a in appointments]


@router.get("/upcoming", response_model=List[AppointmentResponse])
async def get_upcoming_appointments(
    service: AppointmentService = Depends(get_appointment_service),
    identity: Identity = Depends(get_current_identity),
):
    """Next scheduled appointments for the caller."""
    return [AppointmentResponse.from_appointment(a) for a in service.get_upcoming(identity)]


@router.get("/summary", response_model=AppointmentSummary)
async def get_appointment_summary(
    service: AppointmentService = Depends(get_appointment_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.get_summary(identity)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
    identity: Identity = Depends(get_current_identity),
):
    return AppointmentResponse.from_appointment(service.get_appointment(appointment_id, identity))


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
    identity: Identity = Depends(get_current_identity),
):
    """Change status; only the assigned provider may do this."""
    appointment = service.update_status(appointment_id, data.status, identity)
    return AppointmentResponse.from_appointment(appointment)


@router.delete("/{appointment_id}", response_model=CancellationResponse)
async def cancel_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
    identity: Identity = Depends(get_current_identity),
):
    """Cancel a future scheduled appointment. Nothing is deleted."""
    appointment = service.cancel_appointment(appointment_id, identity)
    return CancellationResponse(
        message="Appointment cancelled successfully",
        appointment=AppointmentResponse.from_appointment(appointment),
    )
