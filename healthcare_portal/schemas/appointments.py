"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from ..scheduling.lifecycle import AppointmentStatus


def _local_naive(value: datetime) -> datetime:
    """Appointments use a single implicit local time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class BookAppointmentRequest(BaseModel):
    """Schema for booking a new appointment."""

    patient_id: int
    provider_id: int
    appointment_at: datetime
    notes: Optional[str] = None  # trimmed and length-checked on booking

    @field_validator("appointment_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return _local_naive(v)


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: int
    patient_id: int
    patient_name: str
    patient_email: Optional[str] = None
    patient_phone: str
    provider_id: int
    provider_name: str
    provider_specialty: str
    provider_phone: str
    clinic_address: str
    appointment_at: datetime
    notes: Optional[str] = None
    status: AppointmentStatus
    created_at: Optional[datetime] = None

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentResponse":
        patient = appointment.patient
        provider = appointment.provider
        return cls(
            id=appointment.id,
            patient_id=appointment.patient_id,
            patient_name=patient.full_name,
            patient_email=patient.email,
            patient_phone=patient.phone_number,
            provider_id=appointment.provider_id,
            provider_name=provider.full_name,
            provider_specialty=provider.specialty,
            provider_phone=provider.phone_number,
            clinic_address=provider.clinic_address,
            appointment_at=appointment.appointment_at,
            notes=appointment.notes,
            status=appointment.status,
            created_at=appointment.created_at,
        )


class SlotResponse(BaseModel):
    """A candidate start time and whether it can be booked right now."""

    timestamp: datetime
    is_available: bool


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AppointmentStatus] = None


class AppointmentSummary(BaseModel):
    total_appointments: int
    scheduled_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    no_show_appointments: int
    upcoming_appointments: List[AppointmentResponse]
    today_appointments: List[AppointmentResponse]


class CancellationResponse(BaseModel):
    message: str
    appointment: AppointmentResponse
