from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import Callable, List, Optional
import logging

from ..core.config import settings
from ..core.exceptions import ConflictError, InvalidRequestError, NotFoundError, SameDayConflictError
from ..models.appointment import Appointment
from ..models.patient import Patient
from ..models.provider import Provider
from ..scheduling.availability import AvailabilityChecker, Slot, SlotProblem
from ..scheduling.calendar import BusinessWindow, week_days
from ..scheduling.conflicts import has_same_day_conflict
from ..scheduling.identity import Identity
from ..scheduling.lifecycle import (
    AppointmentStatus, authorize_booking, authorize_cancellation, authorize_read,
    authorize_status_change, ensure_transition, validate_booking_time, validate_note
)
from ..scheduling.repository import SqlAppointmentRepository
from ..schemas.appointments import (
    AppointmentFilters, AppointmentSummary, AppointmentResponse, BookAppointmentRequest
)

logger = logging.getLogger(__name__)

class AppointmentService:
    def __init__(
        self,
        db: Session,
        window: Optional[BusinessWindow] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.window = window or settings.business_window
        self.clock = clock
        self.repository = SqlAppointmentRepository(db)
        self.availability = AvailabilityChecker(self.repository, self.window, clock)

    def _get_provider(self, provider_id: int) -> Provider:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            raise NotFoundError("Provider not found")
        return provider

    def _get_patient(self, patient_id: int) -> Patient:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def _load(self, appointment_id: int) -> Appointment:
        appointment = self.repository.get(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def _commit(self):
        """Commit the unit of work or roll it back entirely."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # Slots

    def get_available_slots(self, provider_id: int, day: date) -> List[Slot]:
        """Slots for one day with their current availability."""
        self._get_provider(provider_id)
        return self.availability.slots_for_day(provider_id, day)

    def get_week_slots(self, provider_id: int, start_date: date) -> List[Slot]:
        """Slots for seven consecutive days starting at `start_date`."""
        self._get_provider(provider_id)
        return self.availability.slots_for_days(provider_id, week_days(start_date))

    # Booking

    def book_appointment(self, data: BookAppointmentRequest, identity: Identity) -> Appointment:
        """Create a scheduled appointment after every booking check passes."""
        notes = validate_note(data.notes, settings.NOTE_MAX_LENGTH)

        self._get_patient(data.patient_id)
        self._get_provider(data.provider_id)
        authorize_booking(identity, data.patient_id)

        now = self.clock()
        validate_booking_time(data.appointment_at, self.window, now)

        problem = self.availability.problem(data.provider_id, data.appointment_at)
        if problem == SlotProblem.BOOKED:
            logger.info(
                f"Rejected booking: provider {data.provider_id} slot "
                f"{data.appointment_at.isoformat()} already taken"
            )
            raise ConflictError("The selected time slot is no longer available")
        if problem is not None:
            raise InvalidRequestError(f"The selected time slot cannot be booked ({problem.value})")

        if has_same_day_conflict(self.repository, data.patient_id, data.provider_id, data.appointment_at):
            logger.info(
                f"Rejected booking: patient {data.patient_id} already has an appointment "
                f"with provider {data.provider_id} on {data.appointment_at.date().isoformat()}"
            )
            raise SameDayConflictError()

        appointment = Appointment(
            patient_id=data.patient_id,
            provider_id=data.provider_id,
            appointment_at=data.appointment_at,
            notes=notes,
            status=AppointmentStatus.SCHEDULED,
        )

        try:
            self.repository.add(appointment)
            self._commit()
        except ConflictError as exc:
            logger.warning(
                f"Concurrent booking lost the race for patient {data.patient_id}, "
                f"provider {data.provider_id} at {data.appointment_at.isoformat()}: {exc.message}"
            )
            raise

        logger.info(
            f"Appointment {appointment.id} booked: patient {appointment.patient_id}, "
            f"provider {appointment.provider_id}, at {appointment.appointment_at.isoformat()}"
        )
        return self._load(appointment.id)

    # Reads

    def get_appointment(self, appointment_id: int, identity: Identity) -> Appointment:
        appointment = self._load(appointment_id)
        authorize_read(identity, appointment)
        return appointment

    def list_appointments(self, identity: Identity, filters: AppointmentFilters) -> List[Appointment]:
        """Appointments owned by the identity, ordered by start time."""
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise InvalidRequestError("start_date must not be after end_date")
        return self.repository.list_for(
            identity,
            start_date=filters.start_date,
            end_date=filters.end_date,
            status=filters.status,
        )

    def get_upcoming(self, identity: Identity, limit: Optional[int] = None) -> List[Appointment]:
        return self.repository.upcoming_for(identity, self.clock(), limit or settings.UPCOMING_LIMIT)

    def get_summary(self, identity: Identity) -> AppointmentSummary:
        appointments = self.repository.list_for(identity)
        now = self.clock()
        today = now.date()

        def count(status: AppointmentStatus) -> int:
            return sum(1 for a in appointments if a.status == status)

        scheduled = [a for a in appointments if a.status == AppointmentStatus.SCHEDULED]

        return AppointmentSummary(
            total_appointments=len(appointments),
            scheduled_appointments=count(AppointmentStatus.SCHEDULED),
            completed_appointments=count(AppointmentStatus.COMPLETED),
            cancelled_appointments=count(AppointmentStatus.CANCELLED),
            no_show_appointments=count(AppointmentStatus.NO_SHOW),
            upcoming_appointments=[
                AppointmentResponse.from_appointment(a)
                for a in scheduled if a.appointment_at > now
            ][:5],
            today_appointments=[
                AppointmentResponse.from_appointment(a)
                for a in scheduled if a.appointment_at.date() == today
            ],
        )

    # Lifecycle

    def update_status(
        self,
        appointment_id: int,
        new_status: AppointmentStatus,
        identity: Identity,
    ) -> Appointment:
        """Move an appointment through the status table; provider only."""
        appointment = self._load(appointment_id)
        authorize_status_change(identity, appointment)
        if new_status == AppointmentStatus.CANCELLED:
            authorize_cancellation(identity, appointment, self.clock())
        ensure_transition(appointment.status, new_status)

        old_status = appointment.status
        appointment.status = new_status
        self.repository.save(appointment)
        self._commit()

        logger.info(
            f"Appointment {appointment.id} status changed from "
            f"{AppointmentStatus(old_status).value} to {AppointmentStatus(new_status).value}"
        )
        return appointment

    def cancel_appointment(self, appointment_id: int, identity: Identity) -> Appointment:
        """Cancel a future scheduled appointment as its patient or provider."""
        appointment = self._load(appointment_id)
        authorize_cancellation(identity, appointment, self.clock())
        ensure_transition(appointment.status, AppointmentStatus.CANCELLED)

        appointment.status = AppointmentStatus.CANCELLED
        self.repository.save(appointment)
        self._commit()

        logger.info(f"Appointment {appointment.id} cancelled by {type(identity).__name__} {identity.id}")
        return appointment
