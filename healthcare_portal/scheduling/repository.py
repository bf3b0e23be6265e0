"""
Appointment storage.

The scheduling code depends on the ``AppointmentRepository`` protocol only;
``SqlAppointmentRepository`` is the SQLAlchemy implementation used by the
service layer. Neither commits: the caller owns the unit of work.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import SameDayConflictError, SlotTakenError
from ..models.appointment import SAME_DAY_INDEX, Appointment
from ..models.patient import Patient
from ..models.provider import Provider
from .identity import Identity, PatientIdentity
from .lifecycle import AppointmentStatus


class AppointmentRepository(Protocol):
    def get(self, appointment_id: int) -> Optional[Appointment]: ...

    def booked_times(self, provider_id: int, day: date) -> List[datetime]: ...

    def is_booked(self, provider_id: int, timestamp: datetime) -> bool: ...

    def has_scheduled_on_day(self, patient_id: int, provider_id: int, day: date) -> bool: ...

    def add(self, appointment: Appointment) -> Appointment: ...

    def save(self, appointment: Appointment) -> Appointment: ...

    def list_for(
        self,
        identity: Identity,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]: ...

    def upcoming_for(self, identity: Identity, now: datetime, limit: int) -> List[Appointment]: ...


def _day_bounds(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class SqlAppointmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient).joinedload(Patient.user),
            joinedload(Appointment.provider).joinedload(Provider.user),
        )

    def _scheduled(self):
        return self.db.query(Appointment).filter(
            Appointment.status == AppointmentStatus.SCHEDULED
        )

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self._query().filter(Appointment.id == appointment_id).first()

    def booked_times(self, provider_id: int, day: date) -> List[datetime]:
        start, end = _day_bounds(day)
        rows = (
            self._scheduled()
            .with_entities(Appointment.appointment_at)
            .filter(
                Appointment.provider_id == provider_id,
                Appointment.appointment_at >= start,
                Appointment.appointment_at < end,
            )
            .all()
        )
        return [row.appointment_at for row in rows]

    def is_booked(self, provider_id: int, timestamp: datetime) -> bool:
        return self.db.query(
            self._scheduled().filter(
                Appointment.provider_id == provider_id,
                Appointment.appointment_at == timestamp,
            ).exists()
        ).scalar()

    def has_scheduled_on_day(self, patient_id: int, provider_id: int, day: date) -> bool:
        start, end = _day_bounds(day)
        return self.db.query(
            self._scheduled().filter(
                Appointment.patient_id == patient_id,
                Appointment.provider_id == provider_id,
                Appointment.appointment_at >= start,
                Appointment.appointment_at < end,
            ).exists()
        ).scalar()

    def _flush(self):
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            if SAME_DAY_INDEX in str(exc.orig):
                raise SameDayConflictError() from exc
            raise SlotTakenError() from exc

    def add(self, appointment: Appointment) -> Appointment:
        """Stage a new appointment.

        A collision on either scheduled-only unique index becomes a
        ConflictError: SameDayConflictError for the patient/provider/day
        index, SlotTakenError for the provider slot index.
        """
        self.db.add(appointment)
        self._flush()
        return appointment

    def save(self, appointment: Appointment) -> Appointment:
        self._flush()
        return appointment

    def _owned_by(self, query, identity: Identity):
        if isinstance(identity, PatientIdentity):
            return query.filter(Appointment.patient_id == identity.id)
        return query.filter(Appointment.provider_id == identity.id)

    def list_for(
        self,
        identity: Identity,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]:
        query = self._owned_by(self._query(), identity)

        if start_date:
            query = query.filter(Appointment.appointment_at >= _day_bounds(start_date)[0])

        if end_date:
            query = query.filter(Appointment.appointment_at < _day_bounds(end_date)[1])

        if status:
            query = query.filter(Appointment.status == status)

        return query.order_by(Appointment.appointment_at, Appointment.id).all()

    def upcoming_for(self, identity: Identity, now: datetime, limit: int) -> List[Appointment]:
        query = self._owned_by(self._query(), identity).filter(
            Appointment.status == AppointmentStatus.SCHEDULED,
            Appointment.appointment_at > now,
        )
        return query.order_by(Appointment.appointment_at).limit(limit).all()
