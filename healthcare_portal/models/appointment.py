from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index, Enum as SQLEnum, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..scheduling.lifecycle import AppointmentStatus

# Re-exported for callers that think of status as part of the model
__all__ = ["Appointment", "AppointmentStatus"]

SCHEDULED_ONLY = text("status = 'scheduled'")

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)

    # Appointment details; duration is the slot length
    appointment_at = Column(DateTime, nullable=False, index=True)
    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    notes = Column(String(500), nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    provider = relationship("Provider", back_populates="appointments")

    __table_args__ = (
        # One scheduled appointment per provider slot; storage is the source of truth
        Index(
            "uq_appointments_provider_slot_scheduled",
            "provider_id",
            "appointment_at",
            unique=True,
            postgresql_where=SCHEDULED_ONLY,
            sqlite_where=SCHEDULED_ONLY,
        ),
        Index("ix_appointments_patient_provider_at", "patient_id", "provider_id", "appointment_at"),
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, patient_id={self.patient_id}, "
            f"provider_id={self.provider_id}, at='{self.appointment_at}', status='{self.status}')>"
        )

SAME_DAY_INDEX = "uq_appointments_patient_provider_day_scheduled"

# One scheduled appointment per patient, provider and calendar day
_columns = Appointment.__table__.c
Index(
    SAME_DAY_INDEX,
    _columns.patient_id,
    _columns.provider_id,
    func.date(_columns.appointment_at),
    unique=True,
    postgresql_where=SCHEDULED_ONLY,
    sqlite_where=SCHEDULED_ONLY,
)
