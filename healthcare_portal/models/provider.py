from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Professional information
    full_name = Column(String(100), nullable=False)
    specialty = Column(String(100), nullable=False)

    # Contact information
    phone_number = Column(String(20), nullable=False)
    clinic_address = Column(String(200), nullable=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="provider")
    appointments = relationship("Appointment", back_populates="provider")

    @property
    def email(self):
        return self.user.email if self.user else None

    def __repr__(self):
        return f"<Provider(id={self.id}, name='{self.full_name}', specialty='{self.specialty}')>"
