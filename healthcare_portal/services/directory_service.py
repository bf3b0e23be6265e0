from sqlalchemy.orm import Session, joinedload
from typing import List

from ..core.exceptions import ForbiddenError, NotFoundError
from ..models.patient import Patient
from ..models.provider import Provider
from ..scheduling.identity import Identity, PatientIdentity

class DirectoryService:
    """Read-only lookups of providers and patients."""

    def __init__(self, db: Session):
        self.db = db

    def list_providers(self) -> List[Provider]:
        return (
            self.db.query(Provider)
            .options(joinedload(Provider.user))
            .order_by(Provider.full_name)
            .all()
        )

    def get_provider(self, provider_id: int) -> Provider:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            raise NotFoundError("Provider not found")
        return provider

    def list_patients(self, identity: Identity) -> List[Patient]:
        """Providers see every patient; a patient only sees themselves."""
        query = self.db.query(Patient).options(joinedload(Patient.user))
        if isinstance(identity, PatientIdentity):
            query = query.filter(Patient.id == identity.id)
        return query.order_by(Patient.full_name).all()

    def get_patient(self, patient_id: int, identity: Identity) -> Patient:
        if isinstance(identity, PatientIdentity) and identity.id != patient_id:
            raise ForbiddenError("You can only view your own patient record")

        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundError("Patient not found")
        return patient
