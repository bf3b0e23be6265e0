from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_identity
from ...scheduling.identity import Identity
from ...services.directory_service import DirectoryService
from ...schemas.directory import PatientResponse, ProviderResponse

router = APIRouter(tags=["Directory"])

@router.get("/providers", response_model=List[ProviderResponse])
async def list_providers(
    db: Session = Depends(get_db),
    _: Identity = Depends(get_current_identity)
):
    """List all providers."""
    providers = DirectoryService(db).list_providers()
    return [ProviderResponse.model_validate(p) for p in providers]

@router.get("/providers/{provider_id}", response_model=ProviderResponse)
async def get_provider(
    provider_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(get_current_identity)
):
    return ProviderResponse.model_validate(DirectoryService(db).get_provider(provider_id))

@router.get("/patients", response_model=List[PatientResponse])
async def list_patients(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """List patients visible to the caller."""
    patients = DirectoryService(db).list_patients(identity)
    return [PatientResponse.model_validate(p) for p in patients]

@router.get("/patients/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    return PatientResponse.model_validate(DirectoryService(db).get_patient(patient_id, identity))
