from pydantic import BaseModel
from typing import Optional

class ProviderResponse(BaseModel):
    id: int
    full_name: str
    email: Optional[str] = None
    specialty: str
    phone_number: str
    clinic_address: str

    model_config = {"from_attributes": True}

class PatientResponse(BaseModel):
    id: int
    full_name: str
    email: Optional[str] = None
    age: int
    gender: str
    phone_number: str

    model_config = {"from_attributes": True}
