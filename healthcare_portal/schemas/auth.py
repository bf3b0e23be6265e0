from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

from ..core.security import UserRole

class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole
    full_name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=7, max_length=20)

    # Patient profile
    age: Optional[int] = Field(None, ge=1, le=120)
    gender: Optional[str] = Field(None, min_length=1, max_length=10)

    # Provider profile
    specialty: Optional[str] = Field(None, min_length=1, max_length=100)
    clinic_address: Optional[str] = Field(None, min_length=1, max_length=200)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not any(c.isdigit() for c in v) or not any(c.isalpha() for c in v):
            raise ValueError("Password must contain letters and digits")
        return v

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        cleaned = v.replace("-", "").replace(" ", "").replace("(", "").replace(")", "").replace("+", "")
        if not cleaned.isdigit():
            raise ValueError("Phone number must contain only digits and separators")
        return v

    @model_validator(mode="after")
    def validate_profile(self):
        if self.role == UserRole.PATIENT:
            missing = [name for name in ("age", "gender") if getattr(self, name) is None]
        else:
            missing = [name for name in ("specialty", "clinic_address") if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.role.value} registration requires: {', '.join(missing)}")
        return self

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserResponse(BaseModel):
    id: int
    email: str
    role: UserRole
    is_active: bool
    profile_id: Optional[int] = None
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        profile = user.profile
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            is_active=user.is_active,
            profile_id=profile.id if profile else None,
            full_name=profile.full_name if profile else None,
            created_at=user.created_at,
        )

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class MessageResponse(BaseModel):
    message: str

class ChangePassword(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=72)
