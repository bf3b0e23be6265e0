from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum
import hashlib
import secrets

from .config import settings

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
)

# JWT Security; missing credentials are reported by the dependency, not here
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    PATIENT = "patient"
    PROVIDER = "provider"

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class TokenPayload(BaseModel):
    sub: Optional[int] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None  # "access" or "refresh"

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

def hash_token(token: str) -> str:
    """Digest used to store refresh tokens."""
    return hashlib.sha256(token.encode()).hexdigest()

# JWT utilities
def _encode(data: dict, expire: datetime, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "token_type": token_type,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token."""
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return _encode(data, expire, "access")

def create_refresh_token(data: dict) -> str:
    """Create JWT refresh token."""
    expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    # jti keeps tokens issued within the same second distinct
    return _encode({**data, "jti": secrets.token_hex(16)}, expire, "refresh")

def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify and decode JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        return TokenPayload(**payload)

    except (JWTError, ValueError):
        return None

def create_token_pair(user_id: int, email: str, role: UserRole) -> Token:
    """Create both access and refresh tokens."""
    token_data = {
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value
    }

    access_token = create_access_token(token_data)
    refresh_token = create_refresh_token(token_data)

    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
