from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Callable, Optional
from datetime import datetime

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.exceptions import RateLimitError, UnauthenticatedError
from ..core.security import security, verify_token, UserRole, TokenPayload
from ..models.user import User
from ..scheduling.identity import Identity, PatientIdentity, ProviderIdentity

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None:
        raise UnauthenticatedError("User not authenticated")

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise UnauthenticatedError("Invalid or expired token")

    if token_payload.token_type != "access":
        raise UnauthenticatedError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise UnauthenticatedError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise UnauthenticatedError("User not found")

    if not user.is_active:
        raise UnauthenticatedError("User account is deactivated")

    return user

async def get_current_identity(
    current_user: User = Depends(get_current_user)
) -> Identity:
    """Resolve the user to the patient or provider acting in this request."""
    profile = current_user.profile
    if profile is None:
        raise UnauthenticatedError("User has no patient or provider profile")

    if current_user.role == UserRole.PATIENT:
        return PatientIdentity(profile.id)
    return ProviderIdentity(profile.id)

def get_clock() -> Callable[[], datetime]:
    """Source of "now" for scheduling decisions."""
    return datetime.now

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Per-IP hourly limit for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)
    elif int(current_requests) >= settings.RATE_LIMIT_PER_HOUR:
        raise RateLimitError()
    else:
        redis_client.incr(key)
