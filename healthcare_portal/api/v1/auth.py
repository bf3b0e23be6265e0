"""Registration, login and token endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, rate_limit_check
from ...models.user import User
from ...services.auth_service import AuthService
from ...schemas.auth import (
    ChangePassword,
    MessageResponse,
    RefreshTokenRequest,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_check)],
)
async def register(user_data: UserRegister, service: AuthService = Depends(get_auth_service)):
    """
    Register a patient or a provider.

    The role decides which profile fields are required: age and gender for
    patients, specialty and clinic address for providers.
    """
    return UserResponse.from_user(service.register_user(user_data))


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(rate_limit_check)])
async def login(credentials: UserLogin, service: AuthService = Depends(get_auth_service)):
    return service.authenticate_user(credentials)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshTokenRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new pair; the old one stops working."""
    return service.refresh_access_token(body.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(body: RefreshTokenRequest, service: AuthService = Depends(get_auth_service)):
    revoked = service.logout_user(body.refresh_token)
    return MessageResponse(message="Logged out" if revoked else "Nothing to revoke")


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return UserResponse.from_user(current_user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePassword,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Change the password and sign out every other session."""
    service.change_password(current_user, body)
    return MessageResponse(message="Password changed")
