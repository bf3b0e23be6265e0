from sqlalchemy.orm import Session
from datetime import datetime, timedelta
import logging

from ..core.exceptions import ConflictError, InvalidRequestError, UnauthenticatedError
from ..models.user import User, RefreshToken
from ..models.patient import Patient
from ..models.provider import Provider
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, hash_token, UserRole
)
from ..schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse, ChangePassword

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister) -> User:
        """Register a patient or provider together with their profile."""
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise ConflictError("Email already registered")

        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            is_active=True,
        )

        if user_data.role == UserRole.PATIENT:
            new_user.patient = Patient(
                full_name=user_data.full_name.strip(),
                age=user_data.age,
                gender=user_data.gender,
                phone_number=user_data.phone_number,
            )
        else:
            new_user.provider = Provider(
                full_name=user_data.full_name.strip(),
                specialty=user_data.specialty,
                phone_number=user_data.phone_number,
                clinic_address=user_data.clinic_address,
            )

        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)

        logger.info(f"Registered {new_user.role.value} user {new_user.id}")
        return new_user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return tokens."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            logger.warning(f"Failed login for {login_data.email}")
            raise UnauthenticatedError("Invalid email or password")

        if not user.is_active:
            raise UnauthenticatedError("Account is deactivated")

        user.last_login = datetime.utcnow()
        response = self._issue_tokens(user)
        self.db.commit()
        return response

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Rotate a refresh token into a new token pair."""
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != "refresh":
            raise UnauthenticatedError("Invalid refresh token")

        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == hash_token(refresh_token),
            RefreshToken.is_revoked == False,  # noqa: E712
            RefreshToken.expires_at > datetime.utcnow()
        ).first()

        if not stored_token:
            raise UnauthenticatedError("Invalid or expired refresh token")

        user = self.db.query(User).filter(
            User.id == token_payload.sub
        ).first()

        if not user or not user.is_active:
            raise UnauthenticatedError("User not found or inactive")

        response = self._issue_tokens(user)
        self.db.commit()
        return response

    def logout_user(self, refresh_token: str) -> bool:
        """Logout user by revoking refresh token."""
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == hash_token(refresh_token)
        ).first()

        if not stored_token:
            return False

        stored_token.is_revoked = True
        self.db.commit()
        return True

    def change_password(self, user: User, password_data: ChangePassword) -> None:
        if not verify_password(password_data.current_password, user.password_hash):
            raise InvalidRequestError("Current password is incorrect")

        user.password_hash = get_password_hash(password_data.new_password)
        self._revoke_refresh_tokens(user.id)
        self.db.commit()

    def _issue_tokens(self, user: User) -> TokenResponse:
        tokens = create_token_pair(user.id, user.email, user.role)
        self._store_refresh_token(user.id, tokens.refresh_token)

        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.from_user(user)
        )

    def _revoke_refresh_tokens(self, user_id: int):
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id
        ).update({"is_revoked": True})

    def _store_refresh_token(self, user_id: int, refresh_token: str):
        """Store refresh token in database, revoking earlier ones."""
        token_payload = verify_token(refresh_token)
        expires_at = (
            datetime.utcfromtimestamp(token_payload.exp)
            if token_payload and token_payload.exp
            else datetime.utcnow() + timedelta(days=7)
        )

        self._revoke_refresh_tokens(user_id)

        self.db.add(RefreshToken(
            user_id=user_id,
            token_hash=hash_token(refresh_token),
            expires_at=expires_at
        ))
