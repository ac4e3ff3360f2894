"""
FILE: nexuschain/auth/services.py
Authentication service — registration, login, token revocation, profile
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from nexuschain.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from nexuschain.core.security import create_access_token, hash_password, verify_password
from nexuschain.shared.models import User, utcnow
from nexuschain.auth.schemas import (
    AuthResult,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserOut,
)
import logging

logger = logging.getLogger(__name__)

# Profile keys that may not be cleared with an explicit null
NON_NULLABLE_PROFILE_FIELDS = {"name"}


class AuthService:
    """All authentication and token business logic."""

    # Lookup helpers

    @staticmethod
    def _find_by_email(email: str, session: Session) -> Optional[User]:
        return session.exec(select(User).where(User.email == email.lower().strip())).first()

    @staticmethod
    def _ensure_wallet_free(wallet: str, session: Session, exclude_user_id: Optional[UUID] = None):
        query = select(User).where(User.wallet_address == wallet)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        if session.exec(query).first():
            raise ConflictError("Wallet address already registered")

    @staticmethod
    def _issue_token(user: User, session: Session) -> str:
        """Create a token and store it as the user's only valid token."""
        token = create_access_token(user_id=user.id, email=user.email, role=user.role.value)
        user.api_token = token
        user.last_login_at = utcnow()
        user.updated_at = utcnow()
        session.add(user)
        session.commit()
        session.refresh(user)
        return token

    # Register / Login / Logout

    @staticmethod
    async def register(req: RegisterRequest, session: Session) -> AuthResult:
        if AuthService._find_by_email(req.email, session):
            raise ConflictError("User with this email already exists")
        if req.wallet_address:
            AuthService._ensure_wallet_free(req.wallet_address, session)

        user = User(
            email=req.email,
            password_hash=hash_password(req.password),
            name=req.name,
            role=req.role,
            company=req.company,
            phone=req.phone,
            wallet_address=req.wallet_address,
        )
        session.add(user)
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            raise ConflictError("User with this email or wallet address already exists")
        token = AuthService._issue_token(user, session)

        logger.info(f"👤 Registered {user.role.value} user: {user.email}")
        return AuthResult(user=UserOut.model_validate(user), token=token)

    @staticmethod
    async def login(req: LoginRequest, session: Session) -> AuthResult:
        user = AuthService._find_by_email(req.email, session)
        if not user or not verify_password(req.password, user.password_hash):
            raise UnauthorizedError("Invalid credentials")
        if not user.is_active:
            raise ForbiddenError(detail="Account is deactivated")

        token = AuthService._issue_token(user, session)
        logger.info(f"🔑 Login: {user.email}")
        return AuthResult(user=UserOut.model_validate(user), token=token)

    @staticmethod
    async def logout(user: User, session: Session) -> None:
        user.api_token = None
        user.updated_at = utcnow()
        session.add(user)
        session.commit()
        logger.info(f"🚪 Logout: {user.email}")

    # Profile

    @staticmethod
    async def update_profile(user: User, req: UpdateProfileRequest, session: Session) -> UserOut:
        changes = req.model_dump(exclude_unset=True)
        for field in NON_NULLABLE_PROFILE_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        if changes.get("wallet_address"):
            AuthService._ensure_wallet_free(changes["wallet_address"], session, exclude_user_id=user.id)

        for field, value in changes.items():
            setattr(user, field, value)
        if changes:
            user.updated_at = utcnow()
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise ConflictError("Wallet address already registered")
            session.refresh(user)
        return UserOut.model_validate(user)

    @staticmethod
    async def change_password(user: User, req: ChangePasswordRequest, session: Session) -> None:
        """Verify the current password, store the new hash, revoke the current token."""
        if not verify_password(req.current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")

        user.password_hash = hash_password(req.new_password)
        user.api_token = None
        user.updated_at = utcnow()
        session.add(user)
        session.commit()
        logger.info(f"🔒 Password changed: {user.email}")
