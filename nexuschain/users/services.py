"""
FILE: nexuschain/users/services.py
User administration — listing and activation flag flips
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from nexuschain.auth.schemas import UserOut
from nexuschain.core.exceptions import NotFoundError, ValidationError
from nexuschain.shared.models import User, UserRole, utcnow
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Admin-only user management. Users are never hard-deleted."""

    @staticmethod
    async def list_users(
        session: Session,
        role: Optional[UserRole] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[UserOut], int]:
        """Returns (items, total_count), newest first."""
        query = select(User)
        count_query = select(func.count()).select_from(User)
        if role is not None:
            query = query.where(User.role == role)
            count_query = count_query.where(User.role == role)

        total = session.exec(count_query).one()
        users = session.exec(
            query.order_by(User.created_at.desc()).offset(skip).limit(limit)  # type: ignore
        ).all()
        return [UserOut.model_validate(u) for u in users], total

    @staticmethod
    def _get_or_404(user_id: UUID, session: Session) -> User:
        user = session.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    async def set_active(user_id: UUID, active: bool, actor: User, session: Session) -> UserOut:
        """Flip the activation flag. Deactivation also revokes the current token."""
        if not active and user_id == actor.id:
            raise ValidationError("You cannot deactivate your own account")

        user = UserService._get_or_404(user_id, session)
        user.is_active = active
        if not active:
            user.api_token = None
        user.updated_at = utcnow()
        session.add(user)
        session.commit()
        session.refresh(user)

        logger.info(f"{'✅ Activated' if active else '⛔ Deactivated'} user {user.email} by {actor.email}")
        return UserOut.model_validate(user)
