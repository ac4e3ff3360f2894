"""
FILE: nexuschain/core/dependencies.py
FastAPI dependencies — authentication, role checks, pagination, relay
"""

from fastapi import Depends, Header, Request
from sqlmodel import Session
from typing import Optional
from uuid import UUID

from nexuschain.core.database import get_session
from nexuschain.core.exceptions import ForbiddenError, UnauthorizedError, ValidationError
from nexuschain.core.permissions import Action, allowed_roles
from nexuschain.core.security import decode_access_token
from nexuschain.notifications.relay import NotificationRelay
from nexuschain.shared.models import User
import logging

logger = logging.getLogger(__name__)


# Token extraction

def _extract_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise UnauthorizedError("Not authenticated")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedError("Invalid authorization header format")
    return parts[1]


def resolve_token_user(token: str, session: Session) -> User:
    """
    Validate a raw access token and return its active User.
    Shared by the HTTP dependency and the WebSocket handshake.
    """
    payload = decode_access_token(token)
    if not payload:
        raise UnauthorizedError("Could not validate credentials")

    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError:
        raise UnauthorizedError("Invalid token payload")

    user = session.get(User, user_id)
    if not user:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise ForbiddenError(detail="Account is deactivated")

    # Token revocation check — stored token must match
    if user.api_token != token:
        raise UnauthorizedError("Token has been revoked. Please log in again.")

    return user


# Current user

async def get_current_user(
    authorization: Optional[str] = Header(None),
    session: Session = Depends(get_session),
) -> User:
    """
    Validate Bearer token and return the authenticated User.
    Raises 401 on invalid token, 403 on inactive account.
    """
    token = _extract_token(authorization)
    return resolve_token_user(token, session)


# Role checks

def require_roles(*roles: str):
    """
    Dependency factory: user must hold one of the given roles.

    Usage:
        @router.post("", dependencies=[Depends(require_roles("MANUFACTURER", "ADMIN"))])
    """
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise ForbiddenError(
                detail=f"Access denied. Required roles: {', '.join(sorted(roles))}"
            )
        return current_user

    return checker


def require_action(action: Action):
    """Role check driven by the permission table."""
    return require_roles(*(role.value for role in allowed_roles(action)))


def require_admin():
    return require_action(Action.MANAGE_USERS)


# Notification relay

def get_relay(request: Request) -> NotificationRelay:
    return request.app.state.relay


# Pagination

def pagination_params(page: int = 1, page_size: int = 20) -> dict:
    """
    Standard pagination parameters.
    Returns {skip, limit, page, page_size}.
    """
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1 or page_size > 200:
        raise ValidationError("page_size must be between 1 and 200")
    skip = (page - 1) * page_size
    return {"skip": skip, "limit": page_size, "page": page, "page_size": page_size}
