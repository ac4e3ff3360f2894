"""
FILE: nexuschain/users/router.py
User administration endpoints — admin only, paginated
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
from uuid import UUID
from typing import Any, Dict, Optional

from nexuschain.core.database import get_session
from nexuschain.core.dependencies import pagination_params, require_admin
from nexuschain.shared.models import User, UserRole
from nexuschain.shared.schemas import PaginatedResponse, ResponseModel
from nexuschain.users.services import UserService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=PaginatedResponse[Dict[str, Any]])
async def list_users(
    role: Optional[UserRole] = None,
    pagination: dict = Depends(pagination_params),
    admin: User = Depends(require_admin()),
    session: Session = Depends(get_session),
):
    """List users, optionally filtered by role."""
    users, total = await UserService.list_users(
        session, role=role, skip=pagination["skip"], limit=pagination["limit"]
    )
    return PaginatedResponse.build(
        items=[u.to_api() for u in users],
        total=total,
        page=pagination["page"],
        page_size=pagination["page_size"],
    )


@router.put("/{user_id}/deactivate", response_model=ResponseModel)
async def deactivate_user(
    user_id: UUID,
    admin: User = Depends(require_admin()),
    session: Session = Depends(get_session),
):
    user = await UserService.set_active(user_id, False, admin, session)
    return ResponseModel(success=True, message="User deactivated", data=user.to_api())


@router.put("/{user_id}/activate", response_model=ResponseModel)
async def activate_user(
    user_id: UUID,
    admin: User = Depends(require_admin()),
    session: Session = Depends(get_session),
):
    user = await UserService.set_active(user_id, True, admin, session)
    return ResponseModel(success=True, message="User activated", data=user.to_api())
