"""
FILE: nexuschain/checkpoints/router.py
Checkpoint ledger endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from uuid import UUID

from nexuschain.checkpoints.schemas import CheckpointCreate, CheckpointUpdate
from nexuschain.checkpoints.services import CheckpointService
from nexuschain.core.config import settings
from nexuschain.core.database import get_session
from nexuschain.core.dependencies import get_current_user, get_relay, require_action
from nexuschain.core.permissions import Action
from nexuschain.notifications.relay import NotificationRelay
from nexuschain.shared.models import User
from nexuschain.shared.schemas import ResponseModel
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkpoints", tags=["Checkpoints"])


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def add_checkpoint(
    req: CheckpointCreate,
    current_user: User = Depends(require_action(Action.ADD_CHECKPOINT)),
    session: Session = Depends(get_session),
    relay: NotificationRelay = Depends(get_relay),
):
    """Record a checkpoint. LOGISTICS, MANUFACTURER or ADMIN."""
    checkpoint = await CheckpointService.add(
        req, current_user, session, relay, policy=settings.STATUS_DERIVATION_POLICY
    )
    return ResponseModel(success=True, message="Checkpoint added successfully", data=checkpoint.to_api())


@router.get("/product/{product_id}", response_model=ResponseModel)
async def list_product_checkpoints(
    product_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Full checkpoint history of a product, newest first."""
    checkpoints = await CheckpointService.list_by_product(product_id, session)
    return ResponseModel(
        success=True,
        data=[cp.to_api() for cp in checkpoints],
        total=len(checkpoints),
    )


@router.get("/product/{product_id}/alerts", response_model=ResponseModel)
async def temperature_alerts(
    product_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    result = await CheckpointService.temperature_alerts(product_id, session)
    return ResponseModel(success=True, data=result, total=result["count"])


@router.get("/{checkpoint_id}", response_model=ResponseModel)
async def get_checkpoint(
    checkpoint_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    checkpoint = await CheckpointService.get_checkpoint(checkpoint_id, session)
    return ResponseModel(success=True, data=checkpoint.to_api())


@router.put("/{checkpoint_id}", response_model=ResponseModel)
async def update_checkpoint(
    checkpoint_id: UUID,
    req: CheckpointUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    relay: NotificationRelay = Depends(get_relay),
):
    """Partial update. Original handler or ADMIN."""
    checkpoint = await CheckpointService.update(
        checkpoint_id, req, current_user, session, relay, policy=settings.STATUS_DERIVATION_POLICY
    )
    return ResponseModel(success=True, message="Checkpoint updated successfully", data=checkpoint.to_api())


@router.delete("/{checkpoint_id}", response_model=ResponseModel)
async def delete_checkpoint(
    checkpoint_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    relay: NotificationRelay = Depends(get_relay),
):
    """Original handler or ADMIN. Product state is re-derived from the remaining checkpoints."""
    await CheckpointService.delete(
        checkpoint_id,
        current_user,
        session,
        relay,
        policy=settings.STATUS_DERIVATION_POLICY,
        rederive=settings.REDERIVE_ON_CHECKPOINT_DELETE,
    )
    return ResponseModel(success=True, message="Checkpoint deleted successfully")
