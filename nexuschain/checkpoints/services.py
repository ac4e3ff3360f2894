"""
FILE: nexuschain/checkpoints/services.py
Checkpoint ledger — append, read, patch, delete, temperature alerts

Every write keeps the owning product's current_status / current_location in
line with the ledger according to the active StatusDerivationPolicy. The
checkpoint write and the product update are committed together.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlmodel import Session

from nexuschain.checkpoints import deriver
from nexuschain.checkpoints.deriver import StatusDerivationPolicy
from nexuschain.checkpoints.schemas import (
    CheckpointCreate,
    CheckpointDetail,
    CheckpointOut,
    CheckpointUpdate,
    CheckpointWithHandler,
    ProductBrief,
)
from nexuschain.auth.schemas import UserSummary
from nexuschain.core.exceptions import NotFoundError, ValidationError
from nexuschain.core.permissions import Action
from nexuschain.notifications import relay as events
from nexuschain.notifications.relay import NotificationRelay, Notification
from nexuschain.products.services import ProductService, ensure_allowed, product_event_payload
from nexuschain.shared.models import Checkpoint, Product, User, to_naive_utc, utcnow
import logging

logger = logging.getLogger(__name__)

NON_NULLABLE_PATCH_FIELDS = {"location", "status"}


def checkpoint_event_payload(checkpoint: Checkpoint) -> Dict[str, Any]:
    return CheckpointOut.model_validate(checkpoint).to_api()


def _check_coordinates(latitude: Optional[float], longitude: Optional[float]):
    if (latitude is None) != (longitude is None):
        raise ValidationError("latitude and longitude must be provided together")


def _state_change_notifications(
    old_status: str,
    old_location: Optional[str],
    product: Product,
    checkpoint: Checkpoint,
) -> List[Notification]:
    product_payload = product_event_payload(product)
    notifications: List[Notification] = []
    if product.current_status != old_status:
        notifications += events.status_changed(old_status, product.current_status, product_payload)
    if product.current_location != old_location:
        notifications += events.location_updated(
            old_location, product.current_location, checkpoint_event_payload(checkpoint), product_payload
        )
    return notifications


class CheckpointService:
    """Checkpoint business logic."""

    @staticmethod
    def get_or_404(checkpoint_id: UUID, session: Session) -> Checkpoint:
        checkpoint = session.get(Checkpoint, checkpoint_id)
        if not checkpoint:
            raise NotFoundError("Checkpoint", checkpoint_id)
        return checkpoint

    @staticmethod
    def get_mutable_or_404(checkpoint_id: UUID, session: Session) -> Checkpoint:
        """Checkpoints of soft-deleted products are read-only."""
        checkpoint = CheckpointService.get_or_404(checkpoint_id, session)
        if not checkpoint.product.is_active:
            raise NotFoundError("Checkpoint", checkpoint_id)
        return checkpoint

    # Append

    @staticmethod
    async def add(
        req: CheckpointCreate,
        actor: User,
        session: Session,
        relay: NotificationRelay,
        policy: StatusDerivationPolicy = deriver.DEFAULT_STATUS_POLICY,
    ) -> CheckpointOut:
        """
        Record a checkpoint handled by actor. The product's current fields move
        to this checkpoint unless the policy says a newer one already holds them.
        """
        ensure_allowed(Action.ADD_CHECKPOINT, actor, None, "add checkpoints")
        product = ProductService.get_active_or_404(req.product_id, session)
        _check_coordinates(req.latitude, req.longitude)

        now = utcnow()
        checkpoint = Checkpoint(
            product_id=product.id,
            location=req.location,
            latitude=req.latitude,
            longitude=req.longitude,
            status=req.status,
            temperature=req.temperature,
            humidity=req.humidity,
            notes=req.notes,
            handled_by=actor.id,
            blockchain_hash=req.blockchain_hash,
            timestamp=to_naive_utc(req.timestamp) if req.timestamp else now,
            created_at=now,
        )

        current_latest = deriver.select_latest(product.checkpoints, policy)
        old_status, old_location = product.current_status, product.current_location
        if deriver.supersedes(checkpoint, current_latest, policy):
            product.current_status = checkpoint.status
            product.current_location = checkpoint.location
            product.updated_at = now
            session.add(product)
        session.add(checkpoint)
        session.commit()
        session.refresh(checkpoint)
        session.refresh(product)

        logger.info(
            f"📍 Checkpoint {checkpoint.status} @ {checkpoint.location} for {product.product_id} by {actor.email}"
        )

        checkpoint_payload = checkpoint_event_payload(checkpoint)
        product_payload = product_event_payload(product)
        notifications = events.checkpoint_added(checkpoint_payload, product_payload)
        notifications += _state_change_notifications(old_status, old_location, product, checkpoint)
        alert = deriver.classify_temperature(
            checkpoint.temperature, product.min_temperature, product.max_temperature
        )
        if alert:
            logger.warning(
                f"🌡️ {alert.alert_type.value} on {product.product_id}: {checkpoint.temperature} (threshold {alert.threshold})"
            )
            notifications += events.temperature_alert(
                checkpoint_payload, product_payload, alert.alert_type.value, alert.threshold
            )
        await relay.dispatch(notifications)
        return CheckpointOut.model_validate(checkpoint)

    # Read

    @staticmethod
    async def get_checkpoint(checkpoint_id: UUID, session: Session) -> CheckpointDetail:
        checkpoint = CheckpointService.get_or_404(checkpoint_id, session)
        return CheckpointDetail(
            **CheckpointOut.model_validate(checkpoint).model_dump(),
            handler=UserSummary.model_validate(checkpoint.handler) if checkpoint.handler else None,
            product=ProductBrief.model_validate(checkpoint.product) if checkpoint.product else None,
        )

    @staticmethod
    async def list_by_product(product_id: UUID, session: Session) -> List[CheckpointWithHandler]:
        """Whole history, newest first. Soft-deleted products keep their history."""
        product = ProductService.get_or_404(product_id, session)
        return [CheckpointWithHandler.model_validate(cp) for cp in deriver.sort_newest_first(product.checkpoints)]

    # Mutations

    @staticmethod
    async def update(
        checkpoint_id: UUID,
        req: CheckpointUpdate,
        actor: User,
        session: Session,
        relay: NotificationRelay,
        policy: StatusDerivationPolicy = deriver.DEFAULT_STATUS_POLICY,
    ) -> CheckpointOut:
        """
        Patch a checkpoint. Status/location edits reach the product under
        last_write_wins always; under latest_timestamp only when this is the
        product's latest checkpoint.
        """
        checkpoint = CheckpointService.get_mutable_or_404(checkpoint_id, session)
        ensure_allowed(Action.MANAGE_CHECKPOINT, actor, checkpoint.handled_by, "update this checkpoint")

        changes = req.model_dump(exclude_unset=True)
        for field in NON_NULLABLE_PATCH_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        _check_coordinates(
            changes.get("latitude", checkpoint.latitude),
            changes.get("longitude", checkpoint.longitude),
        )
        if not changes:
            return CheckpointOut.model_validate(checkpoint)

        for field, value in changes.items():
            setattr(checkpoint, field, value)
        session.add(checkpoint)

        product = checkpoint.product
        old_status, old_location = product.current_status, product.current_location
        if "status" in changes or "location" in changes:
            if policy is StatusDerivationPolicy.LAST_WRITE_WINS:
                if "status" in changes:
                    product.current_status = checkpoint.status
                if "location" in changes:
                    product.current_location = checkpoint.location
            else:
                latest = deriver.select_latest(product.checkpoints, policy)
                if latest is not None and latest.id == checkpoint.id:
                    product.current_status = checkpoint.status
                    product.current_location = checkpoint.location
            if (product.current_status, product.current_location) != (old_status, old_location):
                product.updated_at = utcnow()
                session.add(product)
        session.commit()
        session.refresh(checkpoint)
        session.refresh(product)

        logger.info(f"✏️ Checkpoint {checkpoint.id} updated by {actor.email}: {sorted(changes)}")
        notifications = events.checkpoint_updated(checkpoint_event_payload(checkpoint))
        notifications += _state_change_notifications(old_status, old_location, product, checkpoint)
        await relay.dispatch(notifications)
        return CheckpointOut.model_validate(checkpoint)

    @staticmethod
    async def delete(
        checkpoint_id: UUID,
        actor: User,
        session: Session,
        relay: NotificationRelay,
        policy: StatusDerivationPolicy = deriver.DEFAULT_STATUS_POLICY,
        rederive: bool = True,
    ) -> None:
        """
        Remove a checkpoint. With rederive, the product's current fields are
        recomputed from what remains, falling back to origin / REGISTERED.
        """
        checkpoint = CheckpointService.get_mutable_or_404(checkpoint_id, session)
        ensure_allowed(Action.MANAGE_CHECKPOINT, actor, checkpoint.handled_by, "delete this checkpoint")

        product = checkpoint.product
        remaining = [cp for cp in product.checkpoints if cp.id != checkpoint.id]
        if rederive:
            state = deriver.derive_current_state(product.origin_location, remaining, policy)
            if (state.status, state.location) != (product.current_status, product.current_location):
                product.current_status = state.status
                product.current_location = state.location
                product.updated_at = utcnow()
                session.add(product)

        session.delete(checkpoint)
        session.commit()
        session.refresh(product)

        logger.info(f"🗑️ Checkpoint {checkpoint_id} deleted by {actor.email}")
        await relay.dispatch(events.checkpoint_deleted(checkpoint_id, product_event_payload(product)))

    # Alerts

    @staticmethod
    async def temperature_alerts(product_id: UUID, session: Session) -> Dict[str, Any]:
        """Out-of-range readings for a product, newest first."""
        product = ProductService.get_or_404(product_id, session)
        if not deriver.has_temperature_range(product.min_temperature, product.max_temperature):
            return {
                "alerts": [],
                "count": 0,
                "message": "No temperature requirements set for this product",
            }

        flagged = deriver.compute_temperature_alerts(
            deriver.sort_newest_first(product.checkpoints),
            product.min_temperature,
            product.max_temperature,
        )
        alerts = [
            {
                **CheckpointWithHandler.model_validate(cp).to_api(),
                "alertType": alert.alert_type.value,
                "threshold": alert.threshold,
            }
            for cp, alert in flagged
        ]
        return {
            "alerts": alerts,
            "count": len(alerts),
            "temperatureRange": {
                "min": product.min_temperature,
                "max": product.max_temperature,
            },
        }
