"""
FILE: nexuschain/products/services.py
Product registry — registration, listing, verification, patching, soft delete
"""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from nexuschain.auth.schemas import UserSummary
from nexuschain.checkpoints import deriver
from nexuschain.checkpoints.schemas import CheckpointOut, CheckpointWithHandler
from nexuschain.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from nexuschain.core.permissions import Action, is_allowed
from nexuschain.notifications import relay as events
from nexuschain.notifications.relay import NotificationRelay
from nexuschain.products.qr import build_qr_payload, generate_qr_data_url
from nexuschain.products.schemas import (
    BlockchainUpdate,
    ManufacturerBrief,
    ProductCreate,
    ProductDetail,
    ProductListItem,
    ProductOut,
    ProductUpdate,
    ProductVerification,
    VerifiedCheckpoint,
)
from nexuschain.shared.models import Product, ProductCategory, User, to_naive_utc, utcnow
import logging

logger = logging.getLogger(__name__)

# Patch keys that may not be cleared with an explicit null
NON_NULLABLE_PATCH_FIELDS = {"name", "current_status"}


def product_event_payload(product: Product) -> Dict[str, Any]:
    """Serialized product for relay frames. The QR image is left out."""
    return ProductOut.model_validate(product).model_dump(mode="json", by_alias=True, exclude={"qr_code"})


def validate_temperature_range(min_temperature: Optional[float], max_temperature: Optional[float]):
    if min_temperature is not None and max_temperature is not None and min_temperature > max_temperature:
        raise ValidationError("minTemperature cannot be greater than maxTemperature")


def ensure_allowed(action: Action, actor: User, owner_id: Optional[UUID], verb: str):
    if not is_allowed(action, actor, owner_id):
        raise ForbiddenError(verb)


class ProductService:
    """Product business logic. Callers supply the session and the relay."""

    # Lookup

    @staticmethod
    def get_or_404(product_id: UUID, session: Session) -> Product:
        """Any product, including soft-deleted ones."""
        product = session.get(Product, product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    @staticmethod
    def get_active_or_404(product_id: UUID, session: Session) -> Product:
        """Products open to mutation. Soft-deleted rows are hidden."""
        product = ProductService.get_or_404(product_id, session)
        if not product.is_active:
            raise NotFoundError("Product", product_id)
        return product

    @staticmethod
    def find_by_product_id(product_id: str, session: Session) -> Optional[Product]:
        """Lookup by business key, active or not."""
        return session.exec(select(Product).where(Product.product_id == product_id)).first()

    # Register

    @staticmethod
    async def register(
        req: ProductCreate,
        actor: User,
        session: Session,
        relay: NotificationRelay,
    ) -> ProductOut:
        """
        Create a product owned by actor. Current location/status start at the
        origin and REGISTERED. product_id must be unique across active and
        deactivated products.
        """
        ensure_allowed(Action.REGISTER_PRODUCT, actor, None, "register products")

        if ProductService.find_by_product_id(req.product_id, session):
            raise ConflictError("Product with this ID already exists")

        validate_temperature_range(req.min_temperature, req.max_temperature)
        manufacturing_date = to_naive_utc(req.manufacturing_date)
        expiry_date = to_naive_utc(req.expiry_date) if req.expiry_date else None
        if expiry_date is not None and expiry_date < manufacturing_date:
            raise ValidationError("expiryDate cannot be before manufacturingDate")

        created_at = utcnow()
        qr_code = generate_qr_data_url(
            build_qr_payload(req.product_id, req.name, actor.company or actor.name, created_at)
        )

        product = Product(
            product_id=req.product_id,
            name=req.name,
            description=req.description,
            category=req.category,
            manufacturer_id=actor.id,
            manufacturing_date=manufacturing_date,
            expiry_date=expiry_date,
            batch_number=req.batch_number,
            origin_location=req.origin_location,
            current_location=req.origin_location,
            current_status=deriver.REGISTERED_STATUS,
            min_temperature=req.min_temperature,
            max_temperature=req.max_temperature,
            qr_code=qr_code,
            created_at=created_at,
        )
        session.add(product)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise ConflictError("Product with this ID already exists")
        session.refresh(product)

        logger.info(f"📦 Product registered: {product.product_id} by {actor.email}")
        await relay.dispatch(events.product_created(product_event_payload(product)))
        return ProductOut.model_validate(product)

    # Read

    @staticmethod
    async def list_products(
        session: Session,
        status: Optional[str] = None,
        category: Optional[ProductCategory] = None,
        search: Optional[str] = None,
        manufacturer_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[ProductListItem], int]:
        """Active products, newest first. Returns (items, total_count)."""
        filters = [Product.is_active == True]  # noqa: E712
        if status:
            filters.append(Product.current_status == status)
        if category:
            filters.append(Product.category == category)
        if manufacturer_id:
            filters.append(Product.manufacturer_id == manufacturer_id)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                col(Product.name).ilike(pattern),
                col(Product.product_id).ilike(pattern),
                col(Product.description).ilike(pattern),
            ))

        total = session.exec(select(func.count()).select_from(Product).where(*filters)).one()
        products = session.exec(
            select(Product)
            .where(*filters)
            .order_by(col(Product.created_at).desc())
            .offset(skip)
            .limit(limit)
        ).all()

        items = []
        for product in products:
            ordered = deriver.sort_newest_first(product.checkpoints)
            items.append(ProductListItem(
                **ProductOut.model_validate(product).model_dump(),
                manufacturer=UserSummary.model_validate(product.manufacturer) if product.manufacturer else None,
                latest_checkpoint=CheckpointOut.model_validate(ordered[0]) if ordered else None,
                checkpoints_count=len(ordered),
            ))
        return items, total

    @staticmethod
    async def get_product(product_id: UUID, session: Session) -> ProductDetail:
        """Full record with manufacturer and checkpoint history (newest first)."""
        product = ProductService.get_or_404(product_id, session)
        return ProductDetail(
            **ProductOut.model_validate(product).model_dump(),
            manufacturer=UserSummary.model_validate(product.manufacturer) if product.manufacturer else None,
            checkpoints=[
                CheckpointWithHandler.model_validate(cp)
                for cp in deriver.sort_newest_first(product.checkpoints)
            ],
        )

    @staticmethod
    async def verify(product_id: str, session: Session) -> ProductVerification:
        """Public lookup by business key. Deactivated products stay verifiable."""
        product = ProductService.find_by_product_id(product_id, session)
        if not product:
            raise NotFoundError("Product", product_id)

        ordered = deriver.sort_newest_first(product.checkpoints)
        manufacturer = product.manufacturer
        return ProductVerification(
            product_id=product.product_id,
            name=product.name,
            category=product.category,
            manufacturer=ManufacturerBrief(
                name=manufacturer.name if manufacturer else "Unknown",
                company=manufacturer.company if manufacturer else None,
            ),
            manufacturing_date=product.manufacturing_date,
            expiry_date=product.expiry_date,
            batch_number=product.batch_number,
            current_status=product.current_status,
            current_location=product.current_location or product.origin_location,
            blockchain_hash=product.blockchain_hash,
            is_active=product.is_active,
            checkpoints_count=len(ordered),
            latest_checkpoint=VerifiedCheckpoint.model_validate(ordered[0]) if ordered else None,
        )

    # Mutations

    @staticmethod
    async def update(
        product_id: UUID,
        req: ProductUpdate,
        actor: User,
        session: Session,
        relay: NotificationRelay,
    ) -> ProductOut:
        """
        Apply a partial patch. Omitted fields are untouched; an explicit null
        clears an optional field. An empty patch changes nothing.
        """
        product = ProductService.get_active_or_404(product_id, session)
        ensure_allowed(Action.MANAGE_PRODUCT, actor, product.manufacturer_id, "update this product")

        changes = req.model_dump(exclude_unset=True)
        for field in NON_NULLABLE_PATCH_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")

        validate_temperature_range(
            changes.get("min_temperature", product.min_temperature),
            changes.get("max_temperature", product.max_temperature),
        )
        if changes.get("expiry_date") is not None:
            changes["expiry_date"] = to_naive_utc(changes["expiry_date"])
            if changes["expiry_date"] < product.manufacturing_date:
                raise ValidationError("expiryDate cannot be before manufacturingDate")

        if not changes:
            return ProductOut.model_validate(product)

        old_status = product.current_status
        for field, value in changes.items():
            setattr(product, field, value)
        product.updated_at = utcnow()
        session.add(product)
        session.commit()
        session.refresh(product)

        logger.info(f"✏️ Product {product.product_id} updated by {actor.email}: {sorted(changes)}")
        payload = product_event_payload(product)
        notifications = events.product_updated(payload)
        if product.current_status != old_status:
            notifications += events.status_changed(old_status, product.current_status, payload)
        await relay.dispatch(notifications)
        return ProductOut.model_validate(product)

    @staticmethod
    async def update_blockchain(
        product_id: UUID,
        req: BlockchainUpdate,
        actor: User,
        session: Session,
        relay: NotificationRelay,
    ) -> ProductOut:
        product = ProductService.get_active_or_404(product_id, session)
        ensure_allowed(Action.MANAGE_PRODUCT, actor, product.manufacturer_id, "update this product")

        product.blockchain_hash = req.blockchain_hash
        if req.blockchain_id is not None:
            product.blockchain_id = req.blockchain_id
        product.updated_at = utcnow()
        session.add(product)
        session.commit()
        session.refresh(product)

        logger.info(f"⛓️ Blockchain hash recorded for {product.product_id}")
        await relay.dispatch(events.blockchain_confirmed(product_event_payload(product), req.blockchain_hash))
        return ProductOut.model_validate(product)

    @staticmethod
    async def soft_delete(
        product_id: UUID,
        actor: User,
        session: Session,
    ) -> None:
        """Deactivate the product. Its checkpoints are kept."""
        product = ProductService.get_active_or_404(product_id, session)
        ensure_allowed(Action.MANAGE_PRODUCT, actor, product.manufacturer_id, "delete this product")

        product.is_active = False
        product.updated_at = utcnow()
        session.add(product)
        session.commit()
        logger.info(f"🗑️ Product {product.product_id} deactivated by {actor.email}")
