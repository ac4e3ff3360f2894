"""
FILE: nexuschain/products/router.py
Product registry endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from uuid import UUID
from typing import Any, Dict, Optional

from nexuschain.core.database import get_session
from nexuschain.core.dependencies import get_current_user, get_relay, pagination_params, require_action
from nexuschain.core.permissions import Action
from nexuschain.notifications.relay import NotificationRelay
from nexuschain.products.schemas import BlockchainUpdate, ProductCreate, ProductUpdate
from nexuschain.products.services import ProductService
from nexuschain.shared.models import ProductCategory, User
from nexuschain.shared.schemas import PaginatedResponse, ResponseModel
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


# Public

@router.get("/verify/{product_id}", response_model=ResponseModel)
async def verify_product(
    product_id: str,
    session: Session = Depends(get_session),
):
    """Public authenticity check by business product ID. No token required."""
    result = await ProductService.verify(product_id, session)
    return ResponseModel(success=True, message="Product verified", data=result.to_api())


# Register

@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def register_product(
    req: ProductCreate,
    current_user: User = Depends(require_action(Action.REGISTER_PRODUCT)),
    session: Session = Depends(get_session),
    relay: NotificationRelay = Depends(get_relay),
):
    """Register a product. MANUFACTURER or ADMIN; the caller becomes its owner."""
    product = await ProductService.register(req, current_user, session, relay)
    return ResponseModel(success=True, message="Product registered successfully", data=product.to_api())


# Read

@router.get("", response_model=PaginatedResponse[Dict[str, Any]])
async def list_products(
    status: Optional[str] = None,
    category: Optional[ProductCategory] = None,
    search: Optional[str] = None,
    manufacturerId: Optional[UUID] = None,
    pagination: dict = Depends(pagination_params),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Active products, newest first, with latest checkpoint and checkpoint count."""
    items, total = await ProductService.list_products(
        session,
        status=status,
        category=category,
        search=search,
        manufacturer_id=manufacturerId,
        skip=pagination["skip"],
        limit=pagination["limit"],
    )
    return PaginatedResponse.build(
        items=[item.to_api() for item in items],
        total=total,
        page=pagination["page"],
        page_size=pagination["page_size"],
    )


@router.get("/{product_id}", response_model=ResponseModel)
async def get_product(
    product_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    product = await ProductService.get_product(product_id, session)
    return ResponseModel(success=True, data=product.to_api())


# Mutations

@router.put("/{product_id}", response_model=ResponseModel)
async def update_product(
    product_id: UUID,
    req: ProductUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    relay: NotificationRelay = Depends(get_relay),
):
    """Partial update. Owning manufacturer or ADMIN."""
    product = await ProductService.update(product_id, req, current_user, session, relay)
    return ResponseModel(success=True, message="Product updated successfully", data=product.to_api())


@router.put("/{product_id}/blockchain", response_model=ResponseModel)
async def update_blockchain(
    product_id: UUID,
    req: BlockchainUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    relay: NotificationRelay = Depends(get_relay),
):
    product = await ProductService.update_blockchain(product_id, req, current_user, session, relay)
    return ResponseModel(success=True, message="Blockchain hash updated", data=product.to_api())


@router.delete("/{product_id}", response_model=ResponseModel)
async def delete_product(
    product_id: UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Soft delete. Checkpoint history is kept."""
    await ProductService.soft_delete(product_id, current_user, session)
    return ResponseModel(success=True, message="Product deleted successfully")
