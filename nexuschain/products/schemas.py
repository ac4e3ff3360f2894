"""
FILE: nexuschain/products/schemas.py
Product request and response schemas (camelCase over the wire)
"""

from pydantic import Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from nexuschain.auth.schemas import UserSummary
from nexuschain.checkpoints.schemas import CheckpointOut, CheckpointWithHandler
from nexuschain.shared.models import ProductCategory
from nexuschain.shared.schemas import CamelModel


# Requests

class ProductCreate(CamelModel):
    product_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: ProductCategory
    manufacturing_date: datetime
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = Field(default=None, max_length=100)
    origin_location: str = Field(..., min_length=1)
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None


class ProductUpdate(CamelModel):
    """Partial patch. Only fields present in the request body are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    current_status: Optional[str] = Field(default=None, min_length=1, max_length=50)
    current_location: Optional[str] = None
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = Field(default=None, max_length=100)


class BlockchainUpdate(CamelModel):
    blockchain_hash: str = Field(..., min_length=1)
    blockchain_id: Optional[int] = None


# Responses

class ProductOut(CamelModel):
    id: UUID
    product_id: str
    name: str
    description: Optional[str] = None
    category: ProductCategory
    manufacturer_id: UUID
    manufacturing_date: datetime
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = None
    origin_location: str
    current_location: Optional[str] = None
    current_status: str
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    blockchain_hash: Optional[str] = None
    blockchain_id: Optional[int] = None
    qr_code: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductListItem(ProductOut):
    manufacturer: Optional[UserSummary] = None
    latest_checkpoint: Optional[CheckpointOut] = None
    checkpoints_count: int = 0


class ProductDetail(ProductOut):
    manufacturer: Optional[UserSummary] = None
    checkpoints: List[CheckpointWithHandler] = []


class ManufacturerBrief(CamelModel):
    name: str
    company: Optional[str] = None


class VerifiedCheckpoint(CamelModel):
    location: str
    status: str
    timestamp: datetime


class ProductVerification(CamelModel):
    """Public verification view. Carries no internal ids or manufacturer contact details."""
    product_id: str
    name: str
    category: ProductCategory
    manufacturer: ManufacturerBrief
    manufacturing_date: datetime
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = None
    current_status: str
    current_location: str
    blockchain_hash: Optional[str] = None
    is_active: bool
    checkpoints_count: int
    latest_checkpoint: Optional[VerifiedCheckpoint] = None
