"""
FILE: nexuschain/shared/models.py
SQLModel ORM models — supply-chain tracking domain
Products own a checkpoint ledger; users are role-tagged handlers.
"""

from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime, timezone
from uuid import UUID, uuid4
import enum

from nexuschain.checkpoints.deriver import REGISTERED_STATUS


# Enums

class UserRole(str, enum.Enum):
    MANUFACTURER = "MANUFACTURER"
    LOGISTICS = "LOGISTICS"
    RETAILER = "RETAILER"
    CONSUMER = "CONSUMER"
    ADMIN = "ADMIN"


class ProductCategory(str, enum.Enum):
    PHARMACEUTICALS = "PHARMACEUTICALS"
    ELECTRONICS = "ELECTRONICS"
    LUXURY_GOODS = "LUXURY_GOODS"
    FOOD_BEVERAGE = "FOOD_BEVERAGE"
    AUTOMOTIVE = "AUTOMOTIVE"
    OTHER = "OTHER"


class KnownStatus(str, enum.Enum):
    """Statuses the frontend renders specially. Status itself stays an open string."""
    REGISTERED = REGISTERED_STATUS
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    VERIFIED = "VERIFIED"


# Base mixins

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a possibly tz-aware datetime to the naive-UTC storage convention."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TimestampMixin(SQLModel):
    created_at: Optional[datetime] = Field(default_factory=utcnow, nullable=True)
    updated_at: Optional[datetime] = Field(default=None, nullable=True)


# Users

class User(TimestampMixin, table=True):
    """Role-tagged identity. Deactivated rather than deleted."""
    __tablename__ = "users"  # type: ignore

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(..., max_length=255, unique=True, index=True)
    password_hash: str = Field(...)
    name: str = Field(..., max_length=255)
    role: UserRole = Field(...)
    company: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    wallet_address: Optional[str] = Field(default=None, max_length=42, unique=True, index=True)
    is_active: bool = Field(default=True)

    # Auth tracking
    api_token: Optional[str] = Field(default=None)  # current access token (revocation)
    last_login_at: Optional[datetime] = Field(default=None)

    # Relationships
    products: List["Product"] = Relationship(back_populates="manufacturer")
    checkpoints: List["Checkpoint"] = Relationship(back_populates="handler")


# Products

class Product(TimestampMixin, table=True):
    """
    One tracked item. current_location / current_status are denormalized
    from the checkpoint ledger (see checkpoints.deriver).
    """
    __tablename__ = "products"  # type: ignore

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    product_id: str = Field(..., max_length=100, unique=True, index=True)  # business key
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(default=None)
    category: ProductCategory = Field(..., index=True)
    manufacturer_id: UUID = Field(..., foreign_key="users.id", index=True)
    manufacturing_date: datetime = Field(...)
    expiry_date: Optional[datetime] = Field(default=None)
    batch_number: Optional[str] = Field(default=None, max_length=100)

    origin_location: str = Field(...)
    current_location: Optional[str] = Field(default=None)
    current_status: str = Field(default=REGISTERED_STATUS, max_length=50, index=True)

    # Cold chain; both None means no requirement
    min_temperature: Optional[float] = Field(default=None)
    max_temperature: Optional[float] = Field(default=None)

    # External ledger references (opaque)
    blockchain_hash: Optional[str] = Field(default=None)
    blockchain_id: Optional[int] = Field(default=None)

    qr_code: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True, index=True)

    # Relationships
    manufacturer: Optional[User] = Relationship(back_populates="products")
    checkpoints: List["Checkpoint"] = Relationship(back_populates="product")


# Checkpoints

class Checkpoint(SQLModel, table=True):
    """Timestamped custody/condition observation. timestamp may predate created_at."""
    __tablename__ = "checkpoints"  # type: ignore

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    product_id: UUID = Field(..., foreign_key="products.id", index=True)
    location: str = Field(...)
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    status: str = Field(..., max_length=50)
    temperature: Optional[float] = Field(default=None)
    humidity: Optional[float] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    handled_by: UUID = Field(..., foreign_key="users.id", index=True)
    blockchain_hash: Optional[str] = Field(default=None)
    timestamp: datetime = Field(default_factory=utcnow, index=True)
    created_at: datetime = Field(default_factory=utcnow)

    # Relationships
    product: Optional[Product] = Relationship(back_populates="checkpoints")
    handler: Optional[User] = Relationship(back_populates="checkpoints")
