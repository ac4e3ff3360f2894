"""
FILE: nexuschain/checkpoints/schemas.py
Checkpoint request and response schemas
"""

from pydantic import Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from nexuschain.auth.schemas import UserSummary
from nexuschain.shared.schemas import CamelModel


# Requests

class CheckpointCreate(CamelModel):
    product_id: UUID
    location: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: str = Field(..., min_length=1, max_length=50)
    temperature: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None
    blockchain_hash: Optional[str] = None
    timestamp: Optional[datetime] = Field(default=None, description="Observation time; defaults to now")


class CheckpointUpdate(CamelModel):
    """Partial patch. product, handler and timestamp are immutable."""
    location: Optional[str] = Field(default=None, min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: Optional[str] = Field(default=None, min_length=1, max_length=50)
    temperature: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None
    blockchain_hash: Optional[str] = None


# Responses

class CheckpointOut(CamelModel):
    id: UUID
    product_id: UUID
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    notes: Optional[str] = None
    handled_by: UUID
    blockchain_hash: Optional[str] = None
    timestamp: datetime
    created_at: Optional[datetime] = None


class CheckpointWithHandler(CheckpointOut):
    handler: Optional[UserSummary] = None


class ProductBrief(CamelModel):
    id: UUID
    product_id: str
    name: str
    current_status: str
    is_active: bool


class CheckpointDetail(CheckpointWithHandler):
    product: Optional[ProductBrief] = None
