"""
FILE: nexuschain/shared/schemas.py
Shared response envelopes and the camelCase schema base
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Generic, List, Optional, TypeVar
import math

T = TypeVar("T")


class CamelModel(BaseModel):
    """API-facing schema: snake_case attributes, camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ResponseModel(BaseModel):
    """Standard response wrapper"""
    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
    tag: int = 1
    total: Optional[int] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list wrapper"""
    success: bool = True
    data: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, items: List[Any], total: int, page: int, page_size: int) -> "PaginatedResponse":
        return cls(
            data=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if page_size else 0,
        )
