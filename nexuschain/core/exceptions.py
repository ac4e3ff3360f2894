"""
FILE: nexuschain/core/exceptions.py
HTTP error taxonomy — every service raises one of these

Usage:
    raise NotFoundError("Product", product_id)
    raise ForbiddenError("update this product")
    raise ConflictError("Product with this ID already exists")
"""

import logging
from typing import Dict, Optional, Union
from uuid import UUID

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class AppException(HTTPException):
    """Base exception; logs itself on construction."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: int = logging.WARNING,
        headers: Optional[Dict[str, str]] = None,
    ):
        logger.log(log_level, f"{status_code} {detail}")
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Missing or malformed input (400)."""

    def __init__(self, detail: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, log_level=logging.INFO)


class UnauthorizedError(AppException):
    """Missing, invalid, expired or revoked credential (401)."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(AppException):
    """Authenticated but not allowed (403)."""

    def __init__(self, action: Optional[str] = None, detail: Optional[str] = None):
        if detail is None:
            detail = f"Not authorized to {action}" if action else "Access denied"
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class NotFoundError(AppException):
    """Entity absent, or hidden by soft-delete (404)."""

    def __init__(self, entity: str, entity_id: Optional[Union[UUID, str]] = None):
        detail = f"{entity} not found"
        if entity_id is not None:
            logger.debug(f"{entity} lookup miss: {entity_id}")
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ConflictError(AppException):
    """Unique-key violation (409)."""

    def __init__(self, detail: str):
        super().__init__(status.HTTP_409_CONFLICT, detail)
