"""
FILE: nexuschain/auth/schemas.py
Auth request and response schemas
"""

from pydantic import EmailStr, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from nexuschain.shared.models import UserRole
from nexuschain.shared.schemas import CamelModel

WALLET_PATTERN = r"^0x[a-fA-F0-9]{40}$"


def _normalize_wallet(v: Optional[str]) -> Optional[str]:
    return v.lower() if v else v


# Requests

class RegisterRequest(CamelModel):
    """Self-service registration with an explicit role."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole
    company: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    wallet_address: Optional[str] = Field(default=None, pattern=WALLET_PATTERN)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()

    @field_validator("wallet_address")
    @classmethod
    def lower_wallet(cls, v):
        return _normalize_wallet(v)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


class UpdateProfileRequest(CamelModel):
    """Partial profile patch. Omitted fields stay untouched."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    company: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    wallet_address: Optional[str] = Field(default=None, pattern=WALLET_PATTERN)

    @field_validator("wallet_address")
    @classmethod
    def lower_wallet(cls, v):
        return _normalize_wallet(v)


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


# Responses

class UserOut(CamelModel):
    """Public user shape. Never carries the password hash or token."""
    id: UUID
    email: str
    name: str
    role: UserRole
    company: Optional[str] = None
    phone: Optional[str] = None
    wallet_address: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UserSummary(CamelModel):
    """Embedded user reference on products and checkpoints."""
    id: UUID
    name: str
    company: Optional[str] = None
    role: UserRole


class AuthResult(CamelModel):
    user: UserOut
    token: str
    token_type: str = "bearer"
