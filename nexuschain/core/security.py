"""
FILE: nexuschain/core/security.py
Security utilities — bcrypt password hashing, JWT access tokens
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID, uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from nexuschain.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# Password Hashing

def hash_password(plain_password: str) -> str:
    """Hash a password with bcrypt (salt is generated and embedded by bcrypt)."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its stored bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


# JWT

def create_access_token(
    *,
    user_id: UUID,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create JWT access token.

    Payload structure:
    {
      "sub":   "<user_id>",
      "email": "...",
      "role":  "MANUFACTURER|LOGISTICS|RETAILER|CONSUMER|ADMIN",
      "iss":   "nexuschain-api",
      "aud":   "nexuschain-frontend",
      "iat":   <timestamp>,
      "exp":   <timestamp>,
      "jti":   "<random hex>",
    }

    The role claim is informational; authorization always re-reads the user row.
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    payload: Dict = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": expire,
        "jti": uuid4().hex,
    }

    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """
    Decode and validate a JWT access token.
    Returns the payload dict or None if invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError:
        return None
