"""
FILE: tests/test_security.py
Unit tests for the core security module — bcrypt hashing, JWT encode/decode.

These tests have no HTTP client dependency; they call security functions directly.
"""

import pytest
from datetime import timedelta
from uuid import uuid4

from jose import jwt

from nexuschain.core.config import settings
from nexuschain.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from nexuschain.shared.models import UserRole


# ============================================================================
# PASSWORD HASHING
# ============================================================================

@pytest.mark.unit
class TestPasswordHashing:
    """hash_password() / verify_password()"""

    def test_hash_is_not_plaintext(self):
        hashed = hash_password("Password123!")

        assert hashed != "Password123!"
        assert hashed.startswith("$2")

    def test_verify_correct_password(self):
        hashed = hash_password("Password123!")

        assert verify_password("Password123!", hashed) is True

    def test_verify_wrong_password(self):
        hashed = hash_password("Password123!")

        assert verify_password("WrongPassword!", hashed) is False

    def test_same_password_hashes_differently(self):
        """bcrypt embeds a fresh salt per hash."""
        assert hash_password("Password123!") != hash_password("Password123!")


# ============================================================================
# ACCESS TOKENS
# ============================================================================

@pytest.mark.unit
class TestAccessToken:
    """create_access_token() / decode_access_token()"""

    def test_round_trip_claims(self):
        user_id = uuid4()
        token = create_access_token(user_id=user_id, email="a@b.com", role=UserRole.LOGISTICS.value)

        payload = decode_access_token(token)

        assert payload is not None
        assert payload["sub"] == str(user_id)
        assert payload["email"] == "a@b.com"
        assert payload["role"] == "LOGISTICS"
        assert payload["iss"] == settings.JWT_ISSUER
        assert payload["aud"] == settings.JWT_AUDIENCE

    def test_expired_token_is_rejected(self):
        token = create_access_token(
            user_id=uuid4(),
            email="a@b.com",
            role="ADMIN",
            expires_delta=timedelta(seconds=-10),
        )

        assert decode_access_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = create_access_token(user_id=uuid4(), email="a@b.com", role="ADMIN")

        assert decode_access_token(token[:-2] + "xx") is None

    def test_wrong_secret_is_rejected(self):
        forged = jwt.encode(
            {"sub": str(uuid4()), "iss": settings.JWT_ISSUER, "aud": settings.JWT_AUDIENCE},
            "not-the-secret",
            algorithm=settings.JWT_ALGORITHM,
        )

        assert decode_access_token(forged) is None

    def test_wrong_audience_is_rejected(self):
        forged = jwt.encode(
            {"sub": str(uuid4()), "iss": settings.JWT_ISSUER, "aud": "someone-else"},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

        assert decode_access_token(forged) is None

    def test_garbage_is_rejected(self):
        assert decode_access_token("not.a.jwt") is None
