"""
FILE: tests/conftest.py
Shared pytest fixtures and configuration for the NexusChain tracking API.

Fixture hierarchy:
    engine → session → relay_transport → client
    manufacturer_user → manufacturer_headers
    other_manufacturer_user → other_manufacturer_headers
    logistics_user / retailer_user / consumer_user / admin_user → *_headers
    inactive_user  (edge-case user)
    cold_chain_product, plain_product  (owned by manufacturer_user)
"""
import sys
import os

# Make conftest helpers importable from test modules
sys.path.insert(0, os.path.dirname(__file__))

import pytest
from datetime import timedelta
from typing import Any, Dict, List, Tuple

from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from nexuschain.core.database import get_session
from nexuschain.core.dependencies import get_relay
from nexuschain.core.security import create_access_token, hash_password
from nexuschain.notifications.relay import NotificationRelay
from nexuschain.shared.models import (
    Checkpoint,
    Product,
    ProductCategory,
    User,
    UserRole,
    utcnow,
)


# ============================================================================
# RELAY DOUBLES
# ============================================================================

class RecordingTransport:
    """Captures every (address, event, payload) the relay sends."""

    def __init__(self):
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []

    async def send(self, address: str, event: str, payload: Dict[str, Any]) -> None:
        self.sent.append((address, event, payload))

    def events(self) -> List[str]:
        return [event for _, event, _ in self.sent]

    def addresses(self, event: str) -> List[str]:
        return [address for address, name, _ in self.sent if name == event]

    def clear(self):
        self.sent.clear()


class FailingTransport:
    """Transport whose every send raises."""

    async def send(self, address: str, event: str, payload: Dict[str, Any]) -> None:
        raise ConnectionError("socket gone")


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture(name="engine")
def engine_fixture():
    """Create in-memory SQLite engine for tests. Schema is created once."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a function-scoped session; rolls back after each test."""
    with Session(engine) as session:
        yield session
        session.rollback()


@pytest.fixture(name="relay_transport")
def relay_transport_fixture() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture(name="client")
def client_fixture(engine, session: Session, relay_transport: RecordingTransport):
    """TestClient with the DB session and notification relay overridden."""
    def get_session_override():
        return session

    relay = NotificationRelay(relay_transport)
    original_engine = app.state.engine

    app.state.engine = engine
    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_relay] = lambda: relay
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
    app.state.engine = original_engine


# ============================================================================
# USER BUILDERS
# ============================================================================

DEFAULT_PASSWORD = "Password123!"


def _create_user(
    session: Session,
    email: str,
    role: UserRole,
    name: str = "Test User",
    company: str = None,  # type: ignore
    password: str = DEFAULT_PASSWORD,
    is_active: bool = True,
    wallet_address: str = None,  # type: ignore
) -> Tuple[User, str]:
    """
    Build and commit a User with a bcrypt hashed password.
    Returns (user, plain_password).
    """
    user = User(
        email=email,
        name=name,
        role=role,
        company=company,
        password_hash=hash_password(password),
        is_active=is_active,
        wallet_address=wallet_address,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user, password


def _create_token(session: Session, user: User) -> str:
    """Create a JWT access token, persist it in user.api_token, and return the raw token."""
    access_token = create_access_token(user_id=user.id, email=user.email, role=user.role.value)
    user.api_token = access_token
    session.add(user)
    session.commit()
    session.refresh(user)
    return access_token


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _user_bundle(session: Session, **kwargs) -> dict:
    user, password = _create_user(session, **kwargs)
    token = _create_token(session, user)
    return {"user": user, "password": password, "token": token}


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture(name="manufacturer_user")
def manufacturer_user_fixture(session: Session) -> dict:
    return _user_bundle(
        session,
        email="manufacturer@nexuschain.com",
        role=UserRole.MANUFACTURER,
        name="Pfizer Manufacturing",
        company="Pfizer Inc.",
        wallet_address="0xf31a99a843ba137e19b4146c4fea19b5a6f0c435",
    )


@pytest.fixture(name="other_manufacturer_user")
def other_manufacturer_user_fixture(session: Session) -> dict:
    """A second manufacturer that owns nothing the tests create."""
    return _user_bundle(
        session,
        email="other-mfr@nexuschain.com",
        role=UserRole.MANUFACTURER,
        name="Moderna Manufacturing",
        company="Moderna",
    )


@pytest.fixture(name="logistics_user")
def logistics_user_fixture(session: Session) -> dict:
    return _user_bundle(
        session,
        email="logistics@nexuschain.com",
        role=UserRole.LOGISTICS,
        name="DHL Logistics",
        company="DHL Supply Chain",
    )


@pytest.fixture(name="retailer_user")
def retailer_user_fixture(session: Session) -> dict:
    return _user_bundle(session, email="retailer@nexuschain.com", role=UserRole.RETAILER, name="CVS Pharmacy")


@pytest.fixture(name="consumer_user")
def consumer_user_fixture(session: Session) -> dict:
    return _user_bundle(session, email="consumer@nexuschain.com", role=UserRole.CONSUMER, name="John Doe")


@pytest.fixture(name="admin_user")
def admin_user_fixture(session: Session) -> dict:
    return _user_bundle(session, email="admin@nexuschain.com", role=UserRole.ADMIN, name="NexusChain Admin")


@pytest.fixture(name="inactive_user")
def inactive_user_fixture(session: Session) -> dict:
    """Deactivated user that still holds a syntactically valid token."""
    return _user_bundle(
        session,
        email="inactive@nexuschain.com",
        role=UserRole.LOGISTICS,
        name="Dormant Carrier",
        is_active=False,
    )


@pytest.fixture(name="manufacturer_headers")
def manufacturer_headers_fixture(manufacturer_user: dict) -> Dict[str, str]:
    return auth_headers(manufacturer_user["token"])


@pytest.fixture(name="other_manufacturer_headers")
def other_manufacturer_headers_fixture(other_manufacturer_user: dict) -> Dict[str, str]:
    return auth_headers(other_manufacturer_user["token"])


@pytest.fixture(name="logistics_headers")
def logistics_headers_fixture(logistics_user: dict) -> Dict[str, str]:
    return auth_headers(logistics_user["token"])


@pytest.fixture(name="retailer_headers")
def retailer_headers_fixture(retailer_user: dict) -> Dict[str, str]:
    return auth_headers(retailer_user["token"])


@pytest.fixture(name="consumer_headers")
def consumer_headers_fixture(consumer_user: dict) -> Dict[str, str]:
    return auth_headers(consumer_user["token"])


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(admin_user: dict) -> Dict[str, str]:
    return auth_headers(admin_user["token"])


# ============================================================================
# PRODUCT FIXTURES
# ============================================================================

def _create_product(
    session: Session,
    owner: User,
    product_id: str,
    min_temperature: float = None,  # type: ignore
    max_temperature: float = None,  # type: ignore
    name: str = "Test Product",
    category: ProductCategory = ProductCategory.PHARMACEUTICALS,
) -> Product:
    now = utcnow()
    product = Product(
        product_id=product_id,
        name=name,
        category=category,
        manufacturer_id=owner.id,
        manufacturing_date=now - timedelta(days=10),
        origin_location="Kalamazoo, MI",
        current_location="Kalamazoo, MI",
        min_temperature=min_temperature,
        max_temperature=max_temperature,
        created_at=now,
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def add_checkpoint_row(
    session: Session,
    product: Product,
    handler: User,
    status: str,
    location: str,
    timestamp=None,
    temperature: float = None,  # type: ignore
) -> Checkpoint:
    """Insert a checkpoint directly, bypassing derivation."""
    checkpoint = Checkpoint(
        product_id=product.id,
        location=location,
        status=status,
        temperature=temperature,
        handled_by=handler.id,
        timestamp=timestamp or utcnow(),
    )
    session.add(checkpoint)
    session.commit()
    session.refresh(checkpoint)
    return checkpoint


@pytest.fixture(name="cold_chain_product")
def cold_chain_product_fixture(session: Session, manufacturer_user: dict) -> Product:
    """2.0–8.0 °C vaccine batch owned by manufacturer_user."""
    return _create_product(
        session,
        manufacturer_user["user"],
        "NEXUS-001",
        min_temperature=2.0,
        max_temperature=8.0,
        name="mRNA Vaccine",
    )


@pytest.fixture(name="plain_product")
def plain_product_fixture(session: Session, manufacturer_user: dict) -> Product:
    """Product with no temperature requirements."""
    return _create_product(
        session,
        manufacturer_user["user"],
        "NEXUS-002",
        name="Laptop",
        category=ProductCategory.ELECTRONICS,
    )


@pytest.fixture(name="product_payload")
def product_payload_fixture() -> dict:
    """A valid registration body (camelCase, as the frontend sends it)."""
    return {
        "productId": "NEXUS-100",
        "name": "Insulin Pens",
        "description": "Box of 5 prefilled pens",
        "category": "PHARMACEUTICALS",
        "manufacturingDate": "2024-01-15T00:00:00Z",
        "expiryDate": "2026-01-15T00:00:00Z",
        "batchNumber": "INS-B-01",
        "originLocation": "Bagsværd, Denmark",
        "minTemperature": 2.0,
        "maxTemperature": 8.0,
    }


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Register all custom test markers."""
    # Module-level markers
    config.addinivalue_line("markers", "auth: Authentication and token tests")
    config.addinivalue_line("markers", "users: User administration tests")
    config.addinivalue_line("markers", "products: Product registry tests")
    config.addinivalue_line("markers", "checkpoints: Checkpoint ledger tests")
    config.addinivalue_line("markers", "notifications: Notification relay and WebSocket tests")
    config.addinivalue_line("markers", "rbac: Role-based access control tests")

    # Cross-cutting markers
    config.addinivalue_line("markers", "security: Security and edge-case tests")
    config.addinivalue_line("markers", "unit: Unit tests (no HTTP client)")
    config.addinivalue_line("markers", "integration: Full HTTP stack integration tests")
