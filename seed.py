"""
FILE: seed.py
Database seeder — one demo user per role, a demo cold-chain product with checkpoints
Run: python seed.py
"""

import sys
import os
sys.path.append(os.path.dirname(__file__))

from datetime import timedelta
from sqlmodel import Session, select
from nexuschain.core.config import settings
from nexuschain.core.database import build_engine, create_db_and_tables
from nexuschain.core.security import hash_password
from nexuschain.checkpoints import deriver
from nexuschain.products.qr import build_qr_payload, generate_qr_data_url
from nexuschain.shared.models import (
    Checkpoint,
    KnownStatus,
    Product,
    ProductCategory,
    User,
    UserRole,
    utcnow,
)
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ─── Demo users ───────────────────────────────────────────────────────────────

DEMO_USERS = [
    {
        "email": "manufacturer@nexuschain.com",
        "name": "Pfizer Manufacturing",
        "role": UserRole.MANUFACTURER,
        "company": "Pfizer Inc.",
        "phone": "+1-555-0101",
        "wallet_address": "0xf31a99a843ba137e19b4146c4fea19b5a6f0c435",
    },
    {
        "email": "logistics@nexuschain.com",
        "name": "DHL Logistics",
        "role": UserRole.LOGISTICS,
        "company": "DHL Supply Chain",
        "phone": "+1-555-0102",
        "wallet_address": "0x742d35cc6634c0532925a3b844bc454e4438f44e",
    },
    {
        "email": "retailer@nexuschain.com",
        "name": "CVS Pharmacy",
        "role": UserRole.RETAILER,
        "company": "CVS Health",
        "phone": "+1-555-0103",
        "wallet_address": "0x8626f6940e2eb28930efb4cef49b2d1f2c9c1199",
    },
    {
        "email": "consumer@nexuschain.com",
        "name": "John Doe",
        "role": UserRole.CONSUMER,
        "phone": "+1-555-0104",
        "wallet_address": "0xdd2fd4581271e230360230f9337d5c0430bf44c0",
    },
    {
        "email": "admin@nexuschain.com",
        "name": "NexusChain Admin",
        "role": UserRole.ADMIN,
        "company": "NexusChain",
        "phone": "+1-555-0100",
    },
]

# ─── Seeder ───────────────────────────────────────────────────────────────────

def seed_users(session: Session, password: str) -> dict:
    """Seed one user per role. Returns role → User map."""
    users = {}
    for data in DEMO_USERS:
        existing = session.exec(select(User).where(User.email == data["email"])).first()
        if existing:
            users[data["role"]] = existing
            logger.info(f"  ✓ User already exists: {data['email']}")
            continue
        user = User(password_hash=hash_password(password), **data)
        session.add(user)
        session.flush()
        users[data["role"]] = user
        logger.info(f"  ✓ {data['role'].value}: {data['email']}")
    session.commit()
    return users


def seed_demo_product(session: Session, manufacturer: User, logistics: User) -> Product:
    """A vaccine batch with a 2–8 °C cold chain and two checkpoints, one of them out of range."""
    product_id = "VAX-2024-001"
    existing = session.exec(select(Product).where(Product.product_id == product_id)).first()
    if existing:
        logger.info(f"  ✓ Demo product already exists: {product_id}")
        return existing

    now = utcnow()
    product = Product(
        product_id=product_id,
        name="COVID-19 Vaccine (mRNA)",
        description="Pfizer-BioNTech COVID-19 Vaccine, 6 doses per vial",
        category=ProductCategory.PHARMACEUTICALS,
        manufacturer_id=manufacturer.id,
        manufacturing_date=now - timedelta(days=30),
        expiry_date=now + timedelta(days=150),
        batch_number="BATCH-PF-2024-001",
        origin_location="Kalamazoo, Michigan, USA",
        current_location="Kalamazoo, Michigan, USA",
        current_status=KnownStatus.REGISTERED.value,
        min_temperature=2.0,
        max_temperature=8.0,
        qr_code=generate_qr_data_url(
            build_qr_payload(product_id, "COVID-19 Vaccine (mRNA)", manufacturer.company, now)
        ),
        created_at=now,
    )
    session.add(product)
    session.flush()

    checkpoints = [
        Checkpoint(
            product_id=product.id,
            location="Chicago Distribution Center, IL",
            latitude=41.8781,
            longitude=-87.6298,
            status=KnownStatus.IN_TRANSIT.value,
            temperature=5.0,
            humidity=45.0,
            handled_by=logistics.id,
            timestamp=now - timedelta(days=2),
        ),
        Checkpoint(
            product_id=product.id,
            location="New York Hub, NY",
            latitude=40.7128,
            longitude=-74.0060,
            status=KnownStatus.IN_TRANSIT.value,
            temperature=9.5,
            humidity=50.0,
            notes="Reefer door left open during unloading",
            handled_by=logistics.id,
            timestamp=now - timedelta(days=1),
        ),
    ]
    for checkpoint in checkpoints:
        session.add(checkpoint)

    state = deriver.derive_current_state(product.origin_location, checkpoints)
    product.current_status = state.status
    product.current_location = state.location
    session.add(product)
    session.commit()
    logger.info(f"  ✓ Demo product created: {product_id} with {len(checkpoints)} checkpoints")
    return product


def main():
    logger.info("🌱 Starting database seeding...")
    engine = build_engine(settings)
    create_db_and_tables(engine)
    password = os.getenv("DEMO_PASSWORD", "demo1234")

    with Session(engine) as session:
        logger.info("\n👥 Seeding demo users...")
        users = seed_users(session, password)

        logger.info("\n📦 Seeding demo product...")
        seed_demo_product(session, users[UserRole.MANUFACTURER], users[UserRole.LOGISTICS])

    logger.info("\n✅ Seeding complete!")
    logger.info("─" * 50)
    logger.info("Demo credentials (password from DEMO_PASSWORD, default demo1234):")
    for data in DEMO_USERS:
        logger.info(f"  {data['role'].value:<13}: {data['email']}")


if __name__ == "__main__":
    main()
