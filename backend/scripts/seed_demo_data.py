import asyncio
import logging
import sys
from pathlib import Path

"""
Seed demo data (admin user, products, storage units, one inventory) into the DB.

This script can be run from either:
- backend/: `uv run python scripts/seed_demo_data.py`
- repo root: `uv run python backend/scripts/seed_demo_data.py`

Holdings and storage attachments go through the capacity ledger, so the seeded
inventory satisfies the same invariants as API-created data.
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select

from core.logging_config import configure_logging
from db.database import async_session_maker, create_db_and_tables
from db.models import Inventory, Product, StorageUnit, User
from services.ledger import CapacityLedger

from fastapi_users.password import PasswordHelper


logger = logging.getLogger("seed_demo_data")
password_helper = PasswordHelper()

DEMO_PRODUCTS = [
    # name, category, price, unit weight (kg), (l, w, h) in m, stock, threshold
    ("Rice 25kg sack", "Grocery", 1450.0, 25.0, (0.6, 0.4, 0.15), 120, 20),
    ("Sunflower oil 15L tin", "Grocery", 2100.0, 14.5, (0.25, 0.25, 0.35), 40, 10),
    ("Copier paper box", "Stationery", 1800.0, 12.5, (0.45, 0.3, 0.28), 8, 10),
    ("Bottled water crate", "Beverages", 240.0, 13.0, (0.4, 0.27, 0.25), 300, 50),
]

DEMO_STORAGE_UNITS = [
    # location_id, (l, w, h), holding capacity (kg), volume (m3)
    ("RACK-A1", (2.4, 1.0, 2.0), 1500.0, 4.8),
    ("RACK-A2", (2.4, 1.0, 2.0), 1500.0, 4.8),
    ("COLD-01", (3.0, 2.0, 2.5), 2500.0, 15.0),
]


async def get_or_create_admin(session, email: str, password: str) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        email=email,
        hashed_password=password_helper.hash(password),
        is_active=True,
        is_superuser=True,
        is_verified=True,
    )
    session.add(user)
    await session.commit()
    return user


async def get_or_create_product(session, name, category, price, weight, dims, quantity, threshold) -> Product:
    result = await session.execute(select(Product).where(func.lower(Product.name) == name.lower()))
    product = result.scalar_one_or_none()
    if product:
        return product

    length, width, height = dims
    product = Product(
        name=name,
        category=category,
        price=price,
        weight=weight,
        length=length,
        width=width,
        height=height,
        quantity=quantity,
        threshold_limit=threshold,
    )
    session.add(product)
    await session.commit()
    return product


async def get_or_create_storage_unit(session, location_id, dims, holding_capacity, volume) -> StorageUnit:
    result = await session.execute(select(StorageUnit).where(StorageUnit.location_id == location_id))
    unit = result.scalar_one_or_none()
    if unit:
        return unit

    length, width, height = dims
    unit = StorageUnit(
        location_id=location_id,
        length=length,
        width=width,
        height=height,
        holding_capacity=holding_capacity,
        volume=volume,
    )
    session.add(unit)
    await session.commit()
    return unit


async def main() -> None:
    configure_logging()
    await create_db_and_tables()
    ledger = CapacityLedger()

    async with async_session_maker() as session:
        admin = await get_or_create_admin(session, "admin@example.com", "admin")

        products = [await get_or_create_product(session, *row) for row in DEMO_PRODUCTS]
        units = [await get_or_create_storage_unit(session, *row) for row in DEMO_STORAGE_UNITS]

        result = await session.execute(select(Inventory).where(Inventory.name == "Central Warehouse"))
        inventory = result.scalar_one_or_none()
        if inventory is not None:
            logger.info("Central Warehouse already seeded (%s); nothing to do", inventory.id)
            return

        inventory = await ledger.create_inventory(
            db=session,
            name="Central Warehouse",
            longitude=77.5946,
            latitude=12.9716,
            total_capacity=5000.0,
            total_volume=30.0,
        )
        for unit in units:
            await ledger.add_storage(db=session, inventory_id=inventory.id, storage_unit_id=unit.id, user=admin)
        for product, qty in zip(products, (40, 20, 30, 60)):
            await ledger.add_product(
                db=session, inventory_id=inventory.id, product_id=product.id, quantity=qty, user=admin
            )

        inventory = await ledger.snapshot(session, inventory.id)
        logger.info(
            "Seeded %s: %.1f/%.1f kg, %.2f/%.2f m3, %d storage units, %d products",
            inventory.name,
            inventory.capacity_occupied,
            inventory.total_capacity,
            inventory.volume_occupied,
            inventory.total_volume,
            len(inventory.storage_units),
            len(inventory.holdings),
        )


if __name__ == "__main__":
    asyncio.run(main())
