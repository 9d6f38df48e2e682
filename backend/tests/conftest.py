"""
Pytest fixtures for ledger and API tests.

Every test gets its own SQLite file. Tables are created with a sync engine,
and the code under test talks to the file through aiosqlite with NullPool so
that each session owns its connection (no sharing across event loops).
"""

import os
import uuid

# Keep the module-level engine in db.database off PostgreSQL during tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./warehouse-test.db")

import pytest
import pytest_asyncio
from fastapi import HTTPException, status
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.auth import current_active_superuser, current_active_user
from db.database import Base, get_async_session
from db.models import Inventory, Product, StorageUnit, User
from services.ledger import CapacityLedger, get_ledger
from services.reporter import UtilizationReporter, get_reporter


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def db_url(tmp_path) -> str:
    path = tmp_path / "ledger.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def session_maker(db_url):
    engine = create_async_engine(db_url, poolclass=NullPool)
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def ledger() -> CapacityLedger:
    return CapacityLedger()


@pytest.fixture
def reporter(ledger) -> UtilizationReporter:
    return UtilizationReporter(ledger)


# =============================================================================
# ENTITY FACTORIES
# =============================================================================

@pytest.fixture
def make_product(session_maker):
    async def _make(name="Widget", weight=1.0, dims=(1.0, 1.0, 1.0), price=10.0, **kwargs):
        length, width, height = dims
        async with session_maker() as s:
            product = Product(
                name=name,
                weight=weight,
                length=length,
                width=width,
                height=height,
                price=price,
                quantity=kwargs.pop("quantity", 0),
                threshold_limit=kwargs.pop("threshold_limit", 0),
                **kwargs,
            )
            s.add(product)
            await s.commit()
            return product.id

    return _make


@pytest.fixture
def make_inventory(session_maker, ledger):
    async def _make(name="Main", total_capacity=100.0, total_volume=10.0):
        async with session_maker() as s:
            inv = await ledger.create_inventory(
                db=s,
                name=name,
                longitude=77.59,
                latitude=12.97,
                total_capacity=total_capacity,
                total_volume=total_volume,
            )
            return inv.id

    return _make


@pytest.fixture
def make_storage_unit(session_maker):
    async def _make(location_id="RACK-1"):
        async with session_maker() as s:
            unit = StorageUnit(location_id=location_id, length=1.0, width=1.0, height=1.0, holding_capacity=100.0, volume=1.0)
            s.add(unit)
            await s.commit()
            return unit.id

    return _make


@pytest.fixture
def load_inventory(session_maker):
    """Fetch a fresh copy of an inventory in a new session."""
    async def _load(inventory_id):
        async with session_maker() as s:
            return await s.get(Inventory, inventory_id)

    return _load


# =============================================================================
# API FIXTURES
# =============================================================================

def _user(superuser: bool) -> User:
    return User(
        id=uuid.uuid4(),
        email=f"{'admin' if superuser else 'clerk'}-{uuid.uuid4().hex[:6]}@example.com",
        hashed_password="not-used",
        is_active=True,
        is_superuser=superuser,
        is_verified=True,
    )


def _forbidden():
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def _build_client(session_maker, ledger, user):
    from main import app

    async def _session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_reporter] = lambda: UtilizationReporter(ledger)
    if user is not None:
        app.dependency_overrides[current_active_user] = lambda: user
        if user.is_superuser:
            app.dependency_overrides[current_active_superuser] = lambda: user
        else:
            app.dependency_overrides[current_active_superuser] = _forbidden
    return app, TestClient(app)


@pytest.fixture
def client(session_maker, ledger):
    """Client authenticated as a superuser."""
    app, test_client = _build_client(session_maker, ledger, _user(superuser=True))
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def member_client(session_maker, ledger):
    """Client authenticated as a regular (non-superuser) user."""
    app, test_client = _build_client(session_maker, ledger, _user(superuser=False))
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(session_maker, ledger):
    """Client without credentials; fastapi-users auth runs for real."""
    app, test_client = _build_client(session_maker, ledger, None)
    yield test_client
    app.dependency_overrides.clear()
