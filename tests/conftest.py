"""Pytest configuration and fixtures."""

import os

# Point the application at the test database before it creates its engine.
# PostgreSQL in Docker (TEST_DATABASE_URL set), SQLite locally.
SQLALCHEMY_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///./test.db")
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from tastebuddy.api.dependencies import get_discount_registry, get_scheduler  # noqa: E402
from tastebuddy.database import Base, get_db  # noqa: E402
from tastebuddy.main import app  # noqa: E402
from tastebuddy.models import Item, Market, Recipe  # noqa: E402
from tastebuddy.schemas.discount import RawDiscount  # noqa: E402
from tastebuddy.services.discount_sources import DiscountSource, DiscountSourceRegistry  # noqa: E402
from tastebuddy.services.scheduler import JobScheduler  # noqa: E402

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


class FakeSource(DiscountSource):
    """Discount source answering from a dict keyed by market external id.

    A value that is an exception is raised instead of returned.
    """

    def __init__(self, distributor: str, offers: dict):
        self.distributor = distributor
        self.offers = offers
        self.calls: list[str] = []

    async def fetch(self, market):
        self.calls.append(market.external_id)
        result = self.offers.get(market.external_id, [])
        if isinstance(result, BaseException):
            raise result
        return [RawDiscount(**offer) for offer in result]


@pytest.fixture
def registry():
    """Empty source registry; tests register the fake sources they need."""
    return DiscountSourceRegistry()


@pytest.fixture
def scheduler():
    """Job scheduler on the test database with a fixed clock."""
    return JobScheduler(TestingSessionLocal, clock=lambda: FIXED_NOW)


@pytest.fixture(scope="function")
def client(db, registry, scheduler):
    """Create a test client with database, registry and scheduler overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_discount_registry] = lambda: registry
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# --- Data helpers ---


def add_item(db, name, type=None, img_url=None) -> Item:
    """Insert an item directly."""
    item = Item(name=name, type=type, img_url=img_url)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def add_recipe(db, name, item_ids, **fields) -> Recipe:
    """Insert a recipe in stored shape with one step per item."""
    steps = [
        {"description": f"Use item {item_id}", "items": [{"item_id": item_id, "amount": 1, "unit": "pcs"}]}
        for item_id in item_ids
    ]
    recipe = Recipe(name=name, steps=steps, **fields)
    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    return recipe


def add_market(db, external_id, city, distributor="edeka", name=None) -> Market:
    """Insert a market directly."""
    market = Market(
        external_id=external_id,
        name=name or f"Market {external_id}",
        city=city,
        distributor=distributor,
    )
    db.add(market)
    db.commit()
    db.refresh(market)
    return market


@pytest.fixture
def make_item(db):
    return lambda name, **kwargs: add_item(db, name, **kwargs)


@pytest.fixture
def make_recipe(db):
    return lambda name, item_ids, **kwargs: add_recipe(db, name, item_ids, **kwargs)


@pytest.fixture
def make_market(db):
    return lambda external_id, city, **kwargs: add_market(db, external_id, city, **kwargs)


@pytest.fixture
def fake_source():
    return FakeSource


@pytest.fixture
def session_factory():
    return TestingSessionLocal
