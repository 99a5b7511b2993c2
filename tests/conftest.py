"""Shared test fixtures for all tests."""
import uuid
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from warehouse.core.config import Settings
from warehouse.core.database import Database
from warehouse.core.security import create_access_token, get_password_hash
from warehouse.main import create_app
from warehouse.models import Category, Supplier, User
from warehouse.schemas.item import ItemCreate
from warehouse.services.ledger import LedgerEngine


class RecordingNotifier:
    """Stands in for the WebSocket manager and keeps what was published."""

    def __init__(self):
        self.events = []

    def publish(self, event_kind, item):
        self.events.append((event_kind, item))

    @property
    def kinds(self):
        return [kind for kind, _ in self.events]


@pytest.fixture
async def database(tmp_path):
    """Fresh SQLite database file per test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    try:
        yield db
    finally:
        await db.close()


@pytest.fixture
async def user(database):
    """Active user acting on every mutation."""
    async with database.session() as session:
        account = User(
            email="clerk@example.com",
            username="clerk",
            password_hash=get_password_hash("correct-horse"),
            full_name="Stock Clerk",
            role="user",
            is_active=True
        )
        session.add(account)
    return account


@pytest.fixture
def actor(user):
    return user.id


@pytest.fixture
async def category(database, actor):
    async with database.session() as session:
        record = Category(name="Electronics", code="ELEC", created_by=actor)
        session.add(record)
    return record


@pytest.fixture
async def supplier(database, actor):
    async with database.session() as session:
        record = Supplier(name="Acme Components", code="ACME", created_by=actor)
        session.add(record)
    return record


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ledger(database, notifier):
    return LedgerEngine(database, notifier=notifier, max_retries=3)


@pytest.fixture
def make_item(category):
    """Build ItemCreate payloads with sensible defaults."""
    def _make(**overrides) -> ItemCreate:
        data = {
            "sku": f"SKU-{uuid.uuid4().hex[:8]}",
            "name": "Widget",
            "category_id": category.id,
            "item_type": "Finished Product",
            "unit": "pcs",
            "unit_cost": Decimal("2.50"),
            "qty_on_hand": 10,
            "min_threshold": 5,
            "max_threshold": 100,
        }
        data.update(overrides)
        return ItemCreate(**data)
    return _make


@pytest.fixture
def app(database, tmp_path):
    """Application wired to the test database, rate limiting off."""
    app_settings = Settings(
        LOG_DIR=str(tmp_path / "logs"),
        RATE_LIMIT_ENABLED=False,
        DEBUG=False
    )
    return create_app(database=database, app_settings=app_settings)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    await app.state.notifier.drain()


@pytest.fixture
def auth_headers(user):
    """Bearer token headers for the test user."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def item_payload(category):
    """JSON body for creating an item over HTTP."""
    return {
        "sku": "sku001",
        "name": "Test Widget",
        "category_id": str(category.id),
        "item_type": "Finished Product",
        "unit": "pcs",
        "unit_cost": "4.00",
        "qty_on_hand": 10,
        "min_threshold": 5,
        "max_threshold": 100
    }
