import os
from decimal import Decimal

os.environ.setdefault("DEMO_MODE", "true")
os.environ.setdefault("SEED_CATALOG", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.db.init_db import create_engine_for, create_tables, get_db
from orderflow.db.models import OrderModel, ProductModel
from orderflow.main import app
from orderflow.mocks.payment_processor import FakeProcessor
from orderflow.services.payment_processor import get_processor

WEBHOOK_SECRET = "whsec_test_secret"


def pytest_collection_modifyitems(config, items):
    """Mark tests that exercise the HTTP surface."""
    for item in items:
        if "client" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.api)


@pytest.fixture()
async def engine(tmp_path):
    engine = create_engine_for(str(tmp_path / "orders.db"))
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def processor():
    return FakeProcessor(webhook_secret=WEBHOOK_SECRET)


@pytest.fixture()
def use_session_factory():
    """Point get_db at a session factory for the app under test."""

    def _use(factory):
        async def override_get_db():
            async with factory() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db

    return _use


@pytest.fixture()
async def client(session_factory, processor, use_session_factory):
    use_session_factory(session_factory)
    app.dependency_overrides[get_processor] = lambda: processor

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
async def catalog(session_factory):
    """
    p1: tracked stock, the worked example product
    p2: tracked stock
    p3: stock not tracked
    """
    async with session_factory() as session:
        session.add_all([
            ProductModel(id="p1", name="Savon artisanal", price=Decimal("9.99"), stock=5,
                         image="https://img.test/p1.jpg"),
            ProductModel(id="p2", name="Tasse en grès", price=Decimal("18.50"), stock=2),
            ProductModel(id="p3", name="Portrait sur commande", price=Decimal("120.00"), stock=None),
        ])
        await session.commit()


class StoreReader:
    """Reads rows through fresh sessions so assertions see committed state only."""

    def __init__(self, factory):
        self.factory = factory

    async def product(self, product_id):
        async with self.factory() as session:
            return await session.get(ProductModel, product_id)

    async def order(self, order_id):
        async with self.factory() as session:
            return await session.get(OrderModel, order_id)

    async def orders(self):
        async with self.factory() as session:
            result = await session.execute(select(OrderModel))
            return list(result.scalars().all())


@pytest.fixture()
def store(session_factory):
    return StoreReader(session_factory)
