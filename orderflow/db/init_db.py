"""
Database Initialization

Creates the products and orders tables and optionally seeds the demo
catalog. Also owns the async engine and session factory used by FastAPI.
"""
import asyncio
import logging
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..config import settings
from ..mocks.catalog import DEMO_CATALOG
from .models import Base, ProductModel

logger = logging.getLogger(__name__)


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    Apply SQLite pragmas on every new connection.

    WAL mode lets readers proceed while a reconciliation transaction is
    writing; busy_timeout makes concurrent writers wait instead of failing.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=30000")  # 30 second timeout
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()


def create_engine_for(database_path: str) -> AsyncEngine:
    """Create an aiosqlite engine for the given database file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path}",
        echo=False,
        connect_args={
            "timeout": 30,  # 30 second timeout for lock acquisition
            "check_same_thread": False
        },
    )
    configure_sqlite(engine)
    return engine


# ============================================================================
# SQLAlchemy Async Session Setup for FastAPI
# ============================================================================

engine = create_engine_for(settings.database_path)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions in FastAPI.

    Usage:
        @router.post("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


# Alias for FastAPI Depends
get_db = get_async_session


# ============================================================================
# Schema and Seed Data
# ============================================================================

async def create_tables(target: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_products(session: AsyncSession) -> int:
    """
    Insert the demo catalog into an empty products table.

    Returns:
        Number of products inserted (0 when the table already has rows)
    """
    existing = await session.scalar(select(func.count()).select_from(ProductModel))
    if existing:
        logger.debug(f"Products table already has {existing} rows, skipping seed")
        return 0

    session.add_all(
        ProductModel(
            id=product.product_id,
            name=product.name,
            price=product.price,
            stock=product.stock,
            image=product.image_url,
        )
        for product in DEMO_CATALOG
    )
    await session.commit()
    return len(DEMO_CATALOG)


async def initialize_database(
    target: Optional[AsyncEngine] = None,
    seed: Optional[bool] = None
) -> None:
    """
    Initialize the database with all required tables.

    This function is called during FastAPI startup.
    """
    target = target or engine
    seed = settings.seed_catalog if seed is None else seed

    if target is engine:
        Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)

    await create_tables(target)
    logger.info(f"Database tables ready at {target.url}")

    if seed:
        factory = async_sessionmaker(target, class_=AsyncSession, expire_on_commit=False)
        async with factory() as session:
            inserted = await seed_products(session)
        if inserted:
            logger.info(f"Seeded {inserted} demo products")


def main():
    """CLI entry point for initializing database."""
    logging.basicConfig(level=getattr(logging, settings.log_level))
    asyncio.run(initialize_database())


if __name__ == "__main__":
    main()
