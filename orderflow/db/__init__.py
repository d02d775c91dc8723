"""
Store of record: products and orders.

Exports the engine helpers, the FastAPI session dependency and the ORM models.
"""
from .init_db import create_tables, get_db, initialize_database, seed_products
from .models import Base, OrderModel, ProductModel

__all__ = [
    "create_tables",
    "get_db",
    "initialize_database",
    "seed_products",
    "Base",
    "OrderModel",
    "ProductModel",
]
