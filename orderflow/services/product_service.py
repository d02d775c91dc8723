"""
Product Service

Read-only catalog access. Prices and stock here are the store of record the
checkout reprices against.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import ProductModel


def to_product_dict(product: ProductModel) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "price": float(product.price),
        "stock": product.stock,
        "image": product.image,
    }


async def get_product_by_id(db: AsyncSession, product_id: str) -> Optional[Dict[str, Any]]:
    """Get a product by ID, or None."""
    product = await db.get(ProductModel, product_id)
    return to_product_dict(product) if product else None


async def list_products(db: AsyncSession) -> List[Dict[str, Any]]:
    """List the catalog ordered by name."""
    result = await db.execute(select(ProductModel).order_by(ProductModel.name))
    return [to_product_dict(p) for p in result.scalars().all()]
