"""
Products API Endpoints

Read access to the product catalog checkout prices against.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any
import logging

from ..db.init_db import get_db
from ..services.product_service import get_product_by_id, list_products

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_products_endpoint(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    List the catalog.

    Returns:
        {
            "count": int,
            "products": List[Product]
        }
    """
    products = await list_products(db)

    return {
        "count": len(products),
        "products": products
    }


@router.get("/{product_id}")
async def get_product_endpoint(
    product_id: str,
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """
    Get specific product by ID.

    Example:
        GET /api/products/prod_soap_001
    """
    logger.debug(f"Get product: {product_id}")

    product = await get_product_by_id(db, product_id)

    if not product:
        raise HTTPException(
            status_code=404,
            detail={
                "error_code": "product_not_found",
                "message": f"No product found with ID: {product_id}"
            }
        )

    return product
