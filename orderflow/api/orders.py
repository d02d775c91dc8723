"""
Orders API Endpoints

Read-only order documents for the storefront's order pages and for
reporting.
"""
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any
import logging

from ..db.init_db import get_db
from ..services.order_service import get_order_by_id, get_user_orders

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{order_id}")
async def get_order_endpoint(
    order_id: str,
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """
    Get an order document.

    Path Parameters:
        order_id: Order identifier

    Example:
        GET /api/orders/ord_3f9c2a7b1d4e5f60a1b2
    """
    logger.debug(f"Retrieving order: {order_id}")

    order = await get_order_by_id(db, order_id)

    if not order:
        raise HTTPException(
            status_code=404,
            detail={
                "error_code": "order_not_found",
                "message": f"No order found with ID: {order_id}"
            }
        )

    return order.model_dump(mode="json", by_alias=True)


@router.get("/user/{user_uid}")
async def get_user_orders_endpoint(
    user_uid: str,
    limit: int = Query(10, ge=1, le=100, description="Max results"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """
    Get orders placed by a user, most recent first.

    Returns:
        {
            "user_uid": str,
            "count": int,
            "orders": List[Order]
        }

    Example:
        GET /api/orders/user/u_123?limit=20&offset=0
    """
    orders = await get_user_orders(db, user_uid, limit, offset)

    return {
        "user_uid": user_uid,
        "count": len(orders),
        "orders": [o.model_dump(mode="json", by_alias=True) for o in orders]
    }
