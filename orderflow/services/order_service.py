"""
Order Service

Read access to order documents for the storefront and reporting.
Writes happen only in checkout_service and reconciliation_service.
"""
import json
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.models import OrderModel
from ..models.orders import Order, OrderItem
from .pricing import from_cents

logger = logging.getLogger(__name__)


def to_order_document(db_order: OrderModel) -> Order:
    """Convert an order row to the order document."""
    items = [
        OrderItem(
            product_id=item["productId"],
            name=item["name"],
            qty=item["qty"],
            price=from_cents(item["price_cents"]),
        )
        for item in json.loads(db_order.items or "[]")
    ]

    return Order(
        id=db_order.id,
        user_uid=db_order.user_uid,
        user_email=db_order.user_email,
        user_name=db_order.user_name,
        date=db_order.date,
        items=items,
        subtotal=from_cents(db_order.subtotal_cents),
        tps=from_cents(db_order.tps_cents),
        tvq=from_cents(db_order.tvq_cents),
        taxes=from_cents(db_order.taxes_cents),
        total=from_cents(db_order.total_cents),
        status=db_order.status,
        stripe_session_id=db_order.stripe_session_id,
        stripe_payment_intent_id=db_order.stripe_payment_intent_id,
        created_at=db_order.created_at,
        paid_at=db_order.paid_at,
    )


async def get_order_by_id(db: AsyncSession, order_id: str) -> Optional[Order]:
    """
    Retrieve an order document by ID.

    Args:
        db: Database session
        order_id: Order identifier

    Returns:
        Order or None if not found
    """
    result = await db.execute(select(OrderModel).where(OrderModel.id == order_id))
    db_order = result.scalar_one_or_none()

    if not db_order:
        return None

    return to_order_document(db_order)


async def get_user_orders(
    db: AsyncSession,
    user_uid: str,
    limit: int = 10,
    offset: int = 0
) -> List[Order]:
    """
    Get orders for a user, most recent first.

    Args:
        db: Database session
        user_uid: Buyer external identifier
        limit: Max results
        offset: Pagination offset
    """
    result = await db.execute(
        select(OrderModel)
        .where(OrderModel.user_uid == user_uid)
        .order_by(OrderModel.created_at.desc(), OrderModel.id)
        .limit(limit)
        .offset(offset)
    )

    orders = [to_order_document(o) for o in result.scalars().all()]
    logger.debug(f"Retrieved {len(orders)} orders for user {user_uid}")
    return orders
