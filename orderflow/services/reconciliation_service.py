"""
Reconciliation Service

Applies a verified checkout.session.completed event to its order.

The order transition and every stock decrement for that order are written in
one transaction: either the order is paid and stock is down, or nothing
changed. Stock is decremented with an UPDATE expression, never
read-modify-write, so concurrent orders on the same product cannot lose
updates.

Replays are absorbed by the pending -> paid condition: a second delivery for
the same order matches no pending row and is rolled back as a no-op.
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import case, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import OrderModel, ProductModel
from ..exceptions import InvalidPayloadError
from ..models.events import CHECKOUT_SESSION_COMPLETED, CheckoutSessionObject, ProcessorEvent

logger = logging.getLogger(__name__)

# Outcomes
PAID = "paid"
IGNORED_EVENT = "ignored_event"
MISSING_ORDER_ID = "missing_order_id"
ORDER_NOT_FOUND = "order_not_found"
ALREADY_PAID = "already_paid"


@dataclass(frozen=True)
class ReconcileResult:
    """What the webhook did with an event. Every outcome is acknowledged."""
    outcome: str
    order_id: Optional[str] = None


def decrement_stock(product_id: str, quantity: int):
    """
    Build the atomic stock decrement for one line.

    Untracked stock (NULL) is left alone and tracked stock is floored at 0.
    A product that no longer exists matches no row.
    """
    return (
        update(ProductModel)
        .where(ProductModel.id == product_id, ProductModel.stock.is_not(None))
        .values(stock=case(
            (ProductModel.stock >= quantity, ProductModel.stock - quantity),
            else_=0
        ))
        .execution_options(synchronize_session=False)
    )


async def handle_event(db: AsyncSession, event: ProcessorEvent) -> ReconcileResult:
    """
    Dispatch a verified processor event.

    Only checkout.session.completed changes state; every other type is
    acknowledged and ignored.

    Raises:
        InvalidPayloadError: completed event whose session object is malformed
    """
    if event.type != CHECKOUT_SESSION_COMPLETED:
        logger.debug(f"Ignoring processor event {event.id} of type {event.type}")
        return ReconcileResult(IGNORED_EVENT)

    try:
        session = CheckoutSessionObject.model_validate(event.data.object)
    except ValidationError as e:
        raise InvalidPayloadError(
            "Malformed checkout session",
            {"errors": e.errors(include_url=False, include_context=False)}
        ) from e

    return await reconcile_completed_session(db, session)


async def reconcile_completed_session(
    db: AsyncSession,
    session: CheckoutSessionObject
) -> ReconcileResult:
    """
    Mark the session's order paid and take its items out of stock.

    Args:
        db: Database session
        session: Completed checkout session from the processor

    Returns:
        ReconcileResult describing the outcome

    Raises:
        SQLAlchemyError: the transaction could not be committed; the caller
            answers 500 so the processor redelivers the event
    """
    order_id = session.metadata.get("order_id")
    if not order_id:
        logger.warning(f"Completed session {session.id} carries no order_id, ignoring")
        return ReconcileResult(MISSING_ORDER_ID)

    order = await db.get(OrderModel, order_id)
    if order is None:
        logger.warning(f"Completed session {session.id} references unknown order {order_id}")
        return ReconcileResult(ORDER_NOT_FOUND, order_id)

    if order.status != "pending":
        logger.info(f"Order {order_id} already {order.status}, ignoring duplicate delivery")
        return ReconcileResult(ALREADY_PAID, order_id)

    amount_total = session.amount_total or 0
    amount_subtotal = session.amount_subtotal or 0
    # tps/tvq breakdown is not reported by the processor; only the combined tax is known
    taxes_cents = amount_total - amount_subtotal
    items = json.loads(order.items or "[]")

    result = await db.execute(
        update(OrderModel)
        .where(OrderModel.id == order_id, OrderModel.status == "pending")
        .values(
            status="paid",
            taxes_cents=taxes_cents,
            total_cents=amount_total,
            tps_cents=0,
            tvq_cents=0,
            stripe_payment_intent_id=session.payment_intent,
            paid_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        logger.info(f"Order {order_id} was paid by a concurrent delivery, ignoring")
        return ReconcileResult(ALREADY_PAID, order_id)

    for item in items:
        product_id = item.get("productId")
        quantity = int(item.get("qty") or 0)
        if not product_id or quantity <= 0:
            continue
        await db.execute(decrement_stock(product_id, quantity))

    await db.commit()

    logger.info(
        f"Order {order_id} paid: total_cents={amount_total}, taxes_cents={taxes_cents}, "
        f"payment_intent={session.payment_intent}, lines={len(items)}"
    )

    return ReconcileResult(PAID, order_id)
