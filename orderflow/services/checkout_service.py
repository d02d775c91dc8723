"""
Checkout Service

Turns a client cart into a pending order and a hosted payment session.

Order of side effects is fixed:
1. Validate the cart against live product rows (no writes)
2. Insert the pending order and commit
3. Create the processor session referencing the order id
4. Record the session id on the order

The order row is the source of truth; if step 3 or 4 fails the order stays
pending and is never paid.
"""
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db.models import OrderModel, ProductModel
from ..exceptions import EmptyCartError, InsufficientStockError
from ..models.checkout import CheckoutRequest
from .payment_processor import CheckoutSessionRequest, PaymentProcessor, SessionLineItem
from .pricing import to_cents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricedLine:
    """Cart line repriced from the product row."""
    product_id: str
    name: str
    unit_cents: int
    quantity: int
    image: Optional[str] = None

    @property
    def total_cents(self) -> int:
        return self.unit_cents * self.quantity


# ============================================================================
# Cart Validation
# ============================================================================

async def price_cart(db: AsyncSession, request: CheckoutRequest) -> List[PricedLine]:
    """
    Reprice the cart from the store of record.

    Entries without an id or pointing at an unknown product are dropped.
    Client prices are never read. Stock is checked against the total
    quantity requested for a product across all of its entries.

    Raises:
        InsufficientStockError: a tracked product has fewer units than requested
        EmptyCartError: nothing valid remains
    """
    lines: List[PricedLine] = []
    requested: Dict[str, int] = {}

    for entry in request.cart:
        if not entry.id:
            continue

        product = await db.get(ProductModel, entry.id)
        if product is None:
            logger.info(f"Dropping unknown product from cart: {entry.id}")
            continue

        requested[product.id] = requested.get(product.id, 0) + entry.quantity
        if product.stock is not None and product.stock < requested[product.id]:
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                available=product.stock,
                requested=requested[product.id]
            )

        lines.append(PricedLine(
            product_id=product.id,
            name=product.name,
            unit_cents=to_cents(product.price),
            quantity=entry.quantity,
            image=product.image
        ))

    if not lines:
        raise EmptyCartError()

    return lines


def resolve_origin(origin: Optional[str], referer: Optional[str]) -> str:
    """
    Pick the storefront base URL for success/cancel redirects.

    Origin header first, then scheme and host of the Referer, then the
    configured default. One trailing slash is removed.
    """
    candidate = origin or ""
    if not candidate and referer:
        parts = urlsplit(referer)
        candidate = f"{parts.scheme}://{parts.netloc}" if parts.scheme and parts.netloc else referer

    if candidate.endswith("/"):
        candidate = candidate[:-1]

    return candidate or settings.default_origin


# ============================================================================
# Checkout
# ============================================================================

async def create_pending_order(
    db: AsyncSession,
    request: CheckoutRequest,
    lines: List[PricedLine]
) -> OrderModel:
    """Insert and commit a pending order; returns the persisted row."""
    order_id = f"ord_{uuid.uuid4().hex[:20]}"
    subtotal_cents = sum(line.total_cents for line in lines)

    items = [
        {
            "productId": line.product_id,
            "name": line.name,
            "qty": line.quantity,
            "price_cents": line.unit_cents,
        }
        for line in lines
    ]

    db_order = OrderModel(
        id=order_id,
        user_uid=request.user.uid,
        user_email=request.user.email,
        user_name=request.user.name or request.user.email,
        date=date.today().isoformat(),
        items=json.dumps(items),
        subtotal_cents=subtotal_cents,
        tps_cents=0,
        tvq_cents=0,
        taxes_cents=0,
        total_cents=0,
        status="pending",
    )

    db.add(db_order)
    await db.commit()

    logger.info(
        f"Created pending order: {order_id}, user={request.user.uid}, "
        f"lines={len(lines)}, subtotal_cents={subtotal_cents}"
    )

    return db_order


async def attach_session(db: AsyncSession, order_id: str, session_id: str) -> bool:
    """
    Record the processor session id on the order.

    Best-effort: a failure is logged and left as is. The webhook finds the
    order through session metadata, not through this field.
    """
    try:
        await db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(stripe_session_id=session_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Could not record session {session_id} on order {order_id}")
        return False

    return True


async def create_checkout(
    db: AsyncSession,
    processor: PaymentProcessor,
    request: CheckoutRequest,
    origin: Optional[str] = None,
    referer: Optional[str] = None
) -> str:
    """
    Create a pending order and its hosted checkout session.

    Args:
        db: Database session
        processor: Payment processor used to open the session
        request: Validated checkout payload
        origin: Origin header of the storefront request
        referer: Referer header of the storefront request

    Returns:
        Processor redirect URL

    Raises:
        InsufficientStockError, EmptyCartError: client errors, nothing written
        PaymentProcessorError, SQLAlchemyError: infrastructure failures
    """
    lines = await price_cart(db, request)
    order = await create_pending_order(db, request, lines)
    order_id = order.id

    base_url = resolve_origin(origin, referer)
    session = await processor.create_checkout_session(CheckoutSessionRequest(
        line_items=[
            SessionLineItem(
                name=line.name,
                unit_amount=line.unit_cents,
                quantity=line.quantity,
                image=line.image
            )
            for line in lines
        ],
        customer_email=request.user.email,
        success_url=f"{base_url}/?payment=success&order={order_id}",
        cancel_url=f"{base_url}/?payment=cancel&order={order_id}",
        currency=settings.currency,
        metadata={"order_id": order_id, "user_uid": request.user.uid},
    ))

    await attach_session(db, order_id, session.id)

    logger.info(f"Checkout session {session.id} opened for order {order_id}")

    return session.url

