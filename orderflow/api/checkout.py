"""
Checkout API Endpoint

Creates a pending order from the storefront cart and returns the hosted
payment page URL. The storefront navigates there itself.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..exceptions import PaymentProcessorError
from ..models.checkout import CheckoutRequest, CheckoutResponse
from ..services.checkout_service import create_checkout
from ..services.payment_processor import PaymentProcessor, get_processor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout_endpoint(
    body: CheckoutRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    processor: PaymentProcessor = Depends(get_processor)
):
    """
    Validate the cart server-side and open a payment session.

    Request Body:
        {
            "cart": [{"id": str, "quantity": int}],
            "user": {"uid": str, "email": str, "name": str?}
        }

    Returns:
        200 {"url": str}
        400 {"error": str, ...} invalid payload, empty cart, insufficient stock
        500 {"error": str} store or processor failure

    Example:
        POST /api/checkout
    """
    logger.info(f"Checkout requested: user={body.user.uid}, entries={len(body.cart)}")

    try:
        url = await create_checkout(
            db,
            processor,
            body,
            origin=request.headers.get("origin"),
            referer=request.headers.get("referer")
        )
    except (PaymentProcessorError, SQLAlchemyError) as e:
        logger.exception(f"Checkout failed for user {body.user.uid}")
        return JSONResponse(status_code=500, content={"error": f"Server error: {e}"})

    return CheckoutResponse(url=url)
