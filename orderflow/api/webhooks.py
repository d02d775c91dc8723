"""
Processor Webhook Endpoint

Receives signed events from Stripe. The signature is checked against the
raw body before anything in it is trusted.

Response contract with the processor:
- 200 empty body: handled, or deliberately ignored
- 400 text: signature or payload rejected
- 500 text: processing failed, the processor redelivers later
"""
from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..db.init_db import get_db
from ..exceptions import InvalidPayloadError, SignatureInvalidError
from ..services.payment_processor import PaymentProcessor, get_processor
from ..services.reconciliation_service import handle_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks/stripe")
async def stripe_webhook_endpoint(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
    processor: PaymentProcessor = Depends(get_processor)
):
    """Verify and apply a processor event."""
    payload = await request.body()

    try:
        event = processor.construct_event(payload, stripe_signature)
    except SignatureInvalidError as e:
        logger.warning(f"Webhook signature verification failed: {e.message}")
        return PlainTextResponse(f"Webhook Error: {e.message}", status_code=400)
    except InvalidPayloadError as e:
        logger.warning(f"Webhook payload rejected: {e.message}")
        return PlainTextResponse(f"Webhook Error: {e.message}", status_code=400)

    try:
        result = await handle_event(db, event)
    except InvalidPayloadError as e:
        logger.warning(f"Webhook event {event.id} rejected: {e.message}")
        return PlainTextResponse(f"Webhook Error: {e.message}", status_code=400)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Webhook handling failed for event {event.id}")
        return PlainTextResponse("Webhook handling error", status_code=500)
    except Exception:
        await db.rollback()
        logger.exception(f"Unexpected error handling webhook event {event.id}")
        return PlainTextResponse("Webhook handling error", status_code=500)

    logger.info(f"Webhook event {event.id} ({event.type}): {result.outcome}")
    return Response(status_code=200)
