"""
Payment Processor Port and Stripe Adapter

The checkout and webhook code only talk to PaymentProcessor. StripeProcessor
is the production adapter; FakeProcessor (mocks/) is used in demo mode and
tests. Both verify webhooks with the stripe library.
"""
import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional

import stripe
from pydantic import ValidationError

from ..config import Settings, settings
from ..exceptions import (
    ConfigurationError,
    InvalidPayloadError,
    PaymentProcessorError,
    SignatureInvalidError,
)
from ..models.events import ProcessorEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionLineItem:
    """One hosted-checkout line, priced in cents."""
    name: str
    unit_amount: int
    quantity: int
    image: Optional[str] = None


@dataclass(frozen=True)
class CheckoutSessionRequest:
    """Everything the processor needs to open a hosted checkout."""
    line_items: List[SessionLineItem]
    customer_email: str
    success_url: str
    cancel_url: str
    currency: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutSession:
    """Processor-side session handle."""
    id: str
    url: str


def build_session_params(request: CheckoutSessionRequest) -> Dict[str, Any]:
    """Render a session request as Stripe Checkout Session parameters."""
    return {
        "mode": "payment",
        "payment_method_types": ["card"],
        "customer_email": request.customer_email,
        "line_items": [
            {
                "quantity": item.quantity,
                "price_data": {
                    "currency": request.currency,
                    "unit_amount": item.unit_amount,
                    "product_data": {
                        "name": item.name,
                        "images": [item.image] if item.image else [],
                    },
                },
            }
            for item in request.line_items
        ],
        "success_url": request.success_url,
        "cancel_url": request.cancel_url,
        "metadata": dict(request.metadata),
    }


def verify_event(
    payload: bytes,
    signature: Optional[str],
    secret: str,
    tolerance: int
) -> ProcessorEvent:
    """
    Verify a Stripe-Signature header and parse the event.

    Raises:
        SignatureInvalidError: no signing secret, header missing, HMAC mismatch
            or stale timestamp
        InvalidPayloadError: signature valid but body is not an event
    """
    if not secret:
        raise SignatureInvalidError("Webhook signing secret is not configured")

    if not signature:
        raise SignatureInvalidError("Missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SignatureInvalidError("Payload is not valid UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(body, signature, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise SignatureInvalidError(e.user_message or str(e)) from e

    try:
        return ProcessorEvent.model_validate_json(body)
    except ValidationError as e:
        raise InvalidPayloadError(
            "Malformed event payload",
            {"errors": e.errors(include_url=False, include_context=False)}
        ) from e


class PaymentProcessor(ABC):
    """Abstract payment processor interface."""

    @abstractmethod
    async def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        """Open a hosted checkout session and return its id and redirect URL."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: Optional[str]) -> ProcessorEvent:
        """Authenticate a webhook delivery and return the parsed event."""
        ...


class StripeProcessor(PaymentProcessor):
    """Stripe Checkout adapter."""

    def __init__(self, api_key: str, webhook_secret: str, tolerance: int = 300) -> None:
        if not webhook_secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET is required to verify Stripe webhooks")
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        params = build_session_params(request)
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                **params
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe session creation failed: {type(e).__name__}: {e}")
            raise PaymentProcessorError(str(e)) from e

        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> ProcessorEvent:
        return verify_event(payload, signature, self.webhook_secret, self.tolerance)


def check_processor_settings(config: Settings) -> None:
    """
    Refuse settings that would leave the webhook unauthenticated.

    Raises:
        ConfigurationError: Stripe mode without a webhook signing secret
    """
    if not config.demo_mode and not config.stripe_webhook_secret:
        raise ConfigurationError(
            "STRIPE_WEBHOOK_SECRET must be set when DEMO_MODE is off"
        )


def build_processor(config: Settings) -> PaymentProcessor:
    """
    Build the processor selected by the settings.

    Demo mode uses the in-process fake so the flow runs without Stripe keys.
    Without a configured secret it signs with a random per-process one.
    """
    check_processor_settings(config)

    if config.demo_mode:
        from ..mocks.payment_processor import FakeProcessor

        logger.warning("Demo mode: using FakeProcessor instead of Stripe")
        return FakeProcessor(
            webhook_secret=config.stripe_webhook_secret or f"whsec_{secrets.token_hex(24)}",
            tolerance=config.webhook_tolerance_seconds
        )

    return StripeProcessor(
        api_key=config.stripe_secret_key,
        webhook_secret=config.stripe_webhook_secret,
        tolerance=config.webhook_tolerance_seconds
    )


@lru_cache(maxsize=1)
def get_processor() -> PaymentProcessor:
    """FastAPI dependency returning the configured processor."""
    return build_processor(settings)
