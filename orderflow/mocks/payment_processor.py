"""
Mock Payment Processor

Stands in for Stripe Checkout in demo mode and tests. Sessions are kept in
memory, and completion events are signed with the same scheme Stripe uses so
they pass through the real webhook verification.
"""
import uuid
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import PaymentProcessorError
from ..models.events import CHECKOUT_SESSION_COMPLETED, ProcessorEvent
from ..services.payment_processor import (
    CheckoutSession,
    CheckoutSessionRequest,
    PaymentProcessor,
    build_session_params,
    verify_event,
)
from ..services.signature_service import create_canonical_json, sign_payload


class FakeProcessor(PaymentProcessor):
    """Configurable in-memory processor."""

    def __init__(self, webhook_secret: str, tolerance: int = 300) -> None:
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance
        self.should_succeed: bool = True
        self.failure_reason: str = "Processor unavailable"
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Dict[str, Any]] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Processor unavailable") -> None:
        """Configure session creation to succeed or fail."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        params = build_session_params(request)
        self.calls.append({"method": "create_checkout_session", "params": params})

        if not self.should_succeed:
            raise PaymentProcessorError(self.failure_reason)

        session_id = f"cs_test_{uuid.uuid4().hex[:24]}"
        self.sessions[session_id] = params
        return CheckoutSession(
            id=session_id,
            url=f"https://checkout.stripe.test/c/pay/{session_id}"
        )

    def construct_event(self, payload: bytes, signature: Optional[str]) -> ProcessorEvent:
        return verify_event(payload, signature, self.webhook_secret, self.tolerance)

    def build_event(
        self,
        event_type: str,
        obj: Dict[str, Any],
        timestamp: Optional[int] = None
    ) -> Tuple[bytes, str]:
        """
        Build a signed webhook delivery.

        Returns:
            (raw body, Stripe-Signature header value)
        """
        body = create_canonical_json({
            "id": f"evt_{uuid.uuid4().hex[:24]}",
            "object": "event",
            "type": event_type,
            "data": {"object": obj},
        })
        return body.encode("utf-8"), sign_payload(body, self.webhook_secret, timestamp)

    def complete_session(
        self,
        session_id: str,
        amount_total: Optional[int] = None,
        amount_subtotal: Optional[int] = None,
        payment_intent: Optional[str] = None
    ) -> Tuple[bytes, str]:
        """
        Simulate the buyer paying a session created by this processor.

        Subtotal defaults to the sum of the session lines; total defaults to
        the subtotal (no tax).
        """
        params = self.sessions[session_id]
        if amount_subtotal is None:
            amount_subtotal = sum(
                line["price_data"]["unit_amount"] * line["quantity"]
                for line in params["line_items"]
            )
        if amount_total is None:
            amount_total = amount_subtotal

        return self.build_event(CHECKOUT_SESSION_COMPLETED, {
            "id": session_id,
            "object": "checkout.session",
            "amount_subtotal": amount_subtotal,
            "amount_total": amount_total,
            "payment_intent": payment_intent or f"pi_test_{uuid.uuid4().hex[:24]}",
            "payment_status": "paid",
            "metadata": params["metadata"],
        })
