"""
Pydantic Processor Event Models

Only parsed after the webhook signature has been verified. The event
envelope is kept loose; the checkout session object is validated when the
event type is one we act on.
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class EventData(BaseModel):
    """Event payload wrapper; object is the affected processor resource."""
    object: Dict[str, Any]


class ProcessorEvent(BaseModel):
    """Signed webhook event envelope."""
    id: Optional[str] = None
    type: str
    data: EventData

    model_config = {"extra": "ignore"}


class CheckoutSessionObject(BaseModel):
    """
    Completed checkout session.

    Amounts are in cents. metadata carries order_id and user_uid as set
    when the session was created.
    """
    id: str
    metadata: Dict[str, str] = Field(default_factory=dict)
    amount_total: Optional[int] = None
    amount_subtotal: Optional[int] = None
    payment_intent: Optional[str] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def metadata_default(cls, v):
        return v or {}

    model_config = {"extra": "ignore"}
