"""
Pydantic Order Document Model

The aliased field names (userUID, stripeSessionId, ...) are the document
shape read by reporting and the storefront order page. Amounts are rendered
as two-decimal numbers.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional
from pydantic import BaseModel, Field, PlainSerializer

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

OrderStatus = Literal["pending", "paid"]


class OrderItem(BaseModel):
    """Name and price snapshot of a product at order time."""
    product_id: str = Field(alias="productId")
    name: str
    qty: int = Field(gt=0)
    price: Money

    model_config = {"populate_by_name": True}


class Order(BaseModel):
    """
    Order document.

    Lifecycle:
    - pending: created at checkout, taxes and total still zero
    - paid: set once by the webhook with processor-reported totals
    """
    id: str
    user_uid: str = Field(alias="userUID")
    user_email: str = Field(alias="userEmail")
    user_name: str = Field(alias="userName")
    date: str
    items: List[OrderItem]
    subtotal: Money
    tps: Money = Decimal("0.00")
    tvq: Money = Decimal("0.00")
    taxes: Money = Decimal("0.00")
    total: Money = Decimal("0.00")
    status: OrderStatus
    stripe_session_id: Optional[str] = Field(default=None, alias="stripeSessionId")
    stripe_payment_intent_id: Optional[str] = Field(default=None, alias="stripePaymentIntentId")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    paid_at: Optional[datetime] = Field(default=None, alias="paidAt")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "id": "ord_3f9c2a7b1d4e5f60a1b2",
                "userUID": "u_123",
                "userEmail": "ana@example.com",
                "userName": "Ana",
                "date": "2026-10-19",
                "items": [{"productId": "prod_soap_001", "name": "Savon artisanal camomille", "qty": 2, "price": 9.99}],
                "subtotal": 19.98,
                "tps": 0,
                "tvq": 0,
                "taxes": 2.6,
                "total": 22.58,
                "status": "paid",
                "stripeSessionId": "cs_test_a1b2c3",
                "stripePaymentIntentId": "pi_3N2b",
                "createdAt": "2026-10-19T14:30:00",
                "paidAt": "2026-10-19T14:32:10"
            }
        }
    }
