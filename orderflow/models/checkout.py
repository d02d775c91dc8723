"""
Pydantic Checkout Request Models

Validates the storefront payload before any field is used. Client-side
prices and any other extra fields are ignored; only product ids and
quantities are taken from the cart.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from ..services.pricing import coerce_quantity


class CartEntry(BaseModel):
    """One cart line as submitted by the client."""
    id: Optional[str] = None
    quantity: int = 1

    @field_validator("quantity", mode="before")
    @classmethod
    def clamp_quantity(cls, v) -> int:
        """Zero, negative and non-numeric quantities become at least 1."""
        return coerce_quantity(v)

    model_config = {"extra": "ignore"}


class BuyerIdentity(BaseModel):
    """Authenticated storefront user placing the order."""
    uid: str = Field(min_length=1)
    email: str = Field(min_length=1)
    name: Optional[str] = None

    model_config = {"extra": "ignore", "str_strip_whitespace": True}


class CheckoutRequest(BaseModel):
    """
    Body of POST /api/checkout.

    Example:
        {"cart": [{"id": "prod_soap_001", "quantity": 2}],
         "user": {"uid": "u_123", "email": "ana@example.com"}}
    """
    cart: List[CartEntry]
    user: BuyerIdentity

    model_config = {
        "extra": "ignore",
        "json_schema_extra": {
            "example": {
                "cart": [{"id": "prod_soap_001", "quantity": 2}],
                "user": {"uid": "u_123", "email": "ana@example.com", "name": "Ana"}
            }
        }
    }


class CheckoutResponse(BaseModel):
    """Redirect target returned to the storefront."""
    url: str
