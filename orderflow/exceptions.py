"""
Orderflow Exception Hierarchy

Error codes are namespaced by the component that raises them
(checkout:*, webhook:*) so clients can branch on them.
"""
from typing import Optional, Dict, Any


class OrderflowError(Exception):
    """
    Base exception for client-facing checkout and webhook errors.

    Every subclass is a client error: it is raised before any state is
    written and maps to a 400 response.
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API error response format."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details
        }


class InvalidPayloadError(OrderflowError):
    """
    Request body does not match the expected shape.

    Examples:
    - cart is not a list
    - user.uid or user.email missing
    """

    def __init__(self, message: str = "Invalid payload", details: Optional[Dict[str, Any]] = None):
        super().__init__("checkout:payload_invalid", message, details)


class EmptyCartError(OrderflowError):
    """No valid line item remained after filtering the cart."""

    def __init__(self, message: str = "Empty cart", details: Optional[Dict[str, Any]] = None):
        super().__init__("checkout:cart_empty", message, details)


class InsufficientStockError(OrderflowError):
    """
    A product tracks stock and has fewer units than requested.

    The message names the product so the storefront can show it as-is.
    """

    def __init__(self, product_id: str, product_name: str, available: int, requested: int):
        super().__init__(
            "checkout:stock_insufficient",
            f"Insufficient stock: {product_name}",
            {"product_id": product_id, "available": available, "requested": requested}
        )


class SignatureInvalidError(OrderflowError):
    """
    Webhook signature verification failed.

    Examples:
    - Missing Stripe-Signature header
    - HMAC does not match the payload
    - Timestamp outside the tolerance window
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("webhook:signature_invalid", message, details)


class PaymentProcessorError(Exception):
    """
    The payment processor could not be reached or rejected the request.

    This is an infrastructure failure, not a client error.
    """


class ConfigurationError(Exception):
    """
    Settings are missing or unsafe for the selected mode.

    Raised at startup so the service never serves with, for example, an
    unauthenticated webhook endpoint.
    """
