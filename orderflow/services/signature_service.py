"""
Webhook Signature Service

Produces Stripe-compatible webhook signatures for events emitted by the
fake processor. Header format: "t=<unix timestamp>,v1=<hex HMAC-SHA256>",
where the HMAC covers "<timestamp>.<raw body>". Verification of incoming
webhooks is done by the stripe library, so anything signed here verifies
exactly like a real Stripe delivery.
"""
import hmac
import hashlib
import json
import time
from typing import Any, Dict, Optional, Union


def create_canonical_json(data: Dict[str, Any]) -> str:
    """
    Serialize an event body deterministically.

    Sorted keys and no whitespace keep the signed bytes reproducible.
    """
    return json.dumps(data, sort_keys=True, separators=(',', ':'))


def compute_signature(payload: str, timestamp: int, secret: str) -> str:
    """
    Compute the v1 signature for a payload.

    Args:
        payload: Raw request body as sent
        timestamp: Unix timestamp included in the header
        secret: Webhook signing secret (whsec_...)

    Returns:
        Hexadecimal HMAC-SHA256 digest
    """
    signed_payload = f"{timestamp}.{payload}"
    return hmac.new(
        secret.encode('utf-8'),
        signed_payload.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()


def sign_payload(
    payload: Union[str, bytes],
    secret: str,
    timestamp: Optional[int] = None
) -> str:
    """
    Build a Stripe-Signature header value for a payload.

    A stale timestamp can be passed to exercise the tolerance window.
    """
    if isinstance(payload, bytes):
        payload = payload.decode('utf-8')
    timestamp = int(time.time()) if timestamp is None else timestamp
    return f"t={timestamp},v1={compute_signature(payload, timestamp, secret)}"
