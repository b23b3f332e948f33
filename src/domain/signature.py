"""
Webhook signature scheme (Stripe).

The gateway sends a header of the form

    Stripe-Signature: t=1717171717,v1=<hex hmac>[,v1=<hex hmac>...]

where each v1 value is HMAC-SHA256(secret, "<t>.<raw body>").  The body is
verified exactly as received; it must not be parsed or re-serialised first.
Verification is done by the Stripe SDK; sign_payload() produces the same
header for the simulator and tests.
"""

import hashlib
import hmac
import time

import stripe

from src.domain.errors import SignatureInvalidError

SCHEME = stripe.WebhookSignature.EXPECTED_SCHEME
DEFAULT_TOLERANCE_SECONDS = 300


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = str(timestamp).encode() + b"." + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def sign_payload(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a signature header value for payload. Used by the simulator and tests."""
    ts = int(time.time()) if timestamp is None else timestamp
    return f"t={ts},{SCHEME}={compute_signature(payload, ts, secret)}"


def verify_signature(
    payload: bytes,
    header: str | None,
    secret: str,
    tolerance: int | None = DEFAULT_TOLERANCE_SECONDS,
) -> None:
    """
    Check header against payload.

    Raises SignatureInvalidError when the header is missing or malformed,
    when no signature matches, or when the timestamp is older than
    `tolerance` seconds (None disables the age check).
    """
    if not header:
        raise SignatureInvalidError("Missing signature header")
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise SignatureInvalidError("Payload is not UTF-8, cannot have been signed") from None

    try:
        stripe.WebhookSignature.verify_header(body, header, secret, tolerance=tolerance)
    except stripe.SignatureVerificationError as exc:
        raise SignatureInvalidError(str(exc)) from exc
