"""Verification of streaming provider webhook signatures.

The provider signs each delivery with a header of the form::

    Webhook-Signature: time=1230811200,sig1=60493ec9388b...

where ``sig1`` is the hex HMAC-SHA256 of ``"{time}.{raw body}"`` keyed with
the webhook secret.
"""

import hashlib
import hmac
import time

from src.domain.exceptions import WebhookSignatureException


def parse_signature_header(header: str) -> tuple[int, str]:
    """Split a signature header into its timestamp and signature.

    Args:
        header: Raw header value.

    Returns:
        Tuple of (unix timestamp, hex signature).

    Raises:
        WebhookSignatureException: If either part is missing or malformed.
    """
    fields: dict[str, str] = {}
    for part in header.split(","):
        key, sep, value = part.strip().partition("=")
        if sep:
            fields[key] = value

    timestamp, signature = fields.get("time"), fields.get("sig1")
    if not timestamp or not signature:
        raise WebhookSignatureException("malformed signature header")
    try:
        return int(timestamp), signature
    except ValueError as e:
        raise WebhookSignatureException("malformed signature timestamp") from e


def compute_signature(secret: str, timestamp: int, body: bytes) -> str:
    """Hex HMAC-SHA256 of ``"{timestamp}.{body}"``."""
    message = f"{timestamp}.".encode() + body
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    body: bytes,
    header: str | None,
    secret: str,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Verify a webhook delivery or raise.

    Args:
        body: Raw request body, exactly as received.
        header: Value of the Webhook-Signature header.
        secret: Shared webhook secret.
        tolerance_seconds: Maximum allowed clock distance of the timestamp.
        now: Current unix time, for tests.

    Raises:
        WebhookSignatureException: If the header is missing, malformed,
            outside the tolerance window, or does not match.
    """
    if not header:
        raise WebhookSignatureException("missing signature header")

    timestamp, signature = parse_signature_header(header)
    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance_seconds:
        raise WebhookSignatureException("timestamp outside tolerance window")

    expected = compute_signature(secret, timestamp, body)
    if not hmac.compare_digest(expected, signature.lower()):
        raise WebhookSignatureException("signature mismatch")
