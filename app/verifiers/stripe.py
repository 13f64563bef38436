"""Stripe webhook verification (Stripe-Signature scheme)"""

from hashlib import sha256
from time import time
from typing import Any, Dict, List, Optional, Tuple

from app.core.security import hmac_hexdigest, parse_unix_time, signatures_match
from app.schemas.verification import VerificationFailure, WebhookResult
from app.verifiers.webhook import as_event_id, decode_event, dev_bypass, failure

PROVIDER: str = "stripe"
SIGNATURE_HEADER: str = "Stripe-Signature"
SIGNATURE_SCHEME: str = "v1"
DEFAULT_TOLERANCE: int = 300


def parse_signature_header(header: str) -> Tuple[Optional[str], List[str]]:
    """
    Split a Stripe-Signature header

    Example:
        "t=1492774577,v1=5257a8...,v0=6ffbb5..." -> ("1492774577", ["5257a8..."])

    Returns:
        (raw timestamp or None, signatures for the v1 scheme)
    """
    timestamp: Optional[str] = None
    signatures: List[str] = []

    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue

        if key == "t" and timestamp is None:
            timestamp = value
        elif key == SIGNATURE_SCHEME:
            signatures.append(value)

    return timestamp, signatures


def compute_signature(timestamp: str, raw_body: bytes, signing_secret: str) -> str:
    """HMAC-SHA256 over "<timestamp>.<raw body>" keyed by the endpoint secret"""
    return hmac_hexdigest(signing_secret, timestamp.encode("utf-8") + b"." + raw_body, sha256)


def _event_fields(payload: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
    return payload.get("type"), as_event_id(payload.get("id"))


def verify_stripe_event(
        raw_body: bytes,
        signature_header: Optional[str],
        signing_secret: Optional[str],
        *,
        tolerance: Optional[int] = DEFAULT_TOLERANCE,
        now: Optional[float] = None,
        dev_mode: bool = False
) -> WebhookResult:
    """
    Verify a Stripe webhook delivery

    Args:
        raw_body: Untouched request body
        signature_header: Stripe-Signature header value
        signing_secret: Endpoint signing secret (whsec_...)
        tolerance: Maximum delivery age in seconds, None or 0 disables
        now: Current unix time, defaults to time()
        dev_mode: Accept unsigned bodies when no secret is configured

    Returns:
        WebhookResult with the event type, id and payload on success
    """
    if not signing_secret:
        if dev_mode:
            return dev_bypass(PROVIDER, raw_body, _event_fields)
        return failure(PROVIDER, VerificationFailure.NOT_CONFIGURED)

    if not signature_header or not signature_header.strip():
        return failure(PROVIDER, VerificationFailure.MISSING_SIGNATURE)

    raw_timestamp, signatures = parse_signature_header(signature_header)

    timestamp = parse_unix_time(raw_timestamp)
    if timestamp is None:
        return failure(PROVIDER, VerificationFailure.MALFORMED_INPUT)

    if not signatures:
        return failure(PROVIDER, VerificationFailure.MISSING_SIGNATURE)

    expected = compute_signature(raw_timestamp, raw_body, signing_secret)
    if not any(signatures_match(expected, signature) for signature in signatures):
        return failure(PROVIDER, VerificationFailure.INVALID_SIGNATURE)

    current = time() if now is None else now
    if tolerance and timestamp < current - tolerance:
        return failure(PROVIDER, VerificationFailure.STALE_DELIVERY)

    return decode_event(PROVIDER, raw_body, _event_fields)
