"""Paystack webhook verification (raw body HMAC-SHA512)"""

from hashlib import sha512
from typing import Any, Dict, Optional, Tuple

from app.core.security import hmac_hexdigest, signatures_match
from app.schemas.verification import VerificationFailure, WebhookResult
from app.verifiers.webhook import as_event_id, decode_event, dev_bypass, failure

PROVIDER: str = "paystack"
SIGNATURE_HEADER: str = "X-Paystack-Signature"


def compute_signature(raw_body: bytes, signing_secret: str) -> str:
    return hmac_hexdigest(signing_secret, raw_body, sha512)


def _event_fields(payload: Dict[str, Any]) -> Tuple[Any, Optional[str]]:
    data = payload.get("data")
    event_id = None

    if isinstance(data, dict):
        event_id = as_event_id(data.get("id")) or as_event_id(data.get("reference"))

    return payload.get("event"), event_id


def verify_paystack_event(
        raw_body: bytes,
        signature_header: Optional[str],
        signing_secret: Optional[str],
        *,
        dev_mode: bool = False
) -> WebhookResult:
    """
    Verify a Paystack webhook delivery

    Args:
        raw_body: Untouched request body
        signature_header: X-Paystack-Signature header value
        signing_secret: Paystack secret key
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

    if not signatures_match(compute_signature(raw_body, signing_secret), signature_header):
        return failure(PROVIDER, VerificationFailure.INVALID_SIGNATURE)

    return decode_event(PROVIDER, raw_body, _event_fields)
