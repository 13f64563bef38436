"""Helpers shared by the payment webhook verifiers"""

from typing import Any, Callable, Dict, Optional

from orjson import JSONDecodeError, loads

from app.core.logger import webhook_logger
from app.schemas.verification import VerificationFailure, WebhookResult

EventFields = Callable[[Dict[str, Any]], tuple]


def failure(provider: str, reason: VerificationFailure) -> WebhookResult:
    return WebhookResult(provider=provider, authentic=False, reason=reason)


def decode_event(
        provider: str,
        raw_body: bytes,
        extract: EventFields,
        dev_bypass: bool = False
) -> WebhookResult:
    """
    Parse an already authenticated body and classify the event

    Must only be called after the signature comparison (or the explicit dev
    bypass): the raw bytes are parsed once and never re-serialized.

    Args:
        provider: Provider name for the result
        raw_body: Exact request body
        extract: Returns (event_type, event_id) from the decoded object
        dev_bypass: Body was accepted without a signature check

    Returns:
        WebhookResult, malformed_input if the body is not a JSON object
        carrying an event type
    """
    try:
        payload = loads(raw_body)
    except JSONDecodeError:
        return failure(provider, VerificationFailure.MALFORMED_INPUT)

    if not isinstance(payload, dict):
        return failure(provider, VerificationFailure.MALFORMED_INPUT)

    event_type, event_id = extract(payload)
    if not isinstance(event_type, str) or not event_type:
        return failure(provider, VerificationFailure.MALFORMED_INPUT)

    return WebhookResult(
        provider=provider,
        authentic=True,
        event_type=event_type,
        event_id=event_id,
        payload=payload,
        notes=["unverified_dev_mode"] if dev_bypass else [],
        dev_bypass=dev_bypass
    )


def dev_bypass(provider: str, raw_body: bytes, extract: EventFields) -> WebhookResult:
    webhook_logger.warning(f"{provider} webhook accepted without verification: secret unset, dev mode on")
    return decode_event(provider, raw_body, extract, dev_bypass=True)


def as_event_id(value: Optional[Any]) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)
