from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from app.core.config import Settings, get_settings
from app.core.dependencies import get_payment_processor
from app.core.logger import webhook_logger
from app.core.responses import (
    error_response,
    server_error_response,
    success_response,
    verification_failure_response,
)
from app.schemas.verification import WebhookResult
from app.services.payments import PaymentEventProcessor
from app.verifiers import verify_paystack_event, verify_stripe_event

router = APIRouter()


async def _handle(
        request: Request,
        result: WebhookResult,
        processor: Optional[PaymentEventProcessor]
):
    if not result.authentic:
        client = request.client.host if request.client else "unknown"
        webhook_logger.warning(f"{result.provider} webhook rejected ({result.reason.value}) from {client}")
        return verification_failure_response(result)

    if processor is None:
        webhook_logger.error(f"{result.provider} event {result.event_id} verified but storage is unavailable")
        return error_response(message="storage_unavailable", status_code=503)

    try:
        ack = await processor.process(result)
    except Exception as e:
        webhook_logger.exception(f"Error processing {result.provider} event {result.event_id}: {e}")
        return server_error_response()

    return success_response(message="received", data=ack)


@router.post(path="/stripe")
async def stripe_webhook(
        request: Request,
        stripe_signature: Optional[str] = Header(None),
        settings: Settings = Depends(get_settings),
        processor: Optional[PaymentEventProcessor] = Depends(get_payment_processor)
):
    """
    Stripe webhook endpoint

    Security: Stripe-Signature (timestamped HMAC-SHA256) over the raw body
    """
    raw_body = await request.body()

    result = verify_stripe_event(
        raw_body,
        stripe_signature,
        settings.stripe_webhook_secret,
        tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        dev_mode=settings.SIGNATURE_DEV_MODE
    )

    return await _handle(request, result, processor)


@router.post(path="/paystack")
async def paystack_webhook(
        request: Request,
        x_paystack_signature: Optional[str] = Header(None),
        settings: Settings = Depends(get_settings),
        processor: Optional[PaymentEventProcessor] = Depends(get_payment_processor)
):
    """
    Paystack webhook endpoint

    Security: X-Paystack-Signature (HMAC-SHA512) over the raw body
    """
    raw_body = await request.body()

    result = verify_paystack_event(
        raw_body,
        x_paystack_signature,
        settings.paystack_secret_key,
        dev_mode=settings.SIGNATURE_DEV_MODE
    )

    return await _handle(request, result, processor)
