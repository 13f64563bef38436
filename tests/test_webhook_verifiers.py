"""Stripe and Paystack webhook verification."""

from __future__ import annotations

import hashlib
import hmac
import json

import pytest

from app.schemas.verification import VerificationFailure
from app.verifiers.paystack import verify_paystack_event
from app.verifiers.stripe import parse_signature_header, verify_stripe_event
from tests.conftest import PAYSTACK_SECRET, STRIPE_SECRET, paystack_signature, stripe_header

NOW = 1_700_000_000
STRIPE_BODY = b'{"id":"evt_1","type":"checkout.session.completed","data":{"object":{"id":"cs_1"}}}'
PAYSTACK_BODY = b'{"event":"charge.success","data":{"id":302961,"reference":"ref_1"}}'


# ---------------------------------------------------------------- stripe


def test_stripe_valid_event() -> None:
    result = verify_stripe_event(STRIPE_BODY, stripe_header(STRIPE_BODY, timestamp=NOW), STRIPE_SECRET, now=NOW)

    assert result.authentic is True
    assert result.provider == "stripe"
    assert result.event_type == "checkout.session.completed"
    assert result.event_id == "evt_1"
    assert result.payload["data"]["object"]["id"] == "cs_1"


def test_stripe_accepts_any_matching_v1_signature() -> None:
    valid = stripe_header(STRIPE_BODY, timestamp=NOW).split("v1=")[1]
    header = f"t={NOW},v1={'0' * 64},v0=legacy,v1={valid}"

    assert verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, now=NOW).authentic is True


def test_stripe_rejects_signature_for_other_secret() -> None:
    header = stripe_header(STRIPE_BODY, secret="whsec_other", timestamp=NOW)

    result = verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, now=NOW)

    assert result.reason is VerificationFailure.INVALID_SIGNATURE


def test_stripe_rejects_modified_body() -> None:
    header = stripe_header(STRIPE_BODY, timestamp=NOW)
    reserialized = json.dumps(json.loads(STRIPE_BODY)).encode()

    result = verify_stripe_event(reserialized, header, STRIPE_SECRET, now=NOW)

    assert result.reason is VerificationFailure.INVALID_SIGNATURE


def test_stripe_timestamp_is_part_of_signature() -> None:
    header = stripe_header(STRIPE_BODY, timestamp=NOW).replace(f"t={NOW}", f"t={NOW + 1}")

    assert verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, now=NOW).reason is VerificationFailure.INVALID_SIGNATURE


def test_stripe_stale_delivery() -> None:
    header = stripe_header(STRIPE_BODY, timestamp=NOW - 301)

    result = verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, tolerance=300, now=NOW)

    assert result.reason is VerificationFailure.STALE_DELIVERY


def test_stripe_tolerance_disabled() -> None:
    header = stripe_header(STRIPE_BODY, timestamp=NOW - 86_400)

    assert verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, tolerance=None, now=NOW).authentic is True


@pytest.mark.parametrize("header", [None, "", "  "])
def test_stripe_missing_header(header: str | None) -> None:
    assert verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET).reason is VerificationFailure.MISSING_SIGNATURE


def test_stripe_header_without_v1() -> None:
    header = f"t={NOW},v0=abc"

    assert verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET).reason is VerificationFailure.MISSING_SIGNATURE


@pytest.mark.parametrize("header", ["v1=abc", "t=soon,v1=abc", "garbage"])
def test_stripe_header_without_usable_timestamp(header: str) -> None:
    assert verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET).reason is VerificationFailure.MALFORMED_INPUT


@pytest.mark.parametrize("secret", [None, ""])
def test_stripe_not_configured(secret: str | None) -> None:
    header = stripe_header(STRIPE_BODY, timestamp=NOW)

    result = verify_stripe_event(STRIPE_BODY, header, secret, now=NOW)

    assert result.authentic is False
    assert result.reason is VerificationFailure.NOT_CONFIGURED


def test_stripe_dev_mode_bypass_is_labelled() -> None:
    result = verify_stripe_event(STRIPE_BODY, None, None, dev_mode=True)

    assert result.authentic is True
    assert result.dev_bypass is True
    assert result.notes == ["unverified_dev_mode"]


def test_stripe_dev_mode_does_not_relax_configured_secret() -> None:
    assert verify_stripe_event(STRIPE_BODY, None, STRIPE_SECRET, dev_mode=True).reason is VerificationFailure.MISSING_SIGNATURE


def test_stripe_signed_body_without_type_is_malformed() -> None:
    body = b'{"id":"evt_1"}'

    result = verify_stripe_event(body, stripe_header(body, timestamp=NOW), STRIPE_SECRET, now=NOW)

    assert result.reason is VerificationFailure.MALFORMED_INPUT


@pytest.mark.parametrize("raw_timestamp", ["1_700_000_000", "+1700000000", "\u0661\u0667\u0660\u0660\u0660\u0660\u0660\u0660\u0660\u0660"])
def test_stripe_timestamp_must_be_plain_digits(raw_timestamp: str) -> None:
    # signed over the same raw string, so only the format check can reject it
    signed = raw_timestamp.encode() + b"." + STRIPE_BODY
    digest = hmac.new(STRIPE_SECRET.encode(), signed, hashlib.sha256).hexdigest()
    header = f"t={raw_timestamp},v1={digest}"

    result = verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, tolerance=None, now=NOW)

    assert result.authentic is False
    assert result.reason is VerificationFailure.MALFORMED_INPUT


def test_stripe_verification_is_idempotent() -> None:
    header = stripe_header(STRIPE_BODY, timestamp=NOW)

    first = verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, now=NOW)
    second = verify_stripe_event(STRIPE_BODY, header, STRIPE_SECRET, now=NOW)

    assert first == second
    assert first.authentic is True


def test_parse_signature_header() -> None:
    assert parse_signature_header("t=1,v1=aa, v1=bb ,v0=cc,junk") == ("1", ["aa", "bb"])


# ---------------------------------------------------------------- paystack


def test_paystack_known_body_vector() -> None:
    body = b'{"event":"charge.success"}'
    exact = hmac.new(b"whsec_test", body, hashlib.sha512).hexdigest()
    respaced = hmac.new(b"whsec_test", b'{"event": "charge.success"}', hashlib.sha512).hexdigest()

    accepted = verify_paystack_event(body, exact, "whsec_test")
    rejected = verify_paystack_event(body, respaced, "whsec_test")

    assert accepted.authentic is True
    assert accepted.event_type == "charge.success"
    assert accepted.event_id is None
    assert rejected.reason is VerificationFailure.INVALID_SIGNATURE


def test_paystack_valid_event_extracts_id() -> None:
    result = verify_paystack_event(PAYSTACK_BODY, paystack_signature(PAYSTACK_BODY), PAYSTACK_SECRET)

    assert result.authentic is True
    assert result.provider == "paystack"
    assert result.event_id == "302961"
    assert result.payload == json.loads(PAYSTACK_BODY)


def test_paystack_falls_back_to_reference() -> None:
    body = b'{"event":"transfer.success","data":{"reference":"ref_9"}}'

    result = verify_paystack_event(body, paystack_signature(body), PAYSTACK_SECRET)

    assert result.event_id == "ref_9"


def test_paystack_uppercase_hex_signature_is_accepted() -> None:
    signature = paystack_signature(PAYSTACK_BODY).upper()

    assert verify_paystack_event(PAYSTACK_BODY, signature, PAYSTACK_SECRET).authentic is True


def test_paystack_sha256_signature_is_rejected() -> None:
    signature = hmac.new(PAYSTACK_SECRET.encode(), PAYSTACK_BODY, hashlib.sha256).hexdigest()

    assert verify_paystack_event(PAYSTACK_BODY, signature, PAYSTACK_SECRET).reason is VerificationFailure.INVALID_SIGNATURE


def test_paystack_missing_header() -> None:
    assert verify_paystack_event(PAYSTACK_BODY, None, PAYSTACK_SECRET).reason is VerificationFailure.MISSING_SIGNATURE


@pytest.mark.parametrize("secret", [None, ""])
def test_paystack_not_configured(secret: str | None) -> None:
    result = verify_paystack_event(PAYSTACK_BODY, paystack_signature(PAYSTACK_BODY), secret)

    assert result.authentic is False
    assert result.reason is VerificationFailure.NOT_CONFIGURED


def test_paystack_dev_mode_bypass_is_labelled() -> None:
    result = verify_paystack_event(PAYSTACK_BODY, None, None, dev_mode=True)

    assert result.authentic is True
    assert result.dev_bypass is True
    assert result.notes == ["unverified_dev_mode"]
    assert result.event_id == "302961"


def test_paystack_dev_mode_does_not_relax_configured_secret() -> None:
    result = verify_paystack_event(PAYSTACK_BODY, "0" * 128, PAYSTACK_SECRET, dev_mode=True)

    assert result.reason is VerificationFailure.INVALID_SIGNATURE
    assert result.dev_bypass is False


@pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"data":{}}', b""])
def test_paystack_signed_but_unusable_body_is_malformed(body: bytes) -> None:
    result = verify_paystack_event(body, paystack_signature(body), PAYSTACK_SECRET)

    assert result.reason is VerificationFailure.MALFORMED_INPUT


def test_paystack_body_is_not_parsed_before_signature_check() -> None:
    # invalid JSON with a bad signature reports the signature, not the JSON
    assert verify_paystack_event(b"not json", "00", PAYSTACK_SECRET).reason is VerificationFailure.INVALID_SIGNATURE


def test_paystack_verification_is_idempotent() -> None:
    signature = paystack_signature(PAYSTACK_BODY)

    first = verify_paystack_event(PAYSTACK_BODY, signature, PAYSTACK_SECRET)
    second = verify_paystack_event(PAYSTACK_BODY, signature, PAYSTACK_SECRET)

    assert first == second
