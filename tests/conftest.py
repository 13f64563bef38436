"""Shared signing helpers and app fixtures."""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterator
from urllib.parse import urlencode

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings, get_settings
from app.core.dependencies import get_payment_processor, get_profile_store
from app.main import app
from app.services.payments import PaymentEventProcessor
from tests.fakes import MemoryPaymentEventStore, MemoryProfileStore

BOT_TOKEN = "123456:test-bot-token"
STRIPE_SECRET = "whsec_stripe_test"
PAYSTACK_SECRET = "sk_test_paystack"


def reference_init_data_hash(pairs: list[tuple[str, str]], bot_token: str) -> str:
    """Telegram's documented two step HMAC-SHA256, computed independently."""
    check_string = "\n".join(sorted(f"{k}={v}" for k, v in pairs))
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    return hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()


def signed_init_data(pairs: list[tuple[str, str]], bot_token: str = BOT_TOKEN) -> str:
    digest = reference_init_data_hash(pairs, bot_token)
    return urlencode([*pairs, ("hash", digest)])


def stripe_header(body: bytes, secret: str = STRIPE_SECRET, timestamp: int = 1_700_000_000) -> str:
    signed = f"{timestamp}.".encode() + body
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def paystack_signature(body: bytes, secret: str = PAYSTACK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "BOT_TOKEN": BOT_TOKEN,
        "STRIPE_WEBHOOK_SECRET": STRIPE_SECRET,
        "PAYSTACK_SECRET_KEY": PAYSTACK_SECRET,
        "INIT_DATA_MAX_AGE": 0,
        "STRIPE_WEBHOOK_TOLERANCE": 0,
        "SIGNATURE_DEV_MODE": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def profile_store() -> MemoryProfileStore:
    return MemoryProfileStore()


@pytest.fixture
def event_store() -> MemoryPaymentEventStore:
    return MemoryPaymentEventStore()


@pytest.fixture
def client(profile_store: MemoryProfileStore, event_store: MemoryPaymentEventStore) -> Iterator[TestClient]:
    processor = PaymentEventProcessor(event_store)
    app.dependency_overrides[get_settings] = lambda: make_settings()
    app.dependency_overrides[get_profile_store] = lambda: profile_store
    app.dependency_overrides[get_payment_processor] = lambda: processor
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
