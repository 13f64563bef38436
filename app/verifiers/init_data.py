"""Telegram Mini App initData verification"""

from hashlib import sha256
from hmac import new
from time import time
from typing import Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl

from aiogram.utils.web_app import WebAppUser
from orjson import loads

from app.core.logger import auth_logger
from app.core.security import hmac_hexdigest, parse_unix_time, signatures_match
from app.schemas.verification import InitDataResult, VerificationFailure

SECRET_KEY_SEED: bytes = b"WebAppData"
HASH_FIELD: str = "hash"
USER_FIELD: str = "user"


def parse_init_data(init_data: str) -> List[Tuple[str, str]]:
    """
    Parse initData query string into ordered key/value pairs

    Blank values and repeated keys are kept, the same way the client's
    URLSearchParams sees them.
    """
    return parse_qsl(init_data, keep_blank_values=True)


def build_data_check_string(pairs: Iterable[Tuple[str, str]]) -> str:
    """
    Build the canonical string the client signed

    Args:
        pairs: Key/value pairs without the hash field

    Returns:
        "key=value" lines sorted as whole strings and joined by newlines
    """
    return "\n".join(sorted(f"{key}={value}" for key, value in pairs))


def derive_secret_key(bot_token: str) -> bytes:
    return new(SECRET_KEY_SEED, bot_token.encode("utf-8"), sha256).digest()


def sign_init_data(pairs: Iterable[Tuple[str, str]], bot_token: str) -> str:
    """Hex hash for the given pairs, as computed by Telegram"""
    return hmac_hexdigest(
        derive_secret_key(bot_token),
        build_data_check_string(pairs),
        sha256
    )


def _decode_user(raw_user: str) -> WebAppUser:
    return WebAppUser.model_validate(loads(raw_user))


def verify_init_data(
        init_data: Optional[str],
        bot_token: Optional[str],
        *,
        max_age: Optional[int] = None,
        now: Optional[float] = None,
        dev_mode: bool = False
) -> InitDataResult:
    """
    Verify Telegram Mini App initData

    Args:
        init_data: Raw Telegram.WebApp.initData string
        bot_token: Bot token the data was signed for
        max_age: Reject data whose auth_date is older than this (seconds)
        now: Current unix time, defaults to time()
        dev_mode: Accept unsigned data when no bot token is configured

    Returns:
        InitDataResult with the decoded user on success
    """
    if not bot_token and not dev_mode:
        return InitDataResult(authentic=False, reason=VerificationFailure.NOT_CONFIGURED)

    if not init_data or not init_data.strip():
        return InitDataResult(authentic=False, reason=VerificationFailure.MALFORMED_INPUT)

    pairs = parse_init_data(init_data)
    if not pairs:
        return InitDataResult(authentic=False, reason=VerificationFailure.MALFORMED_INPUT)

    received_hash = next((value for key, value in pairs if key == HASH_FIELD), None)
    data_pairs = [(key, value) for key, value in pairs if key != HASH_FIELD]
    notes: List[str] = []

    if not bot_token:
        auth_logger.warning("initData accepted without verification: BOT_TOKEN unset, dev mode on")
        notes.append("unverified_dev_mode")
    else:
        if not received_hash:
            return InitDataResult(authentic=False, reason=VerificationFailure.MISSING_SIGNATURE)

        if not signatures_match(sign_init_data(data_pairs, bot_token), received_hash):
            return InitDataResult(authentic=False, reason=VerificationFailure.INVALID_SIGNATURE)

    fields = dict(data_pairs)

    auth_date: Optional[int] = None
    if "auth_date" in fields:
        auth_date = parse_unix_time(fields["auth_date"])
        if auth_date is None:
            if max_age is not None:
                return InitDataResult(authentic=False, reason=VerificationFailure.MALFORMED_INPUT)
            notes.append("auth_date_invalid")

    if max_age is not None:
        if auth_date is None:
            return InitDataResult(authentic=False, reason=VerificationFailure.MALFORMED_INPUT)

        current = time() if now is None else now
        if current - auth_date > max_age:
            return InitDataResult(authentic=False, reason=VerificationFailure.EXPIRED)

    user: Optional[WebAppUser] = None
    if raw_user := fields.get(USER_FIELD):
        try:
            user = _decode_user(raw_user)
        except ValueError as e:
            auth_logger.info(f"initData user field could not be decoded: {type(e).__name__}")
            notes.append("user_decode_failed")

    return InitDataResult(
        authentic=True,
        user=user,
        fields=fields,
        auth_date=auth_date,
        notes=notes,
        dev_bypass=not bot_token
    )
