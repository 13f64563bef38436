from enum import Enum
from typing import Any, Dict, List, Optional

from aiogram.utils.web_app import WebAppUser
from pydantic import BaseModel, ConfigDict


class VerificationFailure(str, Enum):
    """Why a payload was not accepted"""

    MALFORMED_INPUT = "malformed_input"
    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"
    NOT_CONFIGURED = "not_configured"
    STALE_DELIVERY = "stale_delivery"
    EXPIRED = "expired"


class VerificationResult(BaseModel):
    """Outcome of a single verification attempt"""

    authentic: bool
    reason: Optional[VerificationFailure] = None
    notes: List[str] = []
    dev_bypass: bool = False

    model_config = ConfigDict(frozen=True)


class InitDataResult(VerificationResult):
    """Telegram Mini App initData verification outcome"""

    user: Optional[WebAppUser] = None
    fields: Dict[str, str] = {}
    auth_date: Optional[int] = None


class WebhookResult(VerificationResult):
    """Payment webhook verification outcome"""

    provider: str
    event_type: Optional[str] = None
    event_id: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
