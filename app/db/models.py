from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel


class ProfileModel(BaseModel):
    """Profile database model"""

    telegram_id: int
    display_name: Optional[str] = None
    age: Optional[int] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentEventModel(BaseModel):
    """Verified payment webhook event"""

    provider: str
    event_id: str
    event_type: str
    payload: Dict[str, Any]
    received_at: Optional[datetime] = None

    class Config:
        from_attributes = True
