from typing import Optional
from pydantic import BaseModel


class WebhookAck(BaseModel):
    """Acknowledgement returned to the payment provider"""

    received: bool = True
    provider: str
    event_type: str
    event_id: Optional[str] = None
    duplicate: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "received": True,
                "provider": "paystack",
                "event_type": "charge.success",
                "event_id": "302961",
                "duplicate": False
            }
        }
