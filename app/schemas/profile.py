from typing import Optional
from pydantic import BaseModel


class ProfileUpdate(BaseModel):
    """Schema for creating or updating a profile"""

    telegram_id: Optional[int] = None
    display_name: Optional[str] = None
    age: Optional[int] = None
    location: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "telegram_id": 123456789,
                "display_name": "Ada",
                "age": 30,
                "location": "Lagos"
            }
        }
