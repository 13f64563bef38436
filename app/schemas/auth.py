from typing import Optional
from pydantic import BaseModel, Field


class InitDataRequest(BaseModel):
    """Body of POST /auth/telegram/validate"""

    init_data: Optional[str] = Field(default=None, alias="initData")
