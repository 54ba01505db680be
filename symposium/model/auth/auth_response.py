from pydantic import BaseModel
from typing import Optional


class AuthCheckResponse(BaseModel):
    allowed: bool
    message: Optional[str] = None
