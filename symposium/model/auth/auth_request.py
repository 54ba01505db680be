from pydantic import BaseModel
from typing import Optional


class AuthCheckRequest(BaseModel):
    email: Optional[str] = None
