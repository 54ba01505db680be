from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: str
    user_id: Optional[str] = None
    content: str
    role: str
    cost_cents: int
    created_at: datetime
    profile: Optional[ProfileResponse] = None


class TurnResponse(BaseModel):
    message: MessageResponse
    reply: Optional[MessageResponse] = None
    should_respond: bool
    cost_cents: int = 0
