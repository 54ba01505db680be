from pydantic import BaseModel, Field
from typing import Optional


class ChatRequest(BaseModel):
    # Presence is checked by the handler so that a missing field is a 400, not a 422.
    roomId: Optional[str] = Field(None, description="Room the message was posted in")
    message: Optional[str] = Field(None, description="Raw text of the new user message")
    aiModel: Optional[str] = Field(None, description="Completion model; falls back to the room's model")
