from pydantic import BaseModel, Field


class MessageCreateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
