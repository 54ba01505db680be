from pydantic import BaseModel, Field
from typing import Optional


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    content: str = Field(..., description="Assistant reply text")
    cost_cents: int = Field(..., ge=0)
    usage: TokenUsage
    persona_name: Optional[str] = None


class ChatSkippedResponse(BaseModel):
    content: None = None
    should_respond: bool = False
