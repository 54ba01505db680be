from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class RoomCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    host_user_id: str = Field(..., min_length=1)
    ai_model: Literal["gpt-4.1", "gpt-4.1-mini", "o4-mini"] = "gpt-4.1"
    payment_model: Literal["host_pays", "shared_pool", "per_message"] = "host_pays"
    max_participants: int = Field(5, ge=1, le=50)
    persona_type: Literal["none", "preset", "custom"] = "none"
    persona_name: Optional[str] = None
    persona_description: Optional[str] = None

    @model_validator(mode="after")
    def check_persona(self) -> "RoomCreateRequest":
        if self.persona_type == "preset" and not self.persona_name:
            raise ValueError("preset persona requires persona_name")
        if self.persona_type == "custom" and not (self.persona_name and self.persona_description):
            raise ValueError("custom persona requires persona_name and persona_description")
        if self.persona_type == "none":
            self.persona_name = None
            self.persona_description = None
        return self


class EnterRoomRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class ProfileRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
