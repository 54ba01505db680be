from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from symposium.model.message.message_response import MessageResponse, ProfileResponse


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    host_user_id: str
    ai_model: str
    payment_model: str
    max_participants: int
    persona_type: str
    persona_name: Optional[str] = None
    persona_description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: str
    user_id: str
    joined_at: datetime
    is_active: bool
    profile: Optional[ProfileResponse] = None


class UserRoomResponse(RoomResponse):
    participant_count: int
    last_message: Optional[MessageResponse] = None
    last_activity: datetime


class PersonaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
