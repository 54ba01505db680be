from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class MessageInserted(BaseModel):
    kind: Literal["message_insert"] = "message_insert"
    room_id: str
    message_id: int


class ParticipantChanged(BaseModel):
    kind: Literal["participant_change"] = "participant_change"
    room_id: str
    user_id: str
    is_active: bool


class TypingBroadcast(BaseModel):
    kind: Literal["typing"] = "typing"
    room_id: str
    user_id: str
    user_name: str
    is_typing: bool


RoomEvent = Annotated[
    Union[MessageInserted, ParticipantChanged, TypingBroadcast],
    Field(discriminator="kind"),
]
room_event_adapter = TypeAdapter(RoomEvent)

_CHANNEL_SUFFIX = {
    "message_insert": "messages",
    "participant_change": "participants",
    "typing": "typing",
}


def channel_for(event) -> str:
    return f"room:{event.room_id}:{_CHANNEL_SUFFIX[event.kind]}"


def room_channels(room_id: str) -> list[str]:
    return [f"room:{room_id}:{suffix}" for suffix in _CHANNEL_SUFFIX.values()]
