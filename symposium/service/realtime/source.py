import asyncio
from typing import Optional

from symposium.model.message.message_response import MessageResponse
from symposium.model.room.room_response import ParticipantResponse
from symposium.service.room.store import RoomStore


class StoreSyncSource:
    """Reads the room state a RoomSync needs from the store, as JSON-ready dicts."""

    def __init__(self, store: RoomStore):
        self.store = store

    async def fetch_messages(self, room_id: str) -> list[dict]:
        rows = await asyncio.to_thread(self.store.list_messages, room_id)
        return [MessageResponse.model_validate(row).model_dump(mode="json") for row in rows]

    async def fetch_participants(self, room_id: str) -> list[dict]:
        rows = await asyncio.to_thread(self.store.list_participants, room_id)
        return [ParticipantResponse.model_validate(row).model_dump(mode="json") for row in rows]

    async def fetch_message(self, room_id: str, message_id: int) -> Optional[dict]:
        row = await asyncio.to_thread(self.store.get_message, room_id, message_id)
        if row is None:
            return None
        return MessageResponse.model_validate(row).model_dump(mode="json")
