import pytest

import symposium.service.chat.chat as chat_module
from symposium.client.llm.chatgpt import CompletionError
from symposium.model.chat.chat_request import ChatRequest
from symposium.model.chat.chat_response import ChatSkippedResponse
from symposium.model.message.message_request import MessageCreateRequest
from symposium.service.chat.history import HistoryFetchError
from symposium.service.room.store import NotParticipantError, RoomNotFoundError


class RecordingBroker:
    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)


@pytest.mark.asyncio
async def test_chat_service_missing_fields(store, invoker):
    with pytest.raises(chat_module.MissingFieldError):
        await chat_module.chat_service(ChatRequest(roomId="room-1"), store, invoker)


@pytest.mark.asyncio
async def test_chat_service_unknown_room(store, invoker):
    with pytest.raises(RoomNotFoundError):
        await chat_module.chat_service(ChatRequest(roomId="missing", message="@ai hi"), store, invoker)


@pytest.mark.asyncio
async def test_chat_service_skips_without_mention(store, invoker, make_room, openai_stub):
    room = make_room()

    response = await chat_module.chat_service(ChatRequest(roomId=room.id, message="just chatting"), store, invoker)

    assert isinstance(response, ChatSkippedResponse)
    assert openai_stub.completions.calls == []


@pytest.mark.asyncio
async def test_chat_service_uses_room_model_by_default(store, invoker, make_room, openai_stub):
    room = make_room(ai_model="o4-mini")

    response = await chat_module.chat_service(ChatRequest(roomId=room.id, message="@ai hi"), store, invoker)

    assert openai_stub.completions.calls[0]["model"] == "o4-mini"
    # (1000 * 1.1 + 500 * 4.4) / 10000 = 0.33 -> 0
    assert response.cost_cents == 0
    assert response.usage.total_tokens == 1500


@pytest.mark.asyncio
async def test_turn_stops_when_history_fails(store, invoker, make_room, openai_stub, monkeypatch):
    room = make_room()

    def broken_history(*args, **kwargs):
        raise HistoryFetchError("Failed to fetch conversation history")

    monkeypatch.setattr(chat_module, "assemble_history", broken_history)

    with pytest.raises(HistoryFetchError):
        await chat_module.run_assistant_turn(store, invoker, room, "@ai hi")
    assert openai_stub.completions.calls == []


@pytest.mark.asyncio
async def test_turn_rejects_empty_completion(store, invoker, make_room, openai_stub):
    room = make_room()
    openai_stub.completions.reply = ""

    with pytest.raises(CompletionError):
        await chat_module.run_assistant_turn(store, invoker, room, "@ai hi")


@pytest.mark.asyncio
async def test_submit_message_persists_and_publishes(store, invoker, make_room):
    room = make_room()
    broker = RecordingBroker()

    result = await chat_module.submit_message_service(
        room.id, MessageCreateRequest(user_id="host", content="  @ai summarize  "), store, invoker, broker
    )

    assert result.should_respond is True
    assert result.message.content == "@ai summarize"
    assert result.reply.content == "4, obviously."
    assert result.reply.cost_cents == result.cost_cents == 1
    assert [e.message_id for e in broker.events] == [result.message.id, result.reply.id]
    assert [m.role for m in store.list_messages(room.id)] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_submit_message_failure_publishes_only_user_message(store, invoker, make_room, openai_stub):
    from openai import OpenAIError

    room = make_room()
    broker = RecordingBroker()
    openai_stub.completions.error = OpenAIError("boom")

    with pytest.raises(CompletionError):
        await chat_module.submit_message_service(
            room.id, MessageCreateRequest(user_id="host", content="@ai hello"), store, invoker, broker
        )

    messages = store.list_messages(room.id)
    assert [m.role for m in messages] == ["user"]
    assert [e.message_id for e in broker.events] == [messages[0].id]


@pytest.mark.asyncio
async def test_submit_message_requires_active_participant(store, invoker, make_room):
    room = make_room()

    with pytest.raises(NotParticipantError):
        await chat_module.submit_message_service(
            room.id, MessageCreateRequest(user_id="stranger", content="hi"), store, invoker, RecordingBroker()
        )
