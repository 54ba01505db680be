import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from symposium.client.llm.chatgpt import CompletionInvoker
from symposium.model.chat.chat_request import ChatRequest
from symposium.model.chat.chat_response import ChatResponse, ChatSkippedResponse, TokenUsage
from symposium.model.message.message_request import MessageCreateRequest
from symposium.model.message.message_response import MessageResponse, TurnResponse
from symposium.service.chat.history import assemble_history
from symposium.service.chat.persona import resolve_system_prompt
from symposium.service.chat.pricing import cost_cents
from symposium.service.chat.trigger import should_respond, strip_mention
from symposium.service.realtime.events import MessageInserted
from symposium.service.room.store import NotParticipantError, RoomNotFoundError, RoomStore

logger = logging.getLogger(__name__)


class MissingFieldError(ValueError):
    pass


@dataclass
class TurnResult:
    content: str
    cost_cents: int
    usage: TokenUsage
    persona_name: Optional[str]


async def run_assistant_turn(
    store: RoomStore,
    invoker: CompletionInvoker,
    room,
    message: str,
    model_id: Optional[str] = None,
    before_message_id: Optional[int] = None,
) -> Optional[TurnResult]:
    """
    One assistant turn for a message already saved in `room`.

    Returns None when the message does not mention the assistant. Each step waits
    for the previous one; HistoryFetchError and CompletionError propagate untouched.
    """
    if not should_respond(message):
        return None

    model_id = model_id or room.ai_model
    history = await asyncio.to_thread(assemble_history, store, room.id, before_id=before_message_id)
    system_prompt = await asyncio.to_thread(resolve_system_prompt, room, store.get_preset_prompt)
    completion = await asyncio.to_thread(
        invoker.invoke, system_prompt, history, strip_mention(message), model_id
    )
    cents = cost_cents(model_id, completion.input_tokens, completion.output_tokens)

    logger.info("room=%s model=%s cost_cents=%d history=%d", room.id, model_id, cents, len(history))
    return TurnResult(
        content=completion.text,
        cost_cents=cents,
        usage=TokenUsage(
            prompt_tokens=completion.input_tokens,
            completion_tokens=completion.output_tokens,
            total_tokens=completion.total_tokens,
        ),
        persona_name=room.persona_name,
    )


async def chat_service(
    req: ChatRequest, store: RoomStore, invoker: CompletionInvoker
) -> ChatResponse | ChatSkippedResponse:
    if not req.roomId or not req.message:
        raise MissingFieldError("Missing roomId or message")

    room = await asyncio.to_thread(store.get_room, req.roomId)
    if room is None:
        raise RoomNotFoundError(req.roomId)

    turn = await run_assistant_turn(store, invoker, room, req.message, model_id=req.aiModel)
    if turn is None:
        return ChatSkippedResponse()

    return ChatResponse(
        content=turn.content,
        cost_cents=turn.cost_cents,
        usage=turn.usage,
        persona_name=turn.persona_name,
    )


async def submit_message_service(
    room_id: str, req: MessageCreateRequest, store: RoomStore, invoker: CompletionInvoker, broker
) -> TurnResponse:
    """
    Persist a user message, fan it out, then run and persist the assistant turn.

    The user message is saved and published before the turn starts, so a failed
    turn leaves it in place and nothing is written on its behalf.
    """
    room = await asyncio.to_thread(store.get_room, room_id)
    if room is None:
        raise RoomNotFoundError(room_id)
    if not await asyncio.to_thread(store.is_participant, room_id, req.user_id):
        raise NotParticipantError(req.user_id)

    content = req.content.strip()
    user_message = await asyncio.to_thread(store.insert_message, room_id, content, "user", req.user_id)
    await broker.publish(MessageInserted(room_id=room_id, message_id=user_message.id))

    turn = await run_assistant_turn(store, invoker, room, content, before_message_id=user_message.id)
    if turn is None:
        return TurnResponse(message=MessageResponse.model_validate(user_message), should_respond=False)

    reply = await asyncio.to_thread(
        store.insert_message, room_id, turn.content, "assistant", None, turn.cost_cents
    )
    await broker.publish(MessageInserted(room_id=room_id, message_id=reply.id))

    return TurnResponse(
        message=MessageResponse.model_validate(user_message),
        reply=MessageResponse.model_validate(reply),
        should_respond=True,
        cost_cents=turn.cost_cents,
    )
