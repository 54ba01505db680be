import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from symposium.client.llm.chatgpt import CompletionCredentialsError, CompletionError, CompletionInvoker
from symposium.model.auth.auth_request import AuthCheckRequest
from symposium.model.auth.auth_response import AuthCheckResponse
from symposium.model.chat.chat_request import ChatRequest
from symposium.model.chat.chat_response import ChatResponse, ChatSkippedResponse
from symposium.model.message.message_request import MessageCreateRequest
from symposium.model.message.message_response import MessageResponse, ProfileResponse, TurnResponse
from symposium.model.room.room_request import EnterRoomRequest, ProfileRequest, RoomCreateRequest
from symposium.model.room.room_response import (
    ParticipantResponse,
    PersonaResponse,
    RoomResponse,
    UserRoomResponse,
)
from symposium.service.auth.auth import NOT_AUTHORIZED_MESSAGE, EmailAllowlist
from symposium.service.chat.chat import MissingFieldError, chat_service, submit_message_service
from symposium.service.chat.history import HistoryFetchError, speaker_name
from symposium.service.realtime.events import ParticipantChanged, TypingBroadcast
from symposium.service.realtime.source import StoreSyncSource
from symposium.service.realtime.sync import RoomSync, TypingDebouncer
from symposium.service.room.store import (
    InvalidMessageError,
    NotParticipantError,
    RoomFullError,
    RoomNotFoundError,
    RoomStore,
)

api_router = APIRouter()
logger = logging.getLogger(__name__)


def get_store(request: Request) -> RoomStore:
    return request.app.state.store


def get_invoker(request: Request) -> CompletionInvoker:
    return request.app.state.invoker


def get_broker(request: Request):
    return request.app.state.broker


def get_allowlist(request: Request) -> EmailAllowlist:
    return request.app.state.allowlist


def _turn_error(exc: Exception) -> HTTPException:
    if isinstance(exc, HistoryFetchError):
        return HTTPException(500, "Failed to fetch conversation history")
    if isinstance(exc, CompletionCredentialsError):
        return HTTPException(500, "OpenAI API key not configured")
    return HTTPException(500, "Failed to generate AI response")


@api_router.post("/chat", response_model=ChatResponse | ChatSkippedResponse)
async def ai_request(
    req: ChatRequest,
    store: RoomStore = Depends(get_store),
    invoker: CompletionInvoker = Depends(get_invoker),
):
    try:
        return await chat_service(req, store, invoker)
    except MissingFieldError as exc:
        raise HTTPException(400, str(exc))
    except RoomNotFoundError:
        raise HTTPException(404, "Room not found")
    except (HistoryFetchError, CompletionError) as exc:
        logger.exception("Chat turn failed for room %s", req.roomId)
        raise _turn_error(exc)
    except SQLAlchemyError:
        logger.exception("Database error in chat endpoint")
        raise HTTPException(500, "Internal server error")


@api_router.post("/auth/check", response_model=AuthCheckResponse, response_model_exclude_none=True)
async def auth_check(request: Request, allowlist: EmailAllowlist = Depends(get_allowlist)):
    try:
        req = AuthCheckRequest.model_validate(await request.json())
        if not req.email:
            return JSONResponse({"allowed": False, "message": "Email is required"}, status_code=400)
        if not allowlist.is_allowed_with_dev_mode(req.email):
            return JSONResponse({"allowed": False, "message": NOT_AUTHORIZED_MESSAGE}, status_code=403)
        return AuthCheckResponse(allowed=True)
    except Exception:
        logger.exception("Auth check error")
        return JSONResponse({"allowed": False, "message": "Authentication error"}, status_code=500)


@api_router.put("/profiles/{user_id}", response_model=ProfileResponse)
async def upsert_profile(user_id: str, req: ProfileRequest, store: RoomStore = Depends(get_store)):
    profile = await asyncio.to_thread(store.upsert_profile, user_id, req.email, req.name, req.avatar_url)
    return ProfileResponse.model_validate(profile)


@api_router.get("/personas", response_model=list[PersonaResponse])
async def list_personas(store: RoomStore = Depends(get_store)):
    personas = await asyncio.to_thread(store.list_preset_personas)
    return [PersonaResponse.model_validate(p) for p in personas]


@api_router.post("/rooms", response_model=RoomResponse)
async def create_room(req: RoomCreateRequest, store: RoomStore = Depends(get_store)):
    try:
        room = await asyncio.to_thread(store.create_room, req)
    except SQLAlchemyError:
        logger.exception("SQLAlchemy error while creating room")
        raise HTTPException(500, "Database error while creating room")
    return RoomResponse.model_validate(room)


@api_router.get("/rooms/{room_id}", response_model=RoomResponse)
async def get_room(room_id: str, store: RoomStore = Depends(get_store)):
    room = await asyncio.to_thread(store.get_room, room_id)
    if room is None:
        raise HTTPException(404, "Room not found")
    return RoomResponse.model_validate(room)


@api_router.get("/users/{user_id}/rooms", response_model=list[UserRoomResponse])
async def list_user_rooms(user_id: str, store: RoomStore = Depends(get_store)):
    items = await asyncio.to_thread(store.list_user_rooms, user_id)
    return [
        UserRoomResponse(
            **RoomResponse.model_validate(item["room"]).model_dump(),
            participant_count=item["participant_count"],
            last_message=MessageResponse.model_validate(item["last_message"]) if item["last_message"] else None,
            last_activity=item["last_activity"],
        )
        for item in items
    ]


@api_router.get("/rooms/{room_id}/participants", response_model=list[ParticipantResponse])
async def list_participants(room_id: str, store: RoomStore = Depends(get_store)):
    participants = await asyncio.to_thread(store.list_participants, room_id)
    return [ParticipantResponse.model_validate(p) for p in participants]


@api_router.post("/rooms/{room_id}/participants", response_model=ParticipantResponse)
async def enter_room(
    room_id: str,
    req: EnterRoomRequest,
    store: RoomStore = Depends(get_store),
    broker=Depends(get_broker),
):
    try:
        participant = await asyncio.to_thread(store.enter_room, room_id, req.user_id)
    except RoomNotFoundError:
        raise HTTPException(404, "Room not found")
    except RoomFullError:
        raise HTTPException(403, "Room is full")
    await broker.publish(ParticipantChanged(room_id=room_id, user_id=req.user_id, is_active=True))
    return ParticipantResponse.model_validate(participant)


@api_router.delete("/rooms/{room_id}/participants/{user_id}", response_model=ParticipantResponse)
async def leave_room(
    room_id: str,
    user_id: str,
    store: RoomStore = Depends(get_store),
    broker=Depends(get_broker),
):
    participant = await asyncio.to_thread(store.leave_room, room_id, user_id)
    if participant is None:
        raise HTTPException(404, "Participant not found")
    await broker.publish(ParticipantChanged(room_id=room_id, user_id=user_id, is_active=False))
    return ParticipantResponse.model_validate(participant)


@api_router.get("/rooms/{room_id}/messages", response_model=list[MessageResponse])
async def list_messages(room_id: str, store: RoomStore = Depends(get_store)):
    messages = await asyncio.to_thread(store.list_messages, room_id)
    return [MessageResponse.model_validate(m) for m in messages]


@api_router.get("/rooms/{room_id}/messages/{message_id}", response_model=MessageResponse)
async def get_message(room_id: str, message_id: int, store: RoomStore = Depends(get_store)):
    message = await asyncio.to_thread(store.get_message, room_id, message_id)
    if message is None:
        raise HTTPException(404, "Message not found")
    return MessageResponse.model_validate(message)


@api_router.post("/rooms/{room_id}/messages", response_model=TurnResponse)
async def post_message(
    room_id: str,
    req: MessageCreateRequest,
    store: RoomStore = Depends(get_store),
    invoker: CompletionInvoker = Depends(get_invoker),
    broker=Depends(get_broker),
):
    try:
        return await submit_message_service(room_id, req, store, invoker, broker)
    except RoomNotFoundError:
        raise HTTPException(404, "Room not found")
    except NotParticipantError:
        raise HTTPException(403, "Not a participant of this room")
    except InvalidMessageError as exc:
        raise HTTPException(400, str(exc))
    except (HistoryFetchError, CompletionError) as exc:
        # The user's message is already stored; only the reply is missing.
        logger.exception("Assistant turn failed for room %s", room_id)
        raise _turn_error(exc)
    except SQLAlchemyError:
        logger.exception("Database error while posting to room %s", room_id)
        raise HTTPException(500, "Internal server error")


@api_router.websocket("/ws/rooms/{room_id}/{user_id}")
async def room_socket(websocket: WebSocket, room_id: str, user_id: str):
    store: RoomStore = websocket.app.state.store
    broker = websocket.app.state.broker

    await websocket.accept()
    room = await asyncio.to_thread(store.get_room, room_id)
    if room is None:
        await websocket.close(code=4404)
        return
    if not await asyncio.to_thread(store.is_participant, room_id, user_id):
        await websocket.close(code=4403)
        return

    profile = await asyncio.to_thread(store.get_profile, user_id)
    user_name = speaker_name(profile)
    sync = RoomSync(room_id, user_id, StoreSyncSource(store), broker, websocket.send_json)
    await sync.connect()

    typing = False

    async def publish_typing(is_typing: bool) -> None:
        nonlocal typing
        typing = is_typing
        await broker.publish(
            TypingBroadcast(room_id=room_id, user_id=user_id, user_name=user_name, is_typing=is_typing)
        )

    # INPUT/SUBMIT frames go through the debouncer; TYPING frames are relayed as sent.
    debouncer = TypingDebouncer(publish_typing)
    try:
        while True:
            try:
                data = await websocket.receive_json()
            except WebSocketDisconnect:
                break
            except ValueError:
                logger.warning("Dropping malformed frame from %s in room %s", user_id, room_id)
                continue

            msg_type = data.get("type") if isinstance(data, dict) else None
            if msg_type == "TYPING":
                await publish_typing(bool(data.get("is_typing", False)))
            elif msg_type == "INPUT":
                await debouncer.on_input(str(data.get("text") or ""))
            elif msg_type == "SUBMIT":
                await debouncer.on_submit()
            elif msg_type == "RETRY":
                await sync.retry()
    finally:
        await debouncer.close()
        await sync.close()
        if typing:
            await publish_typing(False)
