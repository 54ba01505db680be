import asyncio
import bisect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional, Protocol

from symposium.config.config import TYPING_QUIET_SECONDS
from symposium.service.realtime.events import MessageInserted, ParticipantChanged, TypingBroadcast

logger = logging.getLogger(__name__)

Send = Callable[[dict], Awaitable[None]]


class SubscriptionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    CLOSED = "closed"


class SyncSource(Protocol):
    async def fetch_messages(self, room_id: str) -> list[dict]: ...

    async def fetch_participants(self, room_id: str) -> list[dict]: ...

    async def fetch_message(self, room_id: str, message_id: int) -> Optional[dict]: ...


class MessageLog:
    """
    Ordered set of messages keyed by id. Adding an id that is already present is a no-op.
    Ids are the persistence sequence, so id order is display order.
    """

    def __init__(self, messages=(), key: Callable[[Any], int] = lambda m: m["id"]):
        self._key = key
        self._ids: list[int] = []
        self._items: dict[int, Any] = {}
        self.extend(messages)

    def add(self, message) -> bool:
        message_id = self._key(message)
        if message_id in self._items:
            return False
        bisect.insort(self._ids, message_id)
        self._items[message_id] = message
        return True

    def extend(self, messages) -> int:
        return sum(1 for message in messages if self.add(message))

    def clear(self) -> None:
        self._ids.clear()
        self._items.clear()

    def __contains__(self, message_id) -> bool:
        return message_id in self._items

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Any]:
        return (self._items[message_id] for message_id in self._ids)

    def ids(self) -> list[int]:
        return list(self._ids)


class TypingTracker:
    """Display names of users typing in a room, keyed by user id, never including `self_user_id`."""

    def __init__(self, self_user_id: str):
        self.self_user_id = self_user_id
        self._typing: dict[str, str] = {}

    def apply(self, user_id: str, user_name: str, is_typing: bool) -> bool:
        if user_id == self.self_user_id:
            return False
        if is_typing:
            if self._typing.get(user_id) == user_name:
                return False
            self._typing[user_id] = user_name
            return True
        return self._typing.pop(user_id, None) is not None

    def clear(self) -> None:
        self._typing.clear()

    def names(self) -> list[str]:
        return sorted(self._typing.values())


class TypingDebouncer:
    """
    Sender side of the typing indicator.

    Broadcasts start when the input becomes non-empty while not typing, and stop once the
    input has not changed for `quiet_seconds` or right away when the message is submitted.
    """

    def __init__(self, publish: Callable[[bool], Awaitable[None]], quiet_seconds: float = TYPING_QUIET_SECONDS):
        self._publish = publish
        self.quiet_seconds = quiet_seconds
        self.typing = False
        self._last_text = ""
        self._timer: Optional[asyncio.Task] = None

    async def on_input(self, text: str) -> None:
        if text == self._last_text:
            return
        self._last_text = text
        if text and not self.typing:
            self.typing = True
            await self._publish(True)
        if self.typing:
            self._restart_timer()

    async def on_submit(self) -> None:
        self._last_text = ""
        self._cancel_timer()
        await self._stop()

    async def close(self) -> None:
        self._cancel_timer()

    async def _stop(self) -> None:
        if self.typing:
            self.typing = False
            await self._publish(False)

    async def _quiet_then_stop(self) -> None:
        await asyncio.sleep(self.quiet_seconds)
        self._timer = None
        try:
            await self._stop()
        except Exception:
            logger.exception("Typing stop broadcast failed")

    def _restart_timer(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.create_task(self._quiet_then_stop())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None


class RoomSync:
    """
    One client's view of a room kept in step with the server.

    connect() subscribes to the room's events first and holds them back while it takes
    the baseline snapshot, then replays them. Insert notifications are fetched and
    appended through the MessageLog, so an echo of a message already in the snapshot
    is dropped and a row inserted during the snapshot is still picked up. Frames for
    the client go through `send`.
    """

    def __init__(self, room_id: str, user_id: str, source: SyncSource, broker, send: Send):
        self.room_id = room_id
        self.user_id = user_id
        self.source = source
        self.broker = broker
        self.send = send
        self.state = SubscriptionState.IDLE
        self.last_error: Optional[str] = None
        self.messages = MessageLog()
        self.participants: list[dict] = []
        self.typing = TypingTracker(user_id)
        self._subscription = None
        # Events received while connect() is still taking the snapshot.
        self._pending: Optional[list] = None

    async def _set_state(self, state: SubscriptionState, error: Optional[str] = None) -> None:
        self.state = state
        self.last_error = error
        frame = {"type": "SUBSCRIPTION_STATUS", "status": state.value}
        if error:
            frame["error"] = error
        await self.send(frame)

    async def connect(self) -> SubscriptionState:
        await self._set_state(SubscriptionState.CONNECTING)
        self._pending = []
        try:
            self._subscription = await self.broker.subscribe(self.room_id, self.handle_event)
            messages = await self.source.fetch_messages(self.room_id)
            participants = await self.source.fetch_participants(self.room_id)
            self.messages.clear()
            self.messages.extend(messages)
            self.participants = participants
            self.typing.clear()
        except Exception as exc:
            logger.exception("Room %s subscription failed for %s", self.room_id, self.user_id)
            await self._release()
            await self._set_state(SubscriptionState.ERROR, str(exc) or exc.__class__.__name__)
            return self.state

        await self.send({
            "type": "SNAPSHOT",
            "messages": list(self.messages),
            "participants": self.participants,
        })
        await self._set_state(SubscriptionState.CONNECTED)
        await self._replay_pending()
        return self.state

    async def retry(self) -> SubscriptionState:
        await self._release()
        return await self.connect()

    async def close(self) -> None:
        await self._release()
        self.state = SubscriptionState.CLOSED

    async def _release(self) -> None:
        self._pending = None
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()

    async def _replay_pending(self) -> None:
        pending = self._pending
        # Events that arrive during the replay join the same list.
        while pending:
            await self._apply(pending.pop(0))
        if self._pending is pending:
            self._pending = None

    async def handle_event(self, event) -> None:
        if self._pending is not None:
            self._pending.append(event)
            return
        await self._apply(event)

    async def _apply(self, event) -> None:
        if isinstance(event, MessageInserted):
            await self._on_message_inserted(event)
        elif isinstance(event, ParticipantChanged):
            self.participants = await self.source.fetch_participants(self.room_id)
            await self.send({"type": "PARTICIPANTS_UPDATE", "participants": self.participants})
        elif isinstance(event, TypingBroadcast):
            if self.typing.apply(event.user_id, event.user_name, event.is_typing):
                await self.send({"type": "TYPING_UPDATE", "users": self.typing.names()})

    async def _on_message_inserted(self, event: MessageInserted) -> None:
        if event.message_id in self.messages:
            return
        message = await self.source.fetch_message(self.room_id, event.message_id)
        if message is None:
            logger.warning("Message %s announced for room %s was not found", event.message_id, self.room_id)
            return
        if self.messages.add(message):
            await self.send({"type": "MESSAGE_INSERT", "message": message})
