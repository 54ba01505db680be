import asyncio
import logging
from typing import Awaitable, Callable, Optional

from redis import asyncio as aioredis

from symposium.service.realtime.events import channel_for, room_channels, room_event_adapter

logger = logging.getLogger(__name__)

Handler = Callable[[object], Awaitable[None]]


class Subscription:
    """Cancellable handle returned by a broker's subscribe()."""

    def __init__(self, room_id: str, task: asyncio.Task, on_close: Optional[Callable[[], Awaitable[None]]] = None):
        self.room_id = room_id
        self._task = task
        self._on_close = on_close
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Subscription pump for room %s ended with an error", self.room_id)
        if self._on_close is not None:
            await self._on_close()


async def _dispatch(handler: Handler, event) -> None:
    try:
        await handler(event)
    except Exception:
        # Delivery is best-effort; one bad event must not end the subscription.
        logger.exception("Room event handler failed for %s", event)


class InMemoryBroker:
    """Fan-out inside one process: every subscriber of a room gets its own queue."""

    def __init__(self):
        self._queues: dict[str, set[asyncio.Queue]] = {}

    def subscriber_count(self, room_id: str) -> int:
        return len(self._queues.get(room_id, ()))

    async def publish(self, event) -> None:
        for queue in list(self._queues.get(event.room_id, ())):
            queue.put_nowait(event)

    async def subscribe(self, room_id: str, handler: Handler) -> Subscription:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.setdefault(room_id, set()).add(queue)

        async def pump() -> None:
            while True:
                event = await queue.get()
                await _dispatch(handler, event)

        async def release() -> None:
            queues = self._queues.get(room_id)
            if queues is None:
                return
            queues.discard(queue)
            if not queues:
                self._queues.pop(room_id, None)

        return Subscription(room_id, asyncio.create_task(pump()), release)

    async def close(self) -> None:
        self._queues.clear()


class RedisBroker:
    """Fan-out across processes over Redis pub/sub, one channel per room and event kind."""

    def __init__(self, redis_url: str, client: Optional[aioredis.Redis] = None):
        self._redis = client or aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

    async def publish(self, event) -> None:
        await self._redis.publish(channel_for(event), event.model_dump_json())

    async def subscribe(self, room_id: str, handler: Handler) -> Subscription:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(*room_channels(room_id))

        async def pump() -> None:
            async for raw in pubsub.listen():
                if raw.get("type") != "message":
                    continue
                try:
                    event = room_event_adapter.validate_json(raw["data"])
                except ValueError:
                    logger.warning("Dropping malformed room event on %s", raw.get("channel"))
                    continue
                await _dispatch(handler, event)

        async def release() -> None:
            try:
                await pubsub.unsubscribe()
            finally:
                await pubsub.aclose()

        return Subscription(room_id, asyncio.create_task(pump()), release)

    async def close(self) -> None:
        await self._redis.aclose()


def build_broker(redis_url: str):
    if redis_url:
        logger.info("Using Redis broker for room events")
        return RedisBroker(redis_url)
    return InMemoryBroker()
