import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from symposium.config.config import HISTORY_LIMIT

logger = logging.getLogger(__name__)


class HistoryFetchError(Exception):
    pass


def speaker_name(profile) -> str:
    if profile is None:
        return "Anonymous"
    if profile.name:
        return profile.name
    if profile.email:
        return profile.email.split("@")[0]
    return "Anonymous"


def assemble_history(
    store, room_id: str, limit: int = HISTORY_LIMIT, before_id: Optional[int] = None
) -> list[dict[str, str]]:
    """
    The most recent `limit` messages of a room as completion input, oldest first.
    User turns are prefixed with "[speaker]: " so one reply can tell people apart.
    """
    try:
        messages = store.recent_messages(room_id, limit=limit, before_id=before_id)
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch history for room %s", room_id)
        raise HistoryFetchError("Failed to fetch conversation history") from exc

    history: list[dict[str, str]] = []
    for msg in messages[-limit:]:
        content = msg.content
        if msg.role == "user":
            content = f"[{speaker_name(msg.profile)}]: {msg.content}"
        history.append({"role": msg.role, "content": content})
    return history
