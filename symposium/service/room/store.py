import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from symposium.client.db.psql import session_scope
from symposium.config.config import MESSAGE_ROLES
from symposium.db.models import Message, Participant, PresetPersona, Profile, Room
from symposium.model.room.room_request import RoomCreateRequest

logger = logging.getLogger(__name__)


class RoomNotFoundError(Exception):
    pass


class RoomFullError(Exception):
    pass


class NotParticipantError(Exception):
    pass


class InvalidMessageError(ValueError):
    pass


def _ensure_profile(db: Session, user_id: str) -> Profile:
    profile = db.get(Profile, user_id)
    if profile is None:
        profile = Profile(id=user_id)
        db.add(profile)
        db.flush()
    return profile


def _active_count(db: Session, room_id: str) -> int:
    return db.execute(
        select(func.count(Participant.id)).where(
            Participant.room_id == room_id,
            Participant.is_active.is_(True),
        )
    ).scalar_one()


class RoomStore:
    """
    Room, message and participant persistence over one SQLAlchemy session factory.
    Every method opens and closes its own session; returned rows are detached.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.engine = session_factory.kw.get("bind")

    # profiles

    def upsert_profile(
        self,
        user_id: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        with session_scope(self.session_factory) as db:
            profile = _ensure_profile(db, user_id)
            if email is not None:
                profile.email = email
            if name is not None:
                profile.name = name
            if avatar_url is not None:
                profile.avatar_url = avatar_url
            db.flush()
            db.refresh(profile)
            return profile

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with session_scope(self.session_factory) as db:
            return db.get(Profile, user_id)

    # rooms

    def create_room(self, req: RoomCreateRequest) -> Room:
        with session_scope(self.session_factory) as db:
            _ensure_profile(db, req.host_user_id)
            room = Room(
                name=req.name,
                host_user_id=req.host_user_id,
                ai_model=req.ai_model,
                payment_model=req.payment_model,
                max_participants=req.max_participants,
                persona_type=req.persona_type,
                persona_name=req.persona_name,
                persona_description=req.persona_description,
            )
            db.add(room)
            db.flush()
            db.add(Participant(room_id=room.id, user_id=req.host_user_id, is_active=True))
            db.flush()
            db.refresh(room)
            logger.info("Created room %s for host %s", room.id, req.host_user_id)
            return room

    def get_room(self, room_id: str) -> Optional[Room]:
        with session_scope(self.session_factory) as db:
            return db.get(Room, room_id)

    def list_user_rooms(self, user_id: str) -> list[dict]:
        with session_scope(self.session_factory) as db:
            rooms = db.execute(
                select(Room)
                .join(Participant, Participant.room_id == Room.id)
                .where(Participant.user_id == user_id, Participant.is_active.is_(True))
                .order_by(Participant.joined_at.desc())
            ).scalars().all()

            results = []
            for room in rooms:
                last_message = db.execute(
                    select(Message)
                    .where(Message.room_id == room.id)
                    .order_by(Message.created_at.desc(), Message.id.desc())
                    .limit(1)
                ).scalar_one_or_none()
                results.append({
                    "room": room,
                    "participant_count": _active_count(db, room.id),
                    "last_message": last_message,
                    "last_activity": last_message.created_at if last_message else room.updated_at,
                })

        results.sort(key=lambda item: item["last_activity"], reverse=True)
        return results

    # personas

    def list_preset_personas(self) -> list[PresetPersona]:
        with session_scope(self.session_factory) as db:
            return list(db.execute(select(PresetPersona).order_by(PresetPersona.name)).scalars().all())

    def get_preset_prompt(self, name: str) -> Optional[str]:
        with session_scope(self.session_factory) as db:
            return db.execute(
                select(PresetPersona.system_prompt).where(PresetPersona.name == name)
            ).scalar_one_or_none()

    # messages

    def recent_messages(self, room_id: str, limit: int = 20, before_id: Optional[int] = None) -> list[Message]:
        """Newest `limit` messages of a room, returned oldest first."""
        with session_scope(self.session_factory) as db:
            query = select(Message).where(Message.room_id == room_id)
            if before_id is not None:
                query = query.where(Message.id < before_id)
            rows = db.execute(
                query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
            ).scalars().all()
            return list(reversed(rows))

    def list_messages(self, room_id: str) -> list[Message]:
        with session_scope(self.session_factory) as db:
            return list(
                db.execute(
                    select(Message)
                    .where(Message.room_id == room_id)
                    .order_by(Message.created_at.asc(), Message.id.asc())
                ).scalars().all()
            )

    def get_message(self, room_id: str, message_id: int) -> Optional[Message]:
        with session_scope(self.session_factory) as db:
            message = db.get(Message, message_id)
            if message is None or message.room_id != room_id:
                return None
            return message

    def insert_message(
        self,
        room_id: str,
        content: str,
        role: str,
        user_id: Optional[str] = None,
        cost_cents: int = 0,
    ) -> Message:
        if role not in MESSAGE_ROLES:
            raise InvalidMessageError(f"Unknown role: {role}")
        if role == "user" and not user_id:
            raise InvalidMessageError("User messages need an author")
        if role != "user" and user_id is not None:
            raise InvalidMessageError(f"{role} messages cannot have an author")
        if cost_cents < 0:
            raise InvalidMessageError("cost_cents must not be negative")
        if role != "assistant" and cost_cents:
            raise InvalidMessageError("Only assistant messages carry a cost")
        if not content:
            raise InvalidMessageError("Message content is empty")

        with session_scope(self.session_factory) as db:
            if db.get(Room, room_id) is None:
                raise RoomNotFoundError(room_id)
            if user_id is not None:
                _ensure_profile(db, user_id)
            message = Message(room_id=room_id, user_id=user_id, content=content, role=role, cost_cents=cost_cents)
            db.add(message)
            db.flush()
            db.refresh(message)
            # Load the author while the session is still open.
            message.profile
            return message

    # participants

    def enter_room(self, room_id: str, user_id: str) -> Participant:
        """
        Create or reactivate the participant row for (room, user).
        Entering twice leaves exactly one active row.
        """
        try:
            return self._enter_room(room_id, user_id)
        except IntegrityError:
            # A concurrent entry inserted the row first; the retry reactivates it.
            logger.info("Participant row for %s in %s already exists, retrying", user_id, room_id)
            return self._enter_room(room_id, user_id)

    def _enter_room(self, room_id: str, user_id: str) -> Participant:
        with session_scope(self.session_factory) as db:
            room = db.get(Room, room_id)
            if room is None:
                raise RoomNotFoundError(room_id)
            _ensure_profile(db, user_id)

            participant = db.execute(
                select(Participant).where(Participant.room_id == room_id, Participant.user_id == user_id)
            ).scalar_one_or_none()

            if participant is None or not participant.is_active:
                if _active_count(db, room_id) >= room.max_participants:
                    raise RoomFullError(room_id)
                if participant is None:
                    participant = Participant(room_id=room_id, user_id=user_id, is_active=True)
                    db.add(participant)
                else:
                    participant.is_active = True
                db.flush()

            db.refresh(participant)
            participant.profile
            return participant

    def leave_room(self, room_id: str, user_id: str) -> Optional[Participant]:
        with session_scope(self.session_factory) as db:
            participant = db.execute(
                select(Participant).where(Participant.room_id == room_id, Participant.user_id == user_id)
            ).scalar_one_or_none()
            if participant is None:
                return None
            participant.is_active = False
            db.flush()
            participant.profile
            return participant

    def is_participant(self, room_id: str, user_id: str) -> bool:
        with session_scope(self.session_factory) as db:
            return db.execute(
                select(Participant.id).where(
                    Participant.room_id == room_id,
                    Participant.user_id == user_id,
                    Participant.is_active.is_(True),
                )
            ).first() is not None

    def list_participants(self, room_id: str) -> list[Participant]:
        with session_scope(self.session_factory) as db:
            return list(
                db.execute(
                    select(Participant)
                    .where(Participant.room_id == room_id, Participant.is_active.is_(True))
                    .order_by(Participant.joined_at.asc(), Participant.id.asc())
                ).scalars().all()
            )
