from .message import Message
from .participant import Participant
from .preset_persona import PresetPersona
from .profile import Profile
from .room import Room
from .room_credit import RoomCredit

__all__ = ["Message", "Participant", "PresetPersona", "Profile", "Room", "RoomCredit"]
