import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

GENERIC_PROMPT = (
    "You are a helpful AI assistant participating in a collaborative discussion. "
    "Multiple people may be asking questions and discussing topics together. "
    "Be concise, helpful, and engaging."
)

CUSTOM_FRAMING = (
    "Please engage in this collaborative discussion while staying true to this persona. "
    "Multiple people may be participating in the conversation, so be aware that different users "
    "may be asking questions or making comments."
)

CHARACTER_LIMIT_INSTRUCTION = (
    "\n\nIMPORTANT: Always limit your responses to 512 characters maximum. "
    "This is a hard requirement for maintaining concise and focused dialogue."
)


def _preset_prompt(name: str, lookup_preset: Callable[[str], Optional[str]]) -> Optional[str]:
    try:
        return lookup_preset(name)
    except Exception:
        logger.exception("Preset persona lookup failed for %s", name)
        return None


def resolve_system_prompt(room, lookup_preset: Callable[[str], Optional[str]]) -> str:
    """
    Build the system instruction for a room's persona.

    preset -> the library prompt, or the generic prompt when it cannot be found
    custom -> "You are <name>. <description>" plus the discussion framing
    none   -> the generic prompt

    The 512 character cap is an instruction to the model; replies are not truncated.
    """
    base = GENERIC_PROMPT
    if room.persona_type == "preset" and room.persona_name:
        prompt = _preset_prompt(room.persona_name, lookup_preset)
        if prompt:
            base = prompt
        else:
            logger.warning("Preset persona %r not found, using generic prompt", room.persona_name)
    elif room.persona_type == "custom":
        name = room.persona_name or "a custom persona"
        description = room.persona_description or ""
        base = f"You are {name}. {description}\n\n{CUSTOM_FRAMING}"
    return base + CHARACTER_LIMIT_INSTRUCTION
