from types import SimpleNamespace

from symposium.service.chat.persona import (
    CHARACTER_LIMIT_INSTRUCTION,
    CUSTOM_FRAMING,
    GENERIC_PROMPT,
    resolve_system_prompt,
)


def _room(persona_type="none", persona_name=None, persona_description=None):
    return SimpleNamespace(
        persona_type=persona_type,
        persona_name=persona_name,
        persona_description=persona_description,
    )


def _no_presets(name):
    return None


def test_no_persona_uses_generic_prompt():
    assert resolve_system_prompt(_room(), _no_presets) == GENERIC_PROMPT + CHARACTER_LIMIT_INSTRUCTION


def test_custom_persona_prompt():
    prompt = resolve_system_prompt(_room("custom", "Ada", "A patient mathematician."), _no_presets)

    assert prompt.startswith("You are Ada. A patient mathematician.\n\n")
    assert CUSTOM_FRAMING in prompt
    assert prompt.endswith(CHARACTER_LIMIT_INSTRUCTION)


def test_preset_persona_found():
    presets = {"Socratic Tutor": "Ask questions."}

    prompt = resolve_system_prompt(_room("preset", "Socratic Tutor"), presets.get)

    assert prompt == "Ask questions." + CHARACTER_LIMIT_INSTRUCTION


def test_unknown_preset_falls_back_to_generic(caplog):
    prompt = resolve_system_prompt(_room("preset", "Socrates"), _no_presets)

    assert prompt == GENERIC_PROMPT + CHARACTER_LIMIT_INSTRUCTION
    assert "Socrates" in caplog.text


def test_preset_lookup_error_falls_back_to_generic():
    def broken(name):
        raise RuntimeError("database is down")

    prompt = resolve_system_prompt(_room("preset", "Socratic Tutor"), broken)

    assert prompt == GENERIC_PROMPT + CHARACTER_LIMIT_INSTRUCTION


def test_preset_from_seeded_store(store):
    from symposium.db.seed import PRESET_PERSONAS, seed_preset_personas

    assert seed_preset_personas(store.session_factory) == len(PRESET_PERSONAS)
    assert seed_preset_personas(store.session_factory) == 0

    prompt = resolve_system_prompt(_room("preset", "Devil's Advocate"), store.get_preset_prompt)

    assert prompt.startswith("You are a devil's advocate")
