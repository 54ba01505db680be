from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from symposium.service.chat.history import HistoryFetchError, assemble_history, speaker_name


def test_speaker_name_fallbacks():
    assert speaker_name(SimpleNamespace(name="Hannah", email="h@example.com")) == "Hannah"
    assert speaker_name(SimpleNamespace(name=None, email="bob.smith@example.com")) == "bob.smith"
    assert speaker_name(SimpleNamespace(name=None, email=None)) == "Anonymous"
    assert speaker_name(None) == "Anonymous"


def test_history_is_capped_and_ordered(store, make_room):
    room = make_room()
    for i in range(25):
        store.insert_message(room.id, f"message {i}", "user", "host")

    history = assemble_history(store, room.id)

    assert len(history) == 20
    assert history[0]["content"] == "[Hannah]: message 5"
    assert history[-1]["content"] == "[Hannah]: message 24"


def test_history_keeps_assistant_and_system_text(store, make_room):
    room = make_room()
    store.insert_message(room.id, "Room created", "system")
    store.insert_message(room.id, "@ai hi", "user", "host")
    store.insert_message(room.id, "Hello!", "assistant", cost_cents=1)

    history = assemble_history(store, room.id)

    assert history == [
        {"role": "system", "content": "Room created"},
        {"role": "user", "content": "[Hannah]: @ai hi"},
        {"role": "assistant", "content": "Hello!"},
    ]


def test_history_before_id_excludes_trigger(store, make_room):
    room = make_room()
    first = store.insert_message(room.id, "earlier", "user", "host")
    trigger = store.insert_message(room.id, "@ai now", "user", "host")

    history = assemble_history(store, room.id, before_id=trigger.id)

    assert [h["content"] for h in history] == ["[Hannah]: earlier"]
    assert assemble_history(store, room.id, before_id=first.id) == []


def test_history_for_empty_room(store, make_room):
    room = make_room()

    assert assemble_history(store, room.id) == []


def test_history_wraps_database_errors():
    class BrokenStore:
        def recent_messages(self, room_id, limit, before_id):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

    with pytest.raises(HistoryFetchError):
        assemble_history(BrokenStore(), "room-1")
