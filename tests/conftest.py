from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from symposium.client.llm.chatgpt import CompletionInvoker
from symposium.db.session import Base, build_engine, build_session_factory
from symposium.main import create_app
from symposium.model.room.room_request import RoomCreateRequest
from symposium.service.auth.auth import EmailAllowlist
from symposium.service.realtime.broker import InMemoryBroker
from symposium.service.room.store import RoomStore


class StubCompletions:
    def __init__(self):
        self.calls = []
        self.reply = "4, obviously."
        self.prompt_tokens = 1000
        self.completion_tokens = 500
        self.error = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))],
            usage=SimpleNamespace(
                prompt_tokens=self.prompt_tokens,
                completion_tokens=self.completion_tokens,
            ),
        )


class StubOpenAI:
    def __init__(self):
        self.completions = StubCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture(scope="function")
def store(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'symposium.db'}")
    Base.metadata.create_all(bind=engine)
    yield RoomStore(build_session_factory(engine))
    engine.dispose()


@pytest.fixture(scope="function")
def openai_stub():
    return StubOpenAI()


@pytest.fixture(scope="function")
def invoker(openai_stub):
    return CompletionInvoker(api_key="test-key", client=openai_stub)


@pytest.fixture(scope="function")
def broker():
    return InMemoryBroker()


@pytest.fixture(scope="function")
def app(store, invoker, broker):
    return create_app(
        store=store,
        invoker=invoker,
        broker=broker,
        allowlist=EmailAllowlist(emails=["host@example.com"], domains=["symposium.dev"]),
    )


#scope : function < class < module < package < session
@pytest.fixture(scope="function")
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def make_room(store):
    def _make_room(**overrides):
        fields = {"name": "Design review", "host_user_id": "host", "ai_model": "gpt-4.1"}
        fields.update(overrides)
        store.upsert_profile(fields["host_user_id"], email="host@example.com", name="Hannah")
        return store.create_room(RoomCreateRequest(**fields))

    return _make_room
