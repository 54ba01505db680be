import pytest

from symposium.client.db.psql import session_scope
from symposium.db.models import Profile


def test_session_scope_commits(store):
    with session_scope(store.session_factory) as db:
        db.add(Profile(id="u1", email="u1@example.com"))

    assert store.get_profile("u1").email == "u1@example.com"


def test_session_scope_rolls_back_and_reraises(store):
    with pytest.raises(RuntimeError):
        with session_scope(store.session_factory) as db:
            db.add(Profile(id="u2"))
            db.flush()
            raise RuntimeError("abort")

    assert store.get_profile("u2") is None
