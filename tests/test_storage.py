"""Tests for the explicit session manager."""

import pytest
from kivy.storage.jsonstore import JsonStore

from publisher_app.utils.storage import SessionManager


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "session.json")


class TestSessionManager:
    def test_starts_signed_out(self, store_path):
        session = SessionManager(store=JsonStore(store_path))

        assert session.is_authenticated is False
        assert session.hydrate() is False

    def test_remembered_session_survives_restart(self, store_path):
        SessionManager(store=JsonStore(store_path)).login(token="tok", user={"id": 1}, remember=True)

        restored = SessionManager(store=JsonStore(store_path))

        assert restored.hydrate() is True
        assert restored.token == "tok"
        assert restored.user == {"id": 1}

    def test_unremembered_session_is_not_persisted(self, store_path):
        SessionManager(store=JsonStore(store_path)).login(token="tok", remember=False)

        assert SessionManager(store=JsonStore(store_path)).hydrate() is False

    def test_set_user_updates_persisted_copy(self, store_path):
        session = SessionManager(store=JsonStore(store_path))
        session.login(token="tok", remember=True)
        session.set_user({"userdata": {"Email": "a@b.c"}})

        restored = SessionManager(store=JsonStore(store_path))
        restored.hydrate()

        assert restored.user == {"userdata": {"Email": "a@b.c"}}

    def test_logout_clears_memory_and_disk(self, store_path):
        session = SessionManager(store=JsonStore(store_path))
        session.login(token="tok", user={"id": 1}, remember=True)

        session.logout()

        assert session.token == ""
        assert session.user == {}
        assert SessionManager(store=JsonStore(store_path)).hydrate() is False
