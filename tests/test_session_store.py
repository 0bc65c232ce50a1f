"""Tests for SessionStore and Session."""

import json

import pytest

from shopdesk.errors import InvalidSchemaVersionError
from shopdesk.models import User
from shopdesk.session_store import Session, SessionStore

from .conftest import user_record


class TestSessionStore:
    def test_load_without_snapshot(self, temp_dir):
        assert SessionStore(temp_dir).load() is None

    def test_save_and_load(self, temp_dir):
        store = SessionStore(temp_dir)
        store.save(User.from_dict(user_record()))

        loaded = store.load()

        assert loaded.id == "u1"
        assert loaded.email == "asha@example.com"
        data = json.loads(store.session_path.read_text())
        assert data["schema_version"] == 1

    def test_clear(self, temp_dir):
        store = SessionStore(temp_dir)
        store.save(User.from_dict(user_record()))
        store.clear()
        store.clear()

        assert not store.exists()

    def test_unsupported_version_raises(self, temp_dir):
        store = SessionStore(temp_dir)
        store.session_path.write_text(json.dumps({"schema_version": 99, "current_user": None}))

        with pytest.raises(InvalidSchemaVersionError):
            store.load()

    def test_no_temp_files_left(self, temp_dir):
        SessionStore(temp_dir).save(User.from_dict(user_record()))
        assert [p.name for p in temp_dir.iterdir()] == ["session.json"]


class TestSession:
    def test_save_writes_through(self, temp_dir):
        session = Session(SessionStore(temp_dir))
        session.save(User.from_dict(user_record()))

        restored = Session(SessionStore(temp_dir))
        assert restored.load().id == "u1"
        assert restored.is_authenticated

    def test_refresh_only_for_current_user(self, temp_dir):
        session = Session(SessionStore(temp_dir))
        session.save(User.from_dict(user_record("u1")))

        assert session.refresh(User.from_dict(user_record("u2"))) is False
        assert session.refresh(User.from_dict(user_record("u1", email="new@example.com"))) is True
        assert SessionStore(temp_dir).load().email == "new@example.com"

    def test_clear(self, temp_dir):
        session = Session(SessionStore(temp_dir))
        session.save(User.from_dict(user_record()))
        session.clear()

        assert session.current_user is None
        assert Session(SessionStore(temp_dir)).load() is None

    @pytest.mark.parametrize(
        "content",
        ["", "{not json", json.dumps({"schema_version": 0, "current_user": None}), "[]"],
    )
    def test_unreadable_snapshot_starts_logged_out(self, temp_dir, content):
        store = SessionStore(temp_dir)
        store.session_path.write_text(content)

        session = Session(store)

        assert session.load() is None
        assert not session.is_authenticated
        assert not store.exists()
