# =============================================================================
# tests/test_session_store.py - Session Store Tests
# =============================================================================
# This module contains tests for:
# - Creating sessions (id format, TTL, stored payload)
# - Reading back, unknown ids and unreadable payloads
# - Deleting sessions
#
# Redis is replaced by the FakeRedis fixture from conftest.py.
# =============================================================================

import re

import pytest
from pydantic import ValidationError

from app.config import settings
from lib.session_store import SessionStore, SessionUser, new_session_id


class TestSessionIds:
    """Test session id generation."""

    def test_hex_64(self):
        sid = new_session_id()

        assert re.fullmatch(r"[0-9a-f]{64}", sid)

    def test_unique(self):
        assert len({new_session_id() for _ in range(50)}) == 50


class TestSessionStore:
    """Test SessionStore against the fake Redis."""

    def test_create_and_get(self, redis_store, member_user):
        """Test a created session reads back as the same user."""
        sid = SessionStore.create(member_user)

        assert redis_store.ttls[f"session:{sid}"] == settings.SESSION_TTL_SECONDS
        assert SessionStore.get(sid) == member_user

    def test_get_unknown_or_empty(self):
        assert SessionStore.get("does-not-exist") is None
        assert SessionStore.get("") is None
        assert SessionStore.get(None) is None

    def test_get_unreadable_payload(self, redis_store):
        """Test a corrupted payload is treated as no session."""
        redis_store.store["session:broken"] = '{"discord_user_id": "1"}'

        assert SessionStore.get("broken") is None

    def test_delete(self, redis_store, admin_user):
        sid = SessionStore.create(admin_user)

        SessionStore.delete(sid)

        assert SessionStore.get(sid) is None
        assert redis_store.store == {}

    def test_delete_empty_sid_is_noop(self, redis_store):
        SessionStore.delete(None)
        SessionStore.delete("")

        assert redis_store.store == {}


class TestSessionUser:
    """Test SessionUser flags."""

    def test_is_staff(self, member_user, head_user, admin_user):
        assert member_user.is_staff is False
        assert head_user.is_staff is True
        assert admin_user.is_staff is True

    def test_guild_bounds(self):
        with pytest.raises(ValidationError):
            SessionUser(discord_user_id="1", display_name="x", guild=4)
