# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Swaps Supabase and Redis for the in-memory fakes in tests/fakes.py
# - Provides a TestClient and a helper to sign users in
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("BASE_URL", "http://testserver")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

os.environ.setdefault("DISCORD_CLIENT_ID", "client-id")
os.environ.setdefault("DISCORD_CLIENT_SECRET", "client-secret")
os.environ.setdefault("DISCORD_GUILD_ID", "555")
os.environ.setdefault("DISCORD_REDIRECT_URI", "http://testserver/api/auth/discord/callback")
os.environ.setdefault("DISCORD_BOT_TOKEN", "bot-token")

os.environ.setdefault("DISCORD_ADMIN_ROLE_ID", "900")
os.environ.setdefault("DISCORD_HEAD_1_ROLE_ID", "101")
os.environ.setdefault("DISCORD_HEAD_2_ROLE_ID", "102")
os.environ.setdefault("DISCORD_HEAD_3_ROLE_ID", "103")
os.environ.setdefault("DISCORD_MEMBER_1_ROLE_ID", "201")
os.environ.setdefault("DISCORD_MEMBER_2_ROLE_ID", "202")
os.environ.setdefault("DISCORD_MEMBER_3_ROLE_ID", "203")
os.environ.setdefault("DISCORD_CLUB_ROLE_ID", "300")

os.environ.setdefault("CRON_SECRET", "cron-secret")
os.environ.setdefault("ADMIN_SYNC_SECRET", "admin-secret")

import pytest
from fastapi.testclient import TestClient

from lib.session_store import SessionStore, SessionUser
from lib.supabase_client import SupabaseClient
from tests.fakes import FakeRedis, FakeSupabase


# =============================================================================
# Backend Fakes
# =============================================================================

@pytest.fixture(autouse=True)
def db(monkeypatch):
    """Fresh in-memory Supabase for every test."""
    fake = FakeSupabase()
    monkeypatch.setattr(SupabaseClient, "_instance", fake)
    return fake


@pytest.fixture(autouse=True)
def redis_store(monkeypatch):
    """Fresh in-memory Redis for the session store."""
    fake = FakeRedis()
    monkeypatch.setattr(SessionStore, "_redis", fake)
    return fake


# =============================================================================
# Users
# =============================================================================

def make_user(**overrides) -> SessionUser:
    """A plain guild-1 member unless overridden."""
    data = {
        "discord_user_id": "111",
        "display_name": "Ember",
        "avatar_url": None,
        "guild": 1,
        "is_admin": False,
        "is_head": False,
        "roles": ["201"],
    }
    data.update(overrides)
    return SessionUser(**data)


@pytest.fixture
def member_user() -> SessionUser:
    return make_user()


@pytest.fixture
def head_user() -> SessionUser:
    return make_user(discord_user_id="222", display_name="Head Two", guild=2, is_head=True, roles=["102"])


@pytest.fixture
def admin_user() -> SessionUser:
    return make_user(discord_user_id="999", display_name="Boss", guild=1, is_admin=True, roles=["900", "201"])


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client():
    """TestClient that leaves redirects for the test to inspect."""
    from app.main import app

    return TestClient(app, follow_redirects=False)


@pytest.fixture
def login(client):
    """
    Sign a user in by writing a session and setting the cookie.

    Usage:
        login(admin_user)
        client.get("/api/admin/members")
    """
    from app.config import settings

    def _login(user: SessionUser) -> str:
        sid = SessionStore.create(user)
        client.cookies.set(settings.AUTH_COOKIE_NAME, sid)
        return sid

    return _login
