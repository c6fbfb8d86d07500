# =============================================================================
# lib/session_store.py - Redis Session Store
# =============================================================================
# Maps an opaque session id (the value of the auth cookie) to the signed-in
# Discord user. Sessions live in Redis under `session:<sid>` and expire
# after SESSION_TTL_SECONDS.
#
# Usage:
#   from lib.session_store import SessionStore, SessionUser
#   sid = SessionStore.create(user)
#   user = SessionStore.get(sid)
# =============================================================================

from __future__ import annotations

import logging
import secrets

import redis
from pydantic import BaseModel, Field, ValidationError

from app.config import settings

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"


class SessionUser(BaseModel):
    """
    The user record stored behind a session id.

    guild is the in-game alliance (1-3) resolved from Discord roles at
    login time, not the Discord server.
    """
    discord_user_id: str
    display_name: str
    avatar_url: str | None = None
    guild: int = Field(..., ge=1, le=3)

    # Super admin: every guild, every admin action
    is_admin: bool = False

    # Head: admin pages, locked to own guild
    is_head: bool = False

    roles: list[str] = Field(default_factory=list)

    @property
    def is_staff(self) -> bool:
        return self.is_admin or self.is_head


def new_session_id() -> str:
    """Return a fresh session id: 32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)


def _key(sid: str) -> str:
    return f"{SESSION_KEY_PREFIX}{sid}"


class SessionStore:
    """
    Redis-backed session storage.

    Same singleton shape as SupabaseClient: one Redis connection pool,
    class methods only.
    """

    _redis: redis.Redis | None = None

    @classmethod
    def get_redis(cls) -> redis.Redis:
        """Get or create the singleton Redis client."""
        if cls._redis is None:
            cls._redis = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
            logger.info("Redis session client initialized")
        return cls._redis

    @classmethod
    def create(cls, user: SessionUser) -> str:
        """
        Store a new session for the user.

        Returns:
            The new session id (to be written into the auth cookie)
        """
        sid = new_session_id()
        cls.get_redis().set(
            _key(sid),
            user.model_dump_json(),
            ex=settings.SESSION_TTL_SECONDS,
        )
        logger.info(f"Created session for Discord user {user.discord_user_id}")
        return sid

    @classmethod
    def get(cls, sid: str | None) -> SessionUser | None:
        """
        Look up a session.

        Returns None for an empty sid, an expired/unknown sid, or a stored
        value that no longer parses.
        """
        if not sid:
            return None

        raw = cls.get_redis().get(_key(sid))
        if raw is None:
            return None

        try:
            return SessionUser.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable session payload: {e}")
            return None

    @classmethod
    def delete(cls, sid: str | None) -> None:
        if not sid:
            return
        cls.get_redis().delete(_key(sid))
