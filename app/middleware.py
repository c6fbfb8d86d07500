# =============================================================================
# app/middleware.py - Page Gate Middleware
# =============================================================================
# Guards the dashboard pages before any route runs:
# - /me and /me/*       need a valid session
# - /admin and /admin/* need a valid session of an admin or guild head
#
# Anonymous or expired sessions go to /login?next=<path>; signed-in members
# who open an admin page go to /me?error=forbidden. API routes are not
# gated here; they use the dependencies in app.auth.
# =============================================================================

import logging
from typing import Any
from urllib.parse import urlencode

import redis
from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.auth.dependencies import session_id_from
from lib.session_store import SessionStore

logger = logging.getLogger(__name__)

MEMBER_PREFIX = "/me"
ADMIN_PREFIX = "/admin"


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def _redirect(path: str, **params: str) -> RedirectResponse:
    return RedirectResponse(url=f"{path}?{urlencode(params)}", status_code=307)


class PageGateMiddleware(BaseHTTPMiddleware):
    """Redirects requests for gated pages that the session may not see."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        path = request.url.path
        is_admin_page = _under(path, ADMIN_PREFIX)

        if not is_admin_page and not _under(path, MEMBER_PREFIX):
            return await call_next(request)

        try:
            user = SessionStore.get(session_id_from(request))
        except redis.RedisError as e:
            logger.error(f"Session lookup failed for {path}: {e}")
            user = None

        if user is None:
            return _redirect("/login", next=path)

        if is_admin_page and not user.is_staff:
            logger.warning(f"Discord user {user.discord_user_id} denied admin page {path}")
            return _redirect(MEMBER_PREFIX, error="forbidden")

        return await call_next(request)
