# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication and authorization.
#
# The session id travels in an httpOnly cookie (AUTH_COOKIE_NAME) and is
# resolved against the Redis session store on every request.
#
# Guards:
# - get_current_user:          any signed-in user, else 401
# - get_current_user_optional: signed-in user or None
# - require_staff:             admin or guild head, else 403
# - require_admin:             super admin only, else 403
#
# Usage:
#   from app.auth import CurrentUser, StaffUser
#
#   @router.get("/protected")
#   async def protected(user: CurrentUser):
#       return {"guild": user.guild}
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import Depends, Request

from app.config import settings
from app.exceptions import ForbiddenError, NotAuthenticatedError
from lib.session_store import SessionStore, SessionUser
from lib.utils import to_positive_int

logger = logging.getLogger(__name__)


def session_id_from(request: Request) -> str | None:
    """Read the session id from the auth cookie."""
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


async def get_current_user_optional(request: Request) -> SessionUser | None:
    """
    Resolve the session cookie to a user, or None.

    Useful for endpoints that behave differently for anonymous callers.
    """
    return SessionStore.get(session_id_from(request))


async def get_current_user(
    user: SessionUser | None = Depends(get_current_user_optional),
) -> SessionUser:
    """
    Require a signed-in user.

    Raises:
        NotAuthenticatedError: 401 if the cookie is missing or the session
            has expired
    """
    if user is None:
        raise NotAuthenticatedError()
    return user


async def require_staff(
    user: SessionUser = Depends(get_current_user),
) -> SessionUser:
    """
    Require an admin or a guild head.

    Raises:
        ForbiddenError: 403 for plain members
    """
    if not user.is_staff:
        logger.warning(f"Staff route denied for Discord user {user.discord_user_id}")
        raise ForbiddenError("staff")
    return user


async def require_admin(
    user: SessionUser = Depends(get_current_user),
) -> SessionUser:
    """
    Require the super admin role.

    Raises:
        ForbiddenError: 403 for heads and plain members
    """
    if not user.is_admin:
        logger.warning(f"Admin route denied for Discord user {user.discord_user_id}")
        raise ForbiddenError("admin")
    return user


def scoped_guild(user: SessionUser, requested: Any = None) -> int:
    """
    Guild number a staff request is allowed to operate on.

    Admins may pick any guild 1-3 (falling back to their own when the
    request names none or an invalid one). Heads are always locked to
    their own guild, whatever they ask for.
    """
    if user.is_admin:
        guild = to_positive_int(requested)
        if guild in (1, 2, 3):
            return guild
    return user.guild


# Type aliases for route handlers
CurrentUser = Annotated[SessionUser, Depends(get_current_user)]
OptionalUser = Annotated[SessionUser | None, Depends(get_current_user_optional)]
StaffUser = Annotated[SessionUser, Depends(require_staff)]
AdminUser = Annotated[SessionUser, Depends(require_admin)]
