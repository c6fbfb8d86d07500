# =============================================================================
# app/auth/routes.py - Discord OAuth2 + Session Routes
# =============================================================================
# The login flow:
# 1. /auth/discord/start    - random state in a short-lived cookie, then off
#                             to Discord's consent screen (or the URL as JSON)
# 2. /auth/discord/callback - check state, exchange the code, look the user
#                             up in the Discord server, resolve their guild,
#                             store a session in Redis and set the cookie
# 3. /auth/logout           - drop the session and the cookie
#
# Every callback outcome clears the state cookie so it can't be replayed.
# The callback is a plain function: its Discord calls block, so it runs in
# the threadpool.
# =============================================================================

import logging
import secrets
from urllib.parse import urlencode

import httpx
import redis
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.auth.dependencies import OptionalUser, session_id_from
from app.auth.models import AuthorizeUrlResponse, MeResponse, MeUser
from app.config import settings
from app.exceptions import NotAuthenticatedError
from core.roles import get_role_map
from lib.discord_client import DiscordApiError, DiscordClient, avatar_url_of
from lib.session_store import SessionStore, SessionUser

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


# =============================================================================
# Helpers
# =============================================================================

def _login_redirect(**params: str) -> RedirectResponse:
    """Redirect to the login page with error details in the query string."""
    url = f"{settings.BASE_URL}/login"
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url=url, status_code=307)


def _set_state_cookie(response, state: str) -> None:
    response.set_cookie(
        settings.OAUTH_STATE_COOKIE_NAME,
        state,
        max_age=settings.OAUTH_STATE_TTL_SECONDS,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


def _clear_state_cookie(response) -> None:
    response.delete_cookie(settings.OAUTH_STATE_COOKIE_NAME, path="/")


def _session_user_from_discord(user: dict, member: dict) -> SessionUser | None:
    """
    Build the session record for a Discord user who passed the guild check.

    Returns None when none of the member's roles map to a guild.
    """
    roles = get_role_map()
    member_roles = member.get("roles") or []

    guild = roles.resolve_guild(member_roles)
    if guild is None:
        return None

    user_id = str(user["id"])
    return SessionUser(
        discord_user_id=user_id,
        display_name=member.get("nick") or user.get("global_name") or user.get("username") or user_id,
        avatar_url=avatar_url_of(user_id, user.get("avatar")),
        guild=guild,
        is_admin=roles.is_admin(member_roles),
        is_head=roles.is_head(member_roles),
        roles=list(member_roles),
    )


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/auth/discord/start")
async def discord_start(mode: str | None = None):
    """
    Begin Discord login.

    With `?mode=url` the authorize URL is returned as JSON (for clients
    that open it themselves); otherwise the browser is redirected.
    """
    state = secrets.token_hex(16)
    authorize_url = DiscordClient.authorize_url(state)

    if mode == "url":
        response = JSONResponse(
            AuthorizeUrlResponse(authorize_url=authorize_url).model_dump(by_alias=True)
        )
    else:
        response = RedirectResponse(url=authorize_url, status_code=307)

    _set_state_cookie(response, state)
    return response


@router.get("/auth/discord/callback")
def discord_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
):
    """
    Handle the redirect back from Discord.

    Redirects to /me on success, or to /login with an `error` query
    parameter (missing_code, auth_failed, not_in_guild).
    """
    if not code:
        response = _login_redirect(error="missing_code")
        _clear_state_cookie(response)
        return response

    expected_state = request.cookies.get(settings.OAUTH_STATE_COOKIE_NAME)
    if not state or not expected_state or not secrets.compare_digest(state.encode(), expected_state.encode()):
        logger.warning("OAuth state mismatch on Discord callback")
        response = _login_redirect(error="auth_failed", msg="state_mismatch")
        _clear_state_cookie(response)
        return response

    try:
        token = DiscordClient.exchange_code_for_token(code)
        access_token = token.get("access_token")
        if not access_token:
            raise DiscordApiError(502, "Discord token exchange returned no access token")

        user = DiscordClient.fetch_user(access_token)
        member = DiscordClient.fetch_guild_member(str(user["id"]))

        session_user = None
        if member and member.get("in_guild"):
            session_user = _session_user_from_discord(user, member)

        if session_user is None:
            logger.info(f"Discord user {user.get('id')} is not in a guild")
            response = _login_redirect(error="not_in_guild")
            _clear_state_cookie(response)
            return response

        sid = SessionStore.create(session_user)
    except (DiscordApiError, httpx.HTTPError, redis.RedisError, KeyError, ValueError) as e:
        # KeyError/ValueError: Discord payloads missing fields or failing validation
        logger.error(f"Discord auth failed: {e}")
        response = _login_redirect(error="auth_failed", msg=str(e) or "unknown")
        _clear_state_cookie(response)
        return response

    logger.info(
        f"Signed in Discord user {session_user.discord_user_id} "
        f"(guild {session_user.guild}, admin={session_user.is_admin}, head={session_user.is_head})"
    )

    response = RedirectResponse(url=f"{settings.BASE_URL}/me", status_code=307)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        sid,
        max_age=settings.SESSION_TTL_SECONDS,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    _clear_state_cookie(response)
    return response


@router.post("/auth/logout")
async def logout(request: Request):
    """Delete the session and send the browser back to the login page."""
    SessionStore.delete(session_id_from(request))

    response = RedirectResponse(url=f"{settings.BASE_URL}/login", status_code=303)
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return response


@router.get("/me")
async def me(user: OptionalUser):
    """
    Get the signed-in user.

    Raises:
        401: If there is no valid session
    """
    if user is None:
        raise NotAuthenticatedError()
    return MeResponse(user=MeUser.from_session(user)).model_dump(by_alias=True)
