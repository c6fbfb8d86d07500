# =============================================================================
# lib/discord_client.py - Discord REST Client
# =============================================================================
# Thin wrapper over the Discord HTTP API used for:
# - OAuth2 login (authorize URL, code exchange, /users/@me)
# - Guild membership checks with the bot token
# - Listing every guild member for the member sync
#
# Usage:
#   from lib.discord_client import DiscordClient
#   token = DiscordClient.exchange_code_for_token(code)
#   user = DiscordClient.fetch_user(token["access_token"])
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

DISCORD_API = "https://discord.com/api/v10"
DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
DISCORD_CDN = "https://cdn.discordapp.com"

# Discord's maximum page size for GET /guilds/{id}/members
MEMBER_PAGE_LIMIT = 1000

REQUEST_TIMEOUT = 10.0


class DiscordApiError(ApplicationError):
    """Raised when Discord answers with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(
            message=message,
            code="DISCORD_API_ERROR",
            details={"status": status},
        )
        self.status = status


def _http_client() -> httpx.Client:
    return httpx.Client(base_url=DISCORD_API, timeout=REQUEST_TIMEOUT)


def _raise_for_status(response: httpx.Response, what: str) -> None:
    if response.is_success:
        return
    body = response.text[:200]
    logger.warning(f"Discord {what} failed: {response.status_code} {body}")
    raise DiscordApiError(response.status_code, f"Discord {what} failed: {response.status_code}")


def _json_of(response: httpx.Response, what: str) -> Any:
    try:
        return response.json()
    except ValueError:
        logger.warning(f"Discord {what} returned a non-JSON body: {response.text[:200]}")
        raise DiscordApiError(502, f"Discord {what} returned an invalid response")


def avatar_url_of(user_id: str, avatar_hash: str | None) -> str | None:
    """CDN URL of a user's avatar, or None when the user has no avatar."""
    if not avatar_hash:
        return None
    return f"{DISCORD_CDN}/avatars/{user_id}/{avatar_hash}.png"


def display_name_of(member: dict[str, Any], fallback: str = "Unknown") -> str:
    """
    Name shown in the app for a guild member object.

    Server nickname first, then the global display name, then the
    username.
    """
    user = member.get("user") or {}
    return str(
        member.get("nick")
        or user.get("global_name")
        or user.get("username")
        or fallback
    )


class DiscordClient:
    """
    Discord API operations.

    All methods are static; a short-lived httpx client is opened per call.
    """

    # -------------------------------------------------------------------------
    # OAuth2
    # -------------------------------------------------------------------------

    @staticmethod
    def authorize_url(state: str) -> str:
        """Build the consent-screen URL for the identify scope."""
        params = {
            "client_id": settings.DISCORD_CLIENT_ID,
            "redirect_uri": settings.DISCORD_REDIRECT_URI,
            "response_type": "code",
            "scope": "identify",
            "state": state,
            # Force the consent screen even if the app was authorized before
            "prompt": "consent",
        }
        return f"{DISCORD_AUTHORIZE_URL}?{urlencode(params)}"

    @staticmethod
    def exchange_code_for_token(code: str) -> dict[str, Any]:
        """
        Exchange an OAuth2 authorization code for an access token.

        Raises:
            DiscordApiError: If Discord rejects the code
        """
        data = {
            "client_id": settings.DISCORD_CLIENT_ID,
            "client_secret": settings.DISCORD_CLIENT_SECRET,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": settings.DISCORD_REDIRECT_URI,
        }
        with _http_client() as client:
            response = client.post(
                "/oauth2/token",
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        _raise_for_status(response, "token exchange")
        return _json_of(response, "token exchange")

    @staticmethod
    def fetch_user(access_token: str) -> dict[str, Any]:
        """GET /users/@me with the user's bearer token."""
        with _http_client() as client:
            response = client.get(
                "/users/@me",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        _raise_for_status(response, "/users/@me")
        return _json_of(response, "/users/@me")

    # -------------------------------------------------------------------------
    # Bot Endpoints
    # -------------------------------------------------------------------------

    @staticmethod
    def _bot_headers() -> dict[str, str]:
        return {"Authorization": f"Bot {settings.DISCORD_BOT_TOKEN}"}

    @staticmethod
    def fetch_guild_member(discord_user_id: str) -> dict[str, Any] | None:
        """
        Look up a user in the configured Discord server.

        Returns:
            None if the bot token or guild id is not configured, otherwise
            {"in_guild": bool, "roles": [...], "nick": str | None}.
            A 404 from Discord means the user is not in the server.

        Raises:
            DiscordApiError: For any other non-2xx response
        """
        if not settings.DISCORD_BOT_TOKEN or not settings.DISCORD_GUILD_ID:
            logger.warning("Guild member check skipped: bot token or guild id not configured")
            return None

        with _http_client() as client:
            response = client.get(
                f"/guilds/{settings.DISCORD_GUILD_ID}/members/{discord_user_id}",
                headers=DiscordClient._bot_headers(),
            )

        if response.status_code == 404:
            return {"in_guild": False, "roles": [], "nick": None}
        _raise_for_status(response, "guild member check")

        data = _json_of(response, "guild member check")
        return {
            "in_guild": True,
            "roles": [str(r) for r in data.get("roles") or []],
            "nick": data.get("nick"),
        }

    @staticmethod
    def list_guild_members(guild_id: str | None = None) -> list[dict[str, Any]]:
        """
        Fetch every member of a Discord server.

        Pages through GET /guilds/{id}/members with limit=1000 and
        after=<last user id> until a short page comes back.

        Raises:
            DiscordApiError: On any non-2xx page
        """
        guild_id = guild_id or settings.DISCORD_GUILD_ID
        members: list[dict[str, Any]] = []
        after = "0"

        with _http_client() as client:
            while True:
                response = client.get(
                    f"/guilds/{guild_id}/members",
                    params={"limit": MEMBER_PAGE_LIMIT, "after": after},
                    headers=DiscordClient._bot_headers(),
                )
                _raise_for_status(response, "guild member list")

                page = _json_of(response, "guild member list")
                members.extend(page)
                if len(page) < MEMBER_PAGE_LIMIT:
                    break

                last_id = (page[-1].get("user") or {}).get("id")
                if not last_id:
                    break
                after = str(last_id)

        logger.info(f"Fetched {len(members)} members from Discord guild {guild_id}")
        return members
