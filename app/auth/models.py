# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field

from lib.session_store import SessionUser


class MeUser(BaseModel):
    """
    Public view of the signed-in user.

    Field names are camelCase on the wire; the dashboards read them as-is.
    """
    discord_user_id: str = Field(..., serialization_alias="discordUserId")
    display_name: str = Field(..., serialization_alias="displayName")
    avatar_url: str | None = Field(default=None, serialization_alias="avatarUrl")
    guild: int
    is_admin: bool = Field(..., serialization_alias="isAdmin")
    is_head: bool = Field(..., serialization_alias="isHead")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_session(cls, user: SessionUser) -> "MeUser":
        return cls(
            discord_user_id=user.discord_user_id,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            guild=user.guild,
            is_admin=user.is_admin,
            is_head=user.is_head,
        )


class MeResponse(BaseModel):
    """Response for GET /api/me."""
    ok: bool = True
    user: MeUser


class AuthorizeUrlResponse(BaseModel):
    """Response for GET /api/auth/discord/start?mode=url."""
    authorize_url: str = Field(..., serialization_alias="authorizeUrl")


__all__ = ["SessionUser", "MeUser", "MeResponse", "AuthorizeUrlResponse"]
