# =============================================================================
# app/routers/discord.py - Discord Lookup Endpoints
# =============================================================================

from fastapi import APIRouter, Query

from app.auth import StaffUser
from app.exceptions import BadRequestError
from core.services.member_sync_service import MemberSyncService
from lib.utils import to_positive_int

router = APIRouter()


@router.get("/members-by-role")
def members_by_role(
    user: StaffUser,
    guild_no: str | None = Query(default=None, alias="guildNo"),
    guild: str | None = Query(default=None),
):
    """
    Discord members holding a guild's member role.

    `guildNo` (or `guild`) picks the guild, defaulting to 1.

    Raises:
        400: invalid_guild_no if it isn't 1, 2 or 3
    """
    number = to_positive_int(guild_no or guild or "1")
    if number not in (1, 2, 3):
        raise BadRequestError("invalid_guild_no", message="guildNo must be 1, 2 or 3")

    return MemberSyncService.members_by_role(number)
