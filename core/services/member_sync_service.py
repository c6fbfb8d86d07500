# =============================================================================
# core/services/member_sync_service.py - Discord -> member Table Sync
# =============================================================================
# Mirrors the Discord server into the member table:
# 1. Pull every guild member with the bot token
# 2. Keep the ones whose roles resolve to a guild (1..3)
# 3. Upsert them on discord_user_id as active, keeping the profile fields
#    members edit themselves (class_id, power, is_special, color)
# 4. Mark active members that lost their guild role as inactive
#
# Triggered by the admin sync endpoint, the cron endpoint and Celery beat.
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import ConfigurationError
from core.models.member import MemberStatus
from core.roles import GUILD_NUMBERS, get_role_map
from lib.discord_client import DiscordClient, display_name_of
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# Profile fields owned by the member, with defaults for new rows
PRESERVED_DEFAULTS: dict[str, Any] = {
    "class_id": 0,
    "power": 0,
    "is_special": False,
    "color": None,
}


def _roles_of(member: dict[str, Any]) -> list[str]:
    roles = member.get("roles")
    return [str(r) for r in roles] if isinstance(roles, list) else []


def eligible_rows(guild_members: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Member rows for every Discord member that belongs to a guild.

    Members whose roles resolve to no guild, or that carry no user id,
    are skipped. Repeated user ids keep the last occurrence.
    """
    role_map = get_role_map()
    rows: dict[str, dict[str, Any]] = {}

    for member in guild_members:
        roles = _roles_of(member)
        guild = role_map.resolve_guild(roles)
        user_id = (member.get("user") or {}).get("id")
        if guild is None or not user_id:
            continue

        rows[str(user_id)] = {
            "discord_user_id": str(user_id),
            "name": display_name_of(member),
            "guild": guild,
            "club": role_map.is_club(roles),
        }

    return list(rows.values())


class MemberSyncService:
    """Service for reconciling the member table with Discord."""

    @staticmethod
    def _require_bot() -> None:
        if not settings.DISCORD_BOT_TOKEN:
            raise ConfigurationError("DISCORD_BOT_TOKEN")
        if not settings.DISCORD_GUILD_ID:
            raise ConfigurationError("DISCORD_GUILD_ID")

    @staticmethod
    def sync() -> dict[str, Any]:
        """
        Run one full sync.

        Returns:
            {"ok": True, "eligible": int, "inactivated": int}

        Raises:
            ConfigurationError: If the bot token or guild id is missing
            DiscordApiError: If listing guild members fails
            SupabaseClientError: If any query fails
        """
        MemberSyncService._require_bot()

        eligible = eligible_rows(DiscordClient.list_guild_members())
        eligible_ids = [row["discord_user_id"] for row in eligible]
        client = SupabaseClient.get_client()

        existing: dict[str, dict[str, Any]] = {}
        if eligible_ids:
            for row in SupabaseClient.rows(
                client.table("member")
                .select("discord_user_id, class_id, power, is_special, color")
                .in_("discord_user_id", eligible_ids),
                action="load existing members",
            ):
                if row.get("discord_user_id"):
                    existing[str(row["discord_user_id"])] = row

        payload = []
        for row in eligible:
            previous = existing.get(row["discord_user_id"], {})
            kept = {
                field: previous[field] if previous.get(field) is not None else default
                for field, default in PRESERVED_DEFAULTS.items()
            }
            payload.append({**row, **kept, "status": MemberStatus.ACTIVE.value})

        if payload:
            SupabaseClient.execute(
                client.table("member").upsert(payload, on_conflict="discord_user_id"),
                action="upsert synced members",
            )

        eligible_set = set(eligible_ids)
        active = SupabaseClient.rows(
            client.table("member")
            .select("id, discord_user_id")
            .not_.is_("discord_user_id", "null")
            .eq("status", MemberStatus.ACTIVE.value),
            action="load active members",
        )
        stale_ids = [
            row["id"]
            for row in active
            if row.get("discord_user_id") and str(row["discord_user_id"]) not in eligible_set
        ]

        if stale_ids:
            SupabaseClient.execute(
                client.table("member")
                .update({"status": MemberStatus.INACTIVE.value})
                .in_("id", stale_ids),
                action="inactivate members",
            )

        logger.info(f"Member sync: {len(payload)} eligible, {len(stale_ids)} inactivated")
        return {"ok": True, "eligible": len(payload), "inactivated": len(stale_ids)}

    @staticmethod
    def members_by_role(guild_no: int) -> dict[str, Any]:
        """
        Discord members holding a guild's member role.

        Deduplicated by user id and sorted by display name
        (case-insensitive).

        Raises:
            ValueError: If guild_no is not 1..3
            ConfigurationError: If the bot or the guild's role is not configured
        """
        if guild_no not in GUILD_NUMBERS:
            raise ValueError(f"guildNo must be one of {GUILD_NUMBERS}")

        MemberSyncService._require_bot()
        role_id = get_role_map().member_role_for(guild_no)
        if not role_id:
            raise ConfigurationError(f"DISCORD_MEMBER_{guild_no}_ROLE_ID")

        seen: dict[str, dict[str, Any]] = {}
        for member in DiscordClient.list_guild_members():
            if role_id not in _roles_of(member):
                continue
            user = member.get("user") or {}
            user_id = user.get("id")
            if not user_id or str(user_id) in seen:
                continue
            seen[str(user_id)] = {
                "user_id": str(user_id),
                "username": user.get("username"),
                "global_name": user.get("global_name"),
                "nick": member.get("nick"),
                "display_name": display_name_of(member, fallback="unknown"),
            }

        members = sorted(seen.values(), key=lambda m: m["display_name"].casefold())
        return {
            "guildNo": guild_no,
            "roleId": role_id,
            "count": len(members),
            "members": members,
        }
