# =============================================================================
# core/roles.py - Discord Role Resolution
# =============================================================================
# Maps a member's Discord role ids to an in-game guild number (1-3) and to
# the admin / head / club flags used by the route guards.
#
# The lookup is a fixed priority order over configured role ids:
#   HEAD_1, HEAD_2, HEAD_3, MEMBER_1, MEMBER_2, MEMBER_3
# so a head of guild 2 who still carries the MEMBER_1 role resolves to 2.
#
# Usage:
#   from core.roles import get_role_map
#   roles = get_role_map()
#   guild = roles.resolve_guild(["1234", "5678"])
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

from app.config import Settings, settings

GUILD_NUMBERS = (1, 2, 3)


def _has(roles: Iterable[str], role_id: str) -> bool:
    # Unset role ids are empty strings and must never match.
    return bool(role_id) and role_id in roles


@dataclass(frozen=True)
class RoleMap:
    """Configured Discord role ids."""

    admin: str
    heads: tuple[str, str, str]
    members: tuple[str, str, str]
    club: str

    @classmethod
    def from_settings(cls, config: Settings) -> "RoleMap":
        return cls(
            admin=config.DISCORD_ADMIN_ROLE_ID,
            heads=(
                config.DISCORD_HEAD_1_ROLE_ID,
                config.DISCORD_HEAD_2_ROLE_ID,
                config.DISCORD_HEAD_3_ROLE_ID,
            ),
            members=(
                config.DISCORD_MEMBER_1_ROLE_ID,
                config.DISCORD_MEMBER_2_ROLE_ID,
                config.DISCORD_MEMBER_3_ROLE_ID,
            ),
            club=config.DISCORD_CLUB_ROLE_ID,
        )

    def resolve_guild(self, roles: Iterable[str]) -> int | None:
        """
        Return the guild number (1-3) the roles map to, or None.

        Head roles win over member roles; within each group the lower
        guild number wins.
        """
        roles = set(roles)
        for role_ids in (self.heads, self.members):
            for guild, role_id in zip(GUILD_NUMBERS, role_ids):
                if _has(roles, role_id):
                    return guild
        return None

    def is_admin(self, roles: Iterable[str]) -> bool:
        return _has(set(roles), self.admin)

    def is_head(self, roles: Iterable[str]) -> bool:
        roles = set(roles)
        return any(_has(roles, role_id) for role_id in self.heads)

    def is_club(self, roles: Iterable[str]) -> bool:
        return _has(set(roles), self.club)

    def member_role_for(self, guild: int) -> str:
        """
        Member role id for a guild number.

        Raises:
            ValueError: If guild is not 1, 2 or 3
        """
        if guild not in GUILD_NUMBERS:
            raise ValueError(f"guild must be 1, 2 or 3, got {guild!r}")
        return self.members[guild - 1]


@lru_cache
def get_role_map() -> RoleMap:
    """Role map built from the global settings (cached)."""
    return RoleMap.from_settings(settings)
