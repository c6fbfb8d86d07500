# =============================================================================
# core/models/member.py - Member Schemas
# =============================================================================
# Enums and column lists for the `member` table and its admin views:
# - MemberStatus: active / inactive (null in the table counts as active)
# - WarTime: the two guild-war rounds a party assignment can target
# - Select strings shared by the roster endpoints
# =============================================================================

from enum import Enum


class MemberStatus(str, Enum):
    """
    Roster status written by the Discord member sync.

    Rows with a null status predate the sync and are treated as active.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"


class WarTime(str, Enum):
    """
    Guild-war round.

    Each round has its own party / position columns on the member row.
    """
    FIRST = "20:00"
    SECOND = "20:30"

    @classmethod
    def parse(cls, raw: object) -> "WarTime":
        """Accept "20:00", "20:30" or "20.30"; anything else is the first round."""
        text = str(raw if raw is not None else "").strip().replace(".", ":")
        for value in cls:
            if value.value == text:
                return value
        return cls.FIRST

    @property
    def party_column(self) -> str:
        return "party" if self is WarTime.FIRST else "party_2"

    @property
    def position_column(self) -> str:
        return "pos_party" if self is WarTime.FIRST else "pos_party_2"


# Columns returned to the member self-service page
MEMBER_SELF_COLUMNS = "id, discord_user_id, name, power, is_special, guild, class_id"

# Roster columns with the class join the admin tables render
MEMBER_WITH_CLASS_COLUMNS = (
    "id, name, class_id, power, party, party_2, pos_party, pos_party_2, color, "
    "is_special, guild, club, discord_user_id, status, special_text, remark, update_date, "
    "class:class!member_class_id_fkey(id, name, icon_url)"
)

# Lighter roster used by the club war builder
CLUB_ROSTER_COLUMNS = "id, name, power, class_id, guild, is_special, status, color, club, update_date"

# Basics shown on the admin member detail drawer
MEMBER_DETAIL_COLUMNS = "id, name, guild, class_id, power, discord_user_id, status, update_date"

