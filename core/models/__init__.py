# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains enums and Pydantic schemas for the guild tables:
# - member.py: Member status, war rounds and roster column lists
# - leave.py: Leave status and leave request bodies
# - loadout.py: Skill-stone slots/colors and equipment-set element levels
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Member Models
# -----------------------------------------------------------------------------
from .member import (
    CLUB_ROSTER_COLUMNS,
    MEMBER_DETAIL_COLUMNS,
    MEMBER_SELF_COLUMNS,
    MEMBER_WITH_CLASS_COLUMNS,
    MemberStatus,
    WarTime,
)

# -----------------------------------------------------------------------------
# Leave Models
# -----------------------------------------------------------------------------
from .leave import (
    LeaveCancelRequest,
    LeaveCreateRequest,
    LeaveRow,
    LeaveStatus,
)

# -----------------------------------------------------------------------------
# Loadout Models
# -----------------------------------------------------------------------------
from .loadout import (
    ELEMENT_KEYS,
    EQUIPMENT_SET_COLUMNS,
    MAX_ELEMENT_LEVEL,
    MAX_ELEMENT_SUM,
    MAX_EQUIPMENT_SETS,
    ElementLevels,
    EquipmentType,
    SelectedStone,
    StoneColor,
)

__all__ = [
    # Member
    "CLUB_ROSTER_COLUMNS",
    "MEMBER_DETAIL_COLUMNS",
    "MEMBER_SELF_COLUMNS",
    "MEMBER_WITH_CLASS_COLUMNS",
    "MemberStatus",
    "WarTime",
    # Leave
    "LeaveCancelRequest",
    "LeaveCreateRequest",
    "LeaveRow",
    "LeaveStatus",
    # Loadout
    "ELEMENT_KEYS",
    "EQUIPMENT_SET_COLUMNS",
    "MAX_ELEMENT_LEVEL",
    "MAX_ELEMENT_SUM",
    "MAX_EQUIPMENT_SETS",
    "ElementLevels",
    "EquipmentType",
    "SelectedStone",
    "StoneColor",
]
