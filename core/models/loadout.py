# =============================================================================
# core/models/loadout.py - Member Loadout Schemas
# =============================================================================
# Enums and value types for what a member brings to war:
# - EquipmentType: the four skill-stone slots (1-4)
# - StoneColor: stone rarity, red / purple / gold
# - ElementLevels: internal-power element levels of one equipment set
# =============================================================================

from enum import Enum, IntEnum

from pydantic import BaseModel, Field


class EquipmentType(IntEnum):
    """Skill-stone slot of an `equipment_create` catalog row."""
    TYPE_1 = 1
    TYPE_2 = 2
    TYPE_3 = 3
    TYPE_4 = 4

    @classmethod
    def parse(cls, raw: object) -> "EquipmentType | None":
        try:
            number = float(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return None
        if number not in (1, 2, 3, 4):
            return None
        return cls(int(number))


class StoneColor(str, Enum):
    """Skill-stone rarity."""
    RED = "red"
    PURPLE = "purple"
    GOLD = "gold"

    @classmethod
    def parse(cls, raw: object) -> "StoneColor | None":
        """English names or their Thai equivalents, case-insensitive."""
        text = str(raw if raw is not None else "").strip().lower()
        return _COLOR_ALIASES.get(text)


_COLOR_ALIASES = {
    "red": StoneColor.RED,
    "แดง": StoneColor.RED,
    "purple": StoneColor.PURPLE,
    "ม่วง": StoneColor.PURPLE,
    "gold": StoneColor.GOLD,
    "ทอง": StoneColor.GOLD,
}


ELEMENT_KEYS = ("gold", "wood", "water", "fire", "earth")

# Each element level is 0..3 and one set may spend at most 7 levels in total
MAX_ELEMENT_LEVEL = 3
MAX_ELEMENT_SUM = 7

MAX_EQUIPMENT_SETS = 2


class ElementLevels(BaseModel):
    """
    Internal-power element levels of one equipment set.

    Range checks happen in the loadout service so that the error codes
    stay element_level_out_of_range / sum_level_exceed_7.
    """
    gold: int = 0
    wood: int = 0
    water: int = 0
    fire: int = 0
    earth: int = 0

    @property
    def total(self) -> int:
        return self.gold + self.wood + self.water + self.fire + self.earth


class SelectedStone(BaseModel):
    """One stone a member has equipped in a slot."""
    equipment_create_id: int = Field(..., gt=0)
    color: StoneColor


EQUIPMENT_SET_COLUMNS = "id, member_id, element, image, image_2, created_at, update_date"
