"""
Enumerations for the Cartridge Engine.

This module provides the enum types shared by the header parser,
the randomizer and the save synthesizer.
"""

from __future__ import annotations

from enum import Enum, IntEnum


# =============================================================================
# Cartridge Enums
# =============================================================================

class Platform(str, Enum):
    """Handheld family a cartridge image belongs to."""
    GB = "GB"
    GBC = "GBC"
    GBA = "GBA"

    @property
    def is_game_boy(self) -> bool:
        """True for the 8-bit GB/GBC family."""
        return self in (Platform.GB, Platform.GBC)


class Gen3Family(str, Enum):
    """Gen 3 save layouts. Ruby/Sapphire and Emerald share most offsets."""
    RUBY_SAPPHIRE = "RS"
    EMERALD = "E"
    FIRERED_LEAFGREEN = "FRLG"


# =============================================================================
# Pokemon Enums
# =============================================================================

class SubstructureType(IntEnum):
    """Gen 3 Pokemon substructure block types."""
    GROWTH = 0
    ATTACKS = 1
    EVS = 2
    MISC = 3


class TrainerGender(IntEnum):
    """Player character gender as stored in save data."""
    MALE = 0
    FEMALE = 1


class GrowthRate(str, Enum):
    """Experience curves. Only the level-5 value is needed for new saves."""
    ERRATIC = "erratic"
    FAST = "fast"
    MEDIUM_FAST = "medium-fast"
    MEDIUM_SLOW = "medium-slow"
    SLOW = "slow"
    FLUCTUATING = "fluctuating"

    def experience_at(self, level: int) -> int:
        """
        Total experience needed to reach a level.

        Args:
            level: Target level (1-100)

        Returns:
            Experience points, never negative
        """
        n = level
        if self is GrowthRate.FAST:
            exp = (4 * n ** 3) // 5
        elif self is GrowthRate.MEDIUM_SLOW:
            exp = (6 * n ** 3) // 5 - 15 * n ** 2 + 100 * n - 140
        elif self is GrowthRate.SLOW:
            exp = (5 * n ** 3) // 4
        elif self is GrowthRate.ERRATIC:
            if n <= 50:
                exp = (n ** 3 * (100 - n)) // 50
            elif n <= 68:
                exp = (n ** 3 * (150 - n)) // 100
            elif n <= 98:
                exp = (n ** 3 * ((1911 - 10 * n) // 3)) // 500
            else:
                exp = (n ** 3 * (160 - n)) // 100
        elif self is GrowthRate.FLUCTUATING:
            if n <= 15:
                exp = (n ** 3 * ((n + 1) // 3 + 24)) // 50
            elif n <= 36:
                exp = (n ** 3 * (n + 14)) // 50
            else:
                exp = (n ** 3 * (n // 2 + 32)) // 50
        else:
            exp = n ** 3
        return max(exp, 0)


class Stat(IntEnum):
    """Stat order used by nature modifiers and IV packing."""
    HP = 0
    ATTACK = 1
    DEFENSE = 2
    SPEED = 3
    SP_ATTACK = 4
    SP_DEFENSE = 5
