"""
Gen 1 Species ID Translation.

Red/Blue/Yellow store species as "internal" index bytes that follow the
order the species were added during development, not the Pokedex order.
Every species byte read from or written to a Gen 1 buffer must go through
this module. Gen 2 and Gen 3 store National Dex numbers directly.

Ref: https://bulbapedia.bulbagarden.net/wiki/List_of_Pok%C3%A9mon_by_index_number_in_Generation_I
"""

from __future__ import annotations

from typing import Dict, Optional

from .core.exceptions import UnsupportedSpeciesError

# Internal index of National Dex #1..#151, in Dex order.
GEN1_INTERNAL_IDS = (
    0x99, 0x09, 0x9A, 0xB0, 0xB2, 0xB4, 0xB1, 0xB3, 0x1C, 0x7B,  # 1-10
    0x7C, 0x7D, 0x70, 0x71, 0x72, 0x24, 0x96, 0x97, 0xA5, 0xA6,  # 11-20
    0x05, 0x23, 0x6C, 0x2D, 0x54, 0x55, 0x60, 0x61, 0x0F, 0xA8,  # 21-30
    0x10, 0x03, 0xA7, 0x07, 0x04, 0x8E, 0x52, 0x53, 0x64, 0x65,  # 31-40
    0x6B, 0x82, 0xB9, 0xBA, 0xBB, 0x6D, 0x2E, 0x41, 0x77, 0x3B,  # 41-50
    0x76, 0x4D, 0x90, 0x2F, 0x80, 0x39, 0x75, 0x21, 0x14, 0x47,  # 51-60
    0x6E, 0x6F, 0x94, 0x26, 0x95, 0x6A, 0x29, 0x7E, 0xBC, 0xBD,  # 61-70
    0xBE, 0x18, 0x9B, 0xA9, 0x27, 0x31, 0xA3, 0xA4, 0x25, 0x08,  # 71-80
    0xAD, 0x36, 0x40, 0x46, 0x74, 0x3A, 0x78, 0x0D, 0x88, 0x17,  # 81-90
    0x8B, 0x19, 0x93, 0x0E, 0x22, 0x30, 0x81, 0x4E, 0x8A, 0x06,  # 91-100
    0x8D, 0x0C, 0x0A, 0x11, 0x91, 0x2B, 0x2C, 0x0B, 0x37, 0x8F,  # 101-110
    0x12, 0x01, 0x28, 0x1E, 0x02, 0x5C, 0x5D, 0x9D, 0x9E, 0x1B,  # 111-120
    0x98, 0x2A, 0x1A, 0x48, 0x35, 0x33, 0x1D, 0x3C, 0x85, 0x16,  # 121-130
    0x13, 0x4C, 0x66, 0x69, 0x68, 0x67, 0xAA, 0x62, 0x63, 0x5A,  # 131-140
    0x5B, 0xAB, 0x84, 0x4A, 0x4B, 0x49, 0x58, 0x59, 0x42, 0x83,  # 141-150
    0x15,                                                        # 151
)

NATIONAL_TO_INTERNAL: Dict[int, int] = {
    national_id: internal_id for national_id, internal_id in enumerate(GEN1_INTERNAL_IDS, start=1)
}
INTERNAL_TO_NATIONAL: Dict[int, int] = {
    internal_id: national_id for national_id, internal_id in NATIONAL_TO_INTERNAL.items()
}

GEN1_SPECIES_COUNT = len(GEN1_INTERNAL_IDS)


def internal_to_national(internal_id: int) -> Optional[int]:
    """Translates a Gen 1 internal index byte to its National Dex number.

    Args:
        internal_id (int): Species byte as stored in a Gen 1 ROM or save.

    Returns:
        Optional[int]: National Dex number, or None for glitch/unused indices.
    """
    return INTERNAL_TO_NATIONAL.get(internal_id)


def national_to_internal(national_id: int) -> Optional[int]:
    """Translates a National Dex number to the Gen 1 internal index byte.

    Args:
        national_id (int): National Dex number.

    Returns:
        Optional[int]: Internal index, or None outside #1-#151.
    """
    return NATIONAL_TO_INTERNAL.get(national_id)


def require_national(internal_id: int) -> int:
    """Like internal_to_national, but raises UnsupportedSpeciesError."""
    national_id = internal_to_national(internal_id)
    if national_id is None:
        raise UnsupportedSpeciesError(internal_id, "gen1-internal")
    return national_id


def require_internal(national_id: int) -> int:
    """Like national_to_internal, but raises UnsupportedSpeciesError."""
    internal_id = national_to_internal(national_id)
    if internal_id is None:
        raise UnsupportedSpeciesError(national_id, "gen1-national")
    return internal_id


def from_storage_id(raw: int, generation: int) -> Optional[int]:
    """National number for a species id read from a buffer of the given generation."""
    if generation == 1:
        return internal_to_national(raw)
    return raw or None


def to_storage_id(national_id: int, generation: int) -> Optional[int]:
    """Species id to write into a buffer of the given generation."""
    if generation == 1:
        return national_to_internal(national_id)
    return national_id
