"""
Wild Encounter Slot Locators.

Each locator finds the encounter slots of one table layout and knows how
to encode a replacement species for them. Locators never write: the
randomizer plans every replacement first and then applies them, so a
failure while locating leaves the ROM untouched.

- FixedAreaLocator: GB/GBC grass tables, a fixed array of 20-byte areas.
- ShapeScanLocator: GBA heuristic. Any 4-byte aligned window shaped like
  (min level, max level, species u16) is taken as a slot. It can miss real
  slots and can match unrelated data of the same shape.
- PointerTableLocator: GBA map-header table walk starting near a
  configured hint.
"""

from __future__ import annotations

import logging
import struct
from typing import List, Optional

import numpy as np

from .config import RandomizerConfig, config as default_config
from .constants import (
    OFFSET_WILD_GRASS, OFFSET_WILD_POINTER,
    GBA_ROM_BASE, GBA_POINTER_LIMIT, GBA_OFFSET_MASK,
    GBA_MAP_HEADER_SIZE, GBA_ENCOUNTER_SLOT_SIZE,
    GBA_GRASS_SLOTS, GBA_WATER_SLOTS, GBA_ROCK_SMASH_SLOTS, GBA_FISHING_SLOTS,
)
from .core.dataclasses import EncounterSlot, GameConfig
from .core.enums import Platform
from .core.exceptions import MissingOffsetError, EncounterTableNotFoundError
from .core.protocols import EncounterLocator
from .species import from_storage_id, to_storage_id

logger = logging.getLogger(__name__)


class FixedAreaLocator(EncounterLocator):
    """
    GB/GBC grass encounter areas.

    Starting at ``offsets["wildGrassEncounters"]``, walks a bounded number of
    areas, each 10 consecutive (level, species) byte pairs. Gen 1 species
    bytes are internal indices and are translated both ways.
    """

    def __init__(self, settings: Optional[RandomizerConfig] = None):
        self.settings = settings or default_config.randomizer

    def find_slots(self, buffer, game_config: GameConfig) -> List[EncounterSlot]:
        start = game_config.get_offset(OFFSET_WILD_GRASS)
        if start is None:
            raise MissingOffsetError(OFFSET_WILD_GRASS, game_config.game_code)

        area_size = self.settings.gb_area_size
        slots = []
        for area in range(self.settings.gb_area_count):
            area_offset = start + area * area_size
            if area_offset >= len(buffer) - area_size:
                break
            for slot in range(self.settings.gb_slots_per_area):
                slot_offset = area_offset + slot * 2
                level = buffer[slot_offset]
                raw_species = buffer[slot_offset + 1]
                if level == 0 or raw_species == 0:
                    continue
                national_id = from_storage_id(raw_species, game_config.generation)
                if national_id is None:
                    logger.debug(f"Skipping unknown species byte 0x{raw_species:02X} at 0x{slot_offset + 1:X}")
                    continue
                slots.append(EncounterSlot(address=slot_offset + 1, level=level, species_id=national_id, width=1))
        return slots

    def encode_species(self, slot: EncounterSlot, national_id: int, generation: int) -> Optional[bytes]:
        stored = to_storage_id(national_id, generation)
        if stored is None or stored > 0xFF:
            return None
        return bytes([stored])


class ShapeScanLocator(EncounterLocator):
    """
    GBA best-effort pattern scan.

    Scans ``[gba_scan_start, min(gba_scan_end, len(buffer)))`` in 4-byte
    steps. A window is a slot when min level is in [gba_min_level,
    gba_max_level], max level is in [min level, gba_max_level] and the
    little-endian species id is in (0, gba_max_species].
    """

    def __init__(self, settings: Optional[RandomizerConfig] = None):
        self.settings = settings or default_config.randomizer

    def find_slots(self, buffer, game_config: GameConfig) -> List[EncounterSlot]:
        s = self.settings
        start = s.gba_scan_start - (s.gba_scan_start % 4)
        end = min(s.gba_scan_end, len(buffer))
        count = (end - start) // 4
        if count <= 0:
            return []

        windows = np.frombuffer(bytes(buffer[start:start + count * 4]), dtype=np.uint8).reshape(count, 4)
        min_level = windows[:, 0]
        max_level = windows[:, 1]
        species = windows[:, 2].astype(np.uint16) | (windows[:, 3].astype(np.uint16) << 8)

        mask = (
            (min_level >= s.gba_min_level) & (min_level <= s.gba_max_level)
            & (max_level >= min_level) & (max_level <= s.gba_max_level)
            & (species > 0) & (species <= s.gba_max_species)
        )
        indices = np.nonzero(mask)[0]
        logger.debug(f"Shape scan matched {len(indices)} windows in 0x{start:X}-0x{end:X}")

        return [
            EncounterSlot(
                address=start + int(i) * 4 + 2,
                level=int(min_level[i]),
                species_id=int(species[i]),
                width=2,
            )
            for i in indices
        ]

    def encode_species(self, slot: EncounterSlot, national_id: int, generation: int) -> Optional[bytes]:
        return struct.pack('<H', national_id)


def read_pointer(data, offset: int) -> int:
    """Reads a GBA pointer and converts it to a file offset."""
    ptr = struct.unpack_from('<I', data, offset)[0]
    if ptr & GBA_ROM_BASE:
        return ptr & GBA_OFFSET_MASK
    return ptr


class PointerTableLocator(EncounterLocator):
    """
    GBA map encounter header walk.

    Each 20-byte header holds bank, map, padding and four pointers (grass,
    water, rock smash, fishing). Each pointer leads to (rate, pad, slots
    pointer); each slot is (min level, max level, species u16). The table
    start is taken from ``offsets["wildEncounterPointer"]`` or found by
    searching around it.
    """

    SLOT_COUNTS = (GBA_GRASS_SLOTS, GBA_WATER_SLOTS, GBA_ROCK_SMASH_SLOTS, GBA_FISHING_SLOTS)

    def __init__(self, settings: Optional[RandomizerConfig] = None):
        self.settings = settings or default_config.randomizer

    def _is_valid_pointer(self, ptr: int, length: int) -> bool:
        return 0 < ptr <= length - 8

    def _is_rom_pointer(self, data, offset: int) -> bool:
        if offset + 4 > len(data):
            return False
        ptr = struct.unpack_from('<I', data, offset)[0]
        return ptr == 0 or GBA_ROM_BASE <= ptr < GBA_POINTER_LIMIT

    def _looks_like_table(self, data, table_offset: int) -> bool:
        if table_offset + 3 * GBA_MAP_HEADER_SIZE >= len(data):
            return False

        valid_entries = 0
        for i in range(3):
            entry = table_offset + i * GBA_MAP_HEADER_SIZE
            bank, map_num = data[entry], data[entry + 1]
            if bank > 50 or map_num > 100:
                if bank == 0xFF and map_num == 0xFF and i > 0:
                    break
                continue
            for field_offset in (4, 8):
                ptr = read_pointer(data, entry + field_offset)
                if 0 < ptr < len(data) - 8:
                    rate = data[ptr]
                    if 0 < rate <= 100 and self._is_rom_pointer(data, ptr + 4):
                        valid_entries += 1
        return valid_entries >= 2

    def find_table(self, data, hint: int) -> Optional[int]:
        """Returns the offset of the map header table, or None."""
        if self._looks_like_table(data, hint):
            return hint

        radius = self.settings.pointer_search_radius
        start = max(self.settings.pointer_search_floor, hint - radius)
        start -= start % 4
        end = min(len(data) - 100, hint + radius)
        for offset in range(start, end, 4):
            if self._looks_like_table(data, offset):
                logger.info(f"Encounter table found at 0x{offset:X} (hint 0x{hint:X})")
                return offset
        return None

    def _read_slots(self, data, slots_ptr: int, count: int, seen: set) -> List[EncounterSlot]:
        max_species = self.settings.pointer_max_species
        slots = []
        for i in range(count):
            offset = slots_ptr + i * GBA_ENCOUNTER_SLOT_SIZE
            if offset >= len(data) - 4:
                break
            if offset in seen:
                continue
            min_level, max_level, species = struct.unpack_from('<BBH', data, offset)
            if not 0 < min_level <= 100:
                continue
            if not min_level <= max_level <= 100:
                continue
            if not 0 < species <= max_species:
                continue
            seen.add(offset)
            slots.append(EncounterSlot(address=offset + 2, level=min_level, species_id=species, width=2))
        return slots

    def find_slots(self, buffer, game_config: GameConfig) -> List[EncounterSlot]:
        hint = game_config.get_offset(OFFSET_WILD_POINTER)
        if hint is None:
            raise MissingOffsetError(OFFSET_WILD_POINTER, game_config.game_code)

        table = self.find_table(buffer, hint)
        if table is None:
            raise EncounterTableNotFoundError(game_config.game_name, hint)

        length = len(buffer)
        seen = set()
        slots = []
        offset = table
        for _ in range(self.settings.pointer_max_maps):
            if offset >= length - GBA_MAP_HEADER_SIZE:
                break
            bank, map_num = buffer[offset], buffer[offset + 1]
            if bank == 0xFF and map_num == 0xFF:
                break
            pointers = [read_pointer(buffer, offset + 4 + 4 * k) for k in range(4)]
            if bank == 0 and map_num == 0 and pointers[0] == 0:
                break

            for data_ptr, slot_count in zip(pointers, self.SLOT_COUNTS):
                if not self._is_valid_pointer(data_ptr, length):
                    continue
                slots_ptr = read_pointer(buffer, data_ptr + 4)
                if self._is_valid_pointer(slots_ptr, length):
                    slots.extend(self._read_slots(buffer, slots_ptr, slot_count, seen))
            offset += GBA_MAP_HEADER_SIZE
        return slots

    def encode_species(self, slot: EncounterSlot, national_id: int, generation: int) -> Optional[bytes]:
        return struct.pack('<H', national_id)


def default_locator(game_config: GameConfig, settings: Optional[RandomizerConfig] = None) -> EncounterLocator:
    """Picks the locator for a config's platform."""
    settings = settings or default_config.randomizer
    if game_config.platform is Platform.GBA:
        if settings.gba_strategy == "pointer_table":
            return PointerTableLocator(settings)
        return ShapeScanLocator(settings)
    return FixedAreaLocator(settings)
