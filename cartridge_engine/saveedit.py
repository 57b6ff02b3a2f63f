"""
Save File Editing.

In-place setters for the trainer fields of a recognized Gen 1/2/3 save
image. Every setter rewrites the checksums its edit invalidates: the Gen 1
main block sum, both Gen 2 sums, or the touched Gen 3 sections of the
active slot.

Usage:
    data = create_new_save(NewSaveOptions("emerald", "MAY")).editable()
    set_money(data, 50000)
    set_badges(data, 0b00000111)
    assert detect_save(bytes(data)).checksum_valid
"""

from __future__ import annotations

import logging
import struct
from typing import Dict, Iterable, Optional, Tuple

from .checksums import update_gen1_checksum, update_gen2_checksums, update_gen3_section_checksum
from .config import SaveConfig, config as default_config
from .constants import (
    GEN1_PLAYER_NAME, GEN1_NAME_LENGTH, GEN1_MONEY, GEN1_BADGES, GEN1_PLAY_TIME,
    GEN2_PLAYER_NAME, GEN2_NAME_LENGTH, GEN2_MONEY, GEN2_BADGES, GEN2_PLAY_TIME,
    GEN3_PLAYER_NAME, GEN3_NAME_LENGTH,
    GEN3_PLAY_TIME_HOURS, GEN3_PLAY_TIME_MINUTES, GEN3_PLAY_TIME_SECONDS, GEN3_PLAY_TIME_FRAMES,
    GB_MAX_PLAY_HOURS, GEN3_MAX_PLAY_HOURS,
)
from .core.dataclasses import PlayTime
from .core.exceptions import InvalidSaveOptionsError, UnrecognizedSaveError
from .savefile import (
    BADGE_COUNT, detect_save, detect_gen3_family, gen3_active_sections,
    gen3_badge_location, gen3_security_key,
)
from .savegen import GEN3_LAYOUTS, clamp_money, encode_bcd, normalize_trainer_name
from .text import encode_gen1_string, encode_gen3_string

logger = logging.getLogger(__name__)


def _generation(data: bytearray) -> int:
    info = detect_save(bytes(data))
    if info is None:
        raise UnrecognizedSaveError(len(data))
    return info.generation


def _gen3_sections(data: bytearray) -> Dict[int, int]:
    sections = gen3_active_sections(data)
    if sections is None:
        raise UnrecognizedSaveError(len(data))
    return sections


def _refresh_gb(data: bytearray, generation: int) -> None:
    if generation == 1:
        update_gen1_checksum(data)
    else:
        update_gen2_checksums(data)


def _refresh_gen3(data: bytearray, sections: Dict[int, int], section_ids: Iterable[int]) -> None:
    for section_id in sorted(set(section_ids)):
        update_gen3_section_checksum(data, sections[section_id], section_id)


def set_trainer_name(data: bytearray, name: str, settings: Optional[SaveConfig] = None) -> str:
    """Rewrites the player name.

    The name goes through the same rules as new saves: stripped, empty
    names rejected, long names truncated.

    Args:
        data (bytearray): Save image, edited in place.
        name (str): New trainer name.
        settings (Optional[SaveConfig]): Supplies the name length limit.

    Returns:
        str: The name as written.

    Raises:
        UnrecognizedSaveError: If the image is not a recognized save.
        InvalidSaveOptionsError: If the name is empty.
    """
    settings = settings or default_config.save_file
    generation = _generation(data)
    name = normalize_trainer_name(name, settings.max_name_length, generation)

    if generation == 3:
        sections = _gen3_sections(data)
        start = sections[0] + GEN3_PLAYER_NAME
        data[start:start + GEN3_NAME_LENGTH] = encode_gen3_string(name, GEN3_NAME_LENGTH)
        _refresh_gen3(data, sections, [0])
    else:
        start = GEN1_PLAYER_NAME if generation == 1 else GEN2_PLAYER_NAME
        length = GEN1_NAME_LENGTH if generation == 1 else GEN2_NAME_LENGTH
        data[start:start + length] = encode_gen1_string(name, length)
        _refresh_gb(data, generation)

    logger.info(f"Trainer name set to {name}")
    return name


def set_money(data: bytearray, amount: int, settings: Optional[SaveConfig] = None) -> int:
    """Rewrites the player's money, clamped to ``[0, max_money]``.

    Gen 1 stores packed BCD, Gen 2 a big-endian 24-bit value, and Gen 3 a
    32-bit word XORed with the security key on Emerald and FireRed/LeafGreen.

    Returns:
        int: The amount as written.

    Raises:
        UnrecognizedSaveError: If the image is not a recognized save.
    """
    settings = settings or default_config.save_file
    generation = _generation(data)
    money = clamp_money(amount, settings)

    if generation == 1:
        data[GEN1_MONEY:GEN1_MONEY + 3] = encode_bcd(money, 3)
        _refresh_gb(data, generation)
    elif generation == 2:
        data[GEN2_MONEY:GEN2_MONEY + 3] = money.to_bytes(3, 'big')
        _refresh_gb(data, generation)
    else:
        sections = _gen3_sections(data)
        layout = GEN3_LAYOUTS[detect_gen3_family(data, sections[0])]
        key = gen3_security_key(data, sections, layout)
        struct.pack_into('<I', data, sections[1] + layout.money, (money ^ key) & 0xFFFFFFFF)
        _refresh_gen3(data, sections, [1])
    return money


def set_badges(data: bytearray, badges: int) -> int:
    """Sets the eight gym badges from a bitmask (bit 0 = first badge).

    Gen 1 and Gen 2 keep the mask in one byte (Johto badges on Gen 2).
    Gen 3 keeps each badge as an event flag in SaveBlock1, so the sections
    holding those flags are re-checksummed.

    Returns:
        int: The mask as written.

    Raises:
        InvalidSaveOptionsError: If ``badges`` is not an 8-bit mask.
        UnrecognizedSaveError: If the image is not a recognized save.
    """
    if not 0 <= badges <= 0xFF:
        raise InvalidSaveOptionsError("badges", f"{badges} is not an 8-bit badge mask")
    generation = _generation(data)

    if generation in (1, 2):
        data[GEN1_BADGES if generation == 1 else GEN2_BADGES] = badges
        _refresh_gb(data, generation)
        return badges

    sections = _gen3_sections(data)
    layout = GEN3_LAYOUTS[detect_gen3_family(data, sections[0])]
    touched = []
    for badge in range(BADGE_COUNT):
        section_id, offset, bit = gen3_badge_location(layout, badge)
        if section_id not in sections:
            raise UnrecognizedSaveError(len(data))
        position = sections[section_id] + offset
        if badges & (1 << badge):
            data[position] |= 1 << bit
        else:
            data[position] &= ~(1 << bit) & 0xFF
        touched.append(section_id)
    _refresh_gen3(data, sections, touched)
    return badges


def _clamp_play_time(hours: int, minutes: int, seconds: int, max_hours: int) -> Tuple[int, int, int]:
    return (
        max(0, min(int(hours), max_hours)),
        max(0, min(int(minutes), 59)),
        max(0, min(int(seconds), 59)),
    )


def set_play_time(data: bytearray, hours: int, minutes: int = 0, seconds: int = 0) -> PlayTime:
    """Rewrites the play time clock.

    Hours are clamped to 255 on Gen 1/2 (one byte) and 999 on Gen 3,
    minutes and seconds to 0-59. The Gen 3 frame counter is reset.

    Returns:
        PlayTime: The time as written.

    Raises:
        UnrecognizedSaveError: If the image is not a recognized save.
    """
    generation = _generation(data)

    if generation == 3:
        hours, minutes, seconds = _clamp_play_time(hours, minutes, seconds, GEN3_MAX_PLAY_HOURS)
        sections = _gen3_sections(data)
        section0 = sections[0]
        struct.pack_into('<H', data, section0 + GEN3_PLAY_TIME_HOURS, hours)
        data[section0 + GEN3_PLAY_TIME_MINUTES] = minutes
        data[section0 + GEN3_PLAY_TIME_SECONDS] = seconds
        data[section0 + GEN3_PLAY_TIME_FRAMES] = 0
        _refresh_gen3(data, sections, [0])
    else:
        hours, minutes, seconds = _clamp_play_time(hours, minutes, seconds, GB_MAX_PLAY_HOURS)
        start = GEN1_PLAY_TIME if generation == 1 else GEN2_PLAY_TIME
        data[start:start + 3] = bytes([hours, minutes, seconds])
        _refresh_gb(data, generation)

    return PlayTime(hours=hours, minutes=minutes, seconds=seconds)
