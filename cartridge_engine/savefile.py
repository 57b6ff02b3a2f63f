"""
Save File Fingerprinting and Party Readback.

Recognizes Gen 1/2/3 save images and reads their trainer summary.
32 KB images are told apart by which generation's checksums validate;
Gen 3 images are recognized by their section signatures, and the most
recent of the two save slots is read.

parse_party reads the party back out of a recognized image, decrypting
and unshuffling Gen 3 records and translating Gen 1 internal indices.
"""

from __future__ import annotations

import logging
import struct
from typing import Dict, List, Optional, Tuple

from .checksums import verify_gen1_checksum, verify_gen2_checksums, verify_gen3_section_checksum
from .config import SaveConfig, config as default_config
from .constants import (
    GEN1_SAVE_SIZE, GEN1_PLAYER_NAME, GEN1_NAME_LENGTH, GEN1_MONEY, GEN1_BADGES,
    GEN1_TRAINER_ID, GEN1_PLAY_TIME, GEN1_PARTY_COUNT,
    GEN2_TRAINER_ID, GEN2_PLAYER_NAME, GEN2_NAME_LENGTH, GEN2_PLAY_TIME, GEN2_MONEY, GEN2_BADGES,
    GEN2_PARTY_COUNT,
    GEN3_MIN_SAVE_SIZE, GEN3_MAX_SAVE_SIZE, GEN3_SLOT_SIZE, GEN3_SECTION_SIZE, GEN3_SECTION_COUNT,
    GEN3_SECTION_ID, GEN3_SECTION_SIGNATURE, GEN3_SECTION_SAVE_INDEX, GEN3_SIGNATURE,
    GEN3_SAVEBLOCK1_CHUNK,
    GEN3_PLAYER_NAME, GEN3_NAME_LENGTH, GEN3_TRAINER_ID,
    GEN3_PLAY_TIME_HOURS, GEN3_PLAY_TIME_MINUTES, GEN3_PLAY_TIME_SECONDS,
    GEN3_NICKNAME_LENGTH, GEN3_OT_NAME_LENGTH,
    POKEMON_SIZE_BYTES, SUBSTRUCTURE_SIZE, SUBSTRUCTURE_BLOCK_SIZE,
    PARTY_MAX, PARTY_NAME_LENGTH, GEN1_PARTY_RECORD_SIZE, GEN2_PARTY_RECORD_SIZE,
)
from .core.dataclasses import SaveInfo, PlayTime, PartyPokemon
from .core.enums import Platform, Gen3Family, SubstructureType
from .core.exceptions import UnrecognizedSaveError
from .decryption import calculate_checksum, decode_substructures
from .savegen import GEN3_LAYOUTS, Gen3Layout, decode_bcd
from .species import from_storage_id
from .text import GEN1_TERMINATOR, decode_gen1_string, decode_gen3_string

logger = logging.getLogger(__name__)

GEN3_GAME_NAMES = {
    Gen3Family.RUBY_SAPPHIRE: ("Pokemon Ruby/Sapphire", "AXVE"),
    Gen3Family.EMERALD: ("Pokemon Emerald", "BPEE"),
    Gen3Family.FIRERED_LEAFGREEN: ("Pokemon FireRed/LeafGreen", "BPRE"),
}

BADGE_COUNT = 8


def _play_time(data, offset: int) -> PlayTime:
    return PlayTime(hours=data[offset], minutes=data[offset + 1], seconds=data[offset + 2])


def _is_gen1_name(raw) -> bool:
    """True for a terminated name that decodes to something other than blanks.

    Bytes outside the known charset are accepted (they decode as "?");
    a field with no terminator, such as a blank image, is not a name.
    """
    raw = bytes(raw)
    end = raw.find(bytes([GEN1_TERMINATOR]))
    if end <= 0:
        return False
    return bool(decode_gen1_string(raw[:end]).strip())


def _detect_gen1(data) -> Optional[SaveInfo]:
    raw_name = data[GEN1_PLAYER_NAME:GEN1_PLAYER_NAME + GEN1_NAME_LENGTH]
    if not _is_gen1_name(raw_name):
        return None
    name = decode_gen1_string(raw_name)
    return SaveInfo(
        generation=1,
        game="Pokemon Red/Blue/Yellow",
        game_code="RED",
        platform=Platform.GB,
        file_size=len(data),
        trainer_name=name,
        trainer_id=struct.unpack_from('>H', data, GEN1_TRAINER_ID)[0],
        money=decode_bcd(data[GEN1_MONEY:GEN1_MONEY + 3]),
        badges=data[GEN1_BADGES],
        play_time=_play_time(data, GEN1_PLAY_TIME),
        checksum_valid=verify_gen1_checksum(data),
    )


def _detect_gen2(data) -> Optional[SaveInfo]:
    raw_name = data[GEN2_PLAYER_NAME:GEN2_PLAYER_NAME + GEN2_NAME_LENGTH]
    if not _is_gen1_name(raw_name):
        return None
    name = decode_gen1_string(raw_name)
    return SaveInfo(
        generation=2,
        game="Pokemon Gold/Silver/Crystal",
        game_code="GOLD",
        platform=Platform.GBC,
        file_size=len(data),
        trainer_name=name,
        trainer_id=struct.unpack_from('>H', data, GEN2_TRAINER_ID)[0],
        money=int.from_bytes(bytes(data[GEN2_MONEY:GEN2_MONEY + 3]), 'big'),
        badges=data[GEN2_BADGES],
        play_time=_play_time(data, GEN2_PLAY_TIME),
        checksum_valid=verify_gen2_checksums(data),
    )


def _gen3_slot_sections(data, slot_offset: int) -> Dict[int, int]:
    """Maps section id to offset for every signed section in a slot."""
    sections = {}
    for i in range(GEN3_SECTION_COUNT):
        offset = slot_offset + i * GEN3_SECTION_SIZE
        if offset + GEN3_SECTION_SIZE > len(data):
            break
        if struct.unpack_from('<I', data, offset + GEN3_SECTION_SIGNATURE)[0] != GEN3_SIGNATURE:
            continue
        section_id = struct.unpack_from('<H', data, offset + GEN3_SECTION_ID)[0]
        if section_id < GEN3_SECTION_COUNT:
            sections[section_id] = offset
    return sections


def gen3_active_sections(data) -> Optional[Dict[int, int]]:
    """Section id -> offset map of the most recently saved slot.

    A slot counts only if it holds signed sections 0 and 1; between two
    such slots the one with the higher save index wins.

    Returns:
        Optional[Dict[int, int]]: The section map, or None if neither slot is usable.
    """
    best = None
    for slot_offset in (0, GEN3_SLOT_SIZE):
        sections = _gen3_slot_sections(data, slot_offset)
        if 0 not in sections or 1 not in sections:
            continue
        save_index = struct.unpack_from('<I', data, sections[0] + GEN3_SECTION_SAVE_INDEX)[0]
        if best is None or save_index > best[0]:
            best = (save_index, sections)
    return best[1] if best else None


def detect_gen3_family(data, section0: int) -> Gen3Family:
    """Tells the Gen 3 layouts apart by the section 0 word at 0xAC.

    FireRed/LeafGreen store a game code of 1 there, Ruby/Sapphire leave it
    zero, and Emerald keeps its security key there. An Emerald save whose
    key happens to be zero reads as Ruby/Sapphire, which shares its layout.
    """
    word = struct.unpack_from('<I', data, section0 + 0xAC)[0]
    if word == 1:
        return Gen3Family.FIRERED_LEAFGREEN
    if word == 0:
        return Gen3Family.RUBY_SAPPHIRE
    return Gen3Family.EMERALD


def gen3_security_key(data, sections: Dict[int, int], layout: Gen3Layout) -> int:
    if layout.security_key is None:
        return 0
    return struct.unpack_from('<I', data, sections[0] + layout.security_key)[0]


def gen3_badge_location(layout: Gen3Layout, badge: int) -> Tuple[int, int, int]:
    """Where a gym badge flag lives: (section id, offset in section, bit).

    Badge flags are consecutive event flags; the flag array sits in
    SaveBlock1, which is split across sections in 0xF80-byte chunks.
    """
    flag = layout.badge_flag + badge
    offset = layout.flags + flag // 8
    return 1 + offset // GEN3_SAVEBLOCK1_CHUNK, offset % GEN3_SAVEBLOCK1_CHUNK, flag % 8


def _gen3_badges(data, sections: Dict[int, int], layout: Gen3Layout) -> int:
    badges = 0
    for badge in range(BADGE_COUNT):
        section_id, offset, bit = gen3_badge_location(layout, badge)
        if section_id in sections and data[sections[section_id] + offset] & (1 << bit):
            badges |= 1 << badge
    return badges


def _detect_gen3(data, settings: SaveConfig) -> Optional[SaveInfo]:
    sections = gen3_active_sections(data)
    if sections is None:
        return None

    section0, section1 = sections[0], sections[1]
    name = decode_gen3_string(data[section0 + GEN3_PLAYER_NAME:section0 + GEN3_PLAYER_NAME + GEN3_NAME_LENGTH])
    if not name.strip():
        return None

    family = detect_gen3_family(data, section0)
    layout = GEN3_LAYOUTS[family]
    money = struct.unpack_from('<I', data, section1 + layout.money)[0] ^ gen3_security_key(data, sections, layout)
    if money > settings.max_money:
        logger.warning(f"Implausible money value {money}, reported as 0")
        money = 0

    checksum_valid = all(
        verify_gen3_section_checksum(data, offset, section_id)
        for section_id, offset in sections.items()
    )
    game, game_code = GEN3_GAME_NAMES[family]
    return SaveInfo(
        generation=3,
        game=game,
        game_code=game_code,
        platform=Platform.GBA,
        file_size=len(data),
        trainer_name=name,
        trainer_id=struct.unpack_from('<H', data, section0 + GEN3_TRAINER_ID)[0],
        money=money,
        badges=_gen3_badges(data, sections, layout),
        play_time=PlayTime(
            hours=struct.unpack_from('<H', data, section0 + GEN3_PLAY_TIME_HOURS)[0],
            minutes=data[section0 + GEN3_PLAY_TIME_MINUTES],
            seconds=data[section0 + GEN3_PLAY_TIME_SECONDS],
        ),
        checksum_valid=checksum_valid,
        family=family,
    )


def detect_save(data: bytes, settings: Optional[SaveConfig] = None) -> Optional[SaveInfo]:
    """Fingerprints a save image.

    Args:
        data (bytes): Raw save file contents.
        settings (Optional[SaveConfig]): Limits used to sanity-check values.

    Returns:
        Optional[SaveInfo]: Summary of the save, or None if unrecognized.
    """
    settings = settings or default_config.save_file
    size = len(data)
    info = None
    if size == GEN1_SAVE_SIZE:
        if verify_gen2_checksums(data):
            info = _detect_gen2(data)
        if info is None:
            info = _detect_gen1(data)
    elif GEN3_MIN_SAVE_SIZE <= size <= GEN3_MAX_SAVE_SIZE:
        info = _detect_gen3(data, settings)

    if info is None:
        logger.debug(f"Unrecognized save file ({size} bytes)")
    else:
        logger.info(f"Detected Gen {info.generation} save for {info.trainer_name}")
    return info


# =============================================================================
# Party readback
# =============================================================================

def _gb_dvs(high: int, low: int) -> Tuple[int, ...]:
    """Unpacks Gen 1/2 DVs into (HP, Atk, Def, Spe, Special); HP is built from the low bits."""
    attack, defense, speed, special = high >> 4, high & 0x0F, low >> 4, low & 0x0F
    hp = ((attack & 1) << 3) | ((defense & 1) << 2) | ((speed & 1) << 1) | (special & 1)
    return hp, attack, defense, speed, special


def _parse_gb_party(data, generation: int) -> List[PartyPokemon]:
    if generation == 1:
        count_offset, record_size = GEN1_PARTY_COUNT, GEN1_PARTY_RECORD_SIZE
    else:
        count_offset, record_size = GEN2_PARTY_COUNT, GEN2_PARTY_RECORD_SIZE

    # count byte, species list with its terminator, records, OT names, nicknames
    records = count_offset + 1 + PARTY_MAX + 1
    ot_names = records + record_size * PARTY_MAX
    nicknames = ot_names + PARTY_NAME_LENGTH * PARTY_MAX

    party = []
    for i in range(min(data[count_offset], PARTY_MAX)):
        rec = records + i * record_size
        national_id = from_storage_id(data[rec], generation)
        if national_id is None:
            logger.warning(f"Party slot {i} holds unknown species index 0x{data[rec]:02X}, skipped")
            continue

        if generation == 1:
            moves = tuple(data[rec + 8:rec + 12])
            ot_id = struct.unpack_from('>H', data, rec + 12)[0]
            experience = int.from_bytes(bytes(data[rec + 14:rec + 17]), 'big')
            ivs = _gb_dvs(data[rec + 27], data[rec + 28])
            level = data[rec + 33]
            current_hp = struct.unpack_from('>H', data, rec + 1)[0]
            max_hp = struct.unpack_from('>H', data, rec + 34)[0]
        else:
            moves = tuple(data[rec + 2:rec + 6])
            ot_id = struct.unpack_from('>H', data, rec + 6)[0]
            experience = int.from_bytes(bytes(data[rec + 8:rec + 11]), 'big')
            ivs = _gb_dvs(data[rec + 21], data[rec + 22])
            level = data[rec + 31]
            current_hp = struct.unpack_from('>H', data, rec + 34)[0]
            max_hp = struct.unpack_from('>H', data, rec + 36)[0]

        party.append(PartyPokemon(
            species_id=national_id,
            nickname=decode_gen1_string(data[nicknames + i * PARTY_NAME_LENGTH:nicknames + (i + 1) * PARTY_NAME_LENGTH]),
            level=level,
            ot_name=decode_gen1_string(data[ot_names + i * PARTY_NAME_LENGTH:ot_names + (i + 1) * PARTY_NAME_LENGTH]),
            ot_id=ot_id,
            experience=experience,
            moves=tuple(m for m in moves if m),
            current_hp=current_hp,
            max_hp=max_hp,
            ivs=ivs,
        ))
    return party


def parse_gen3_pokemon(record: bytes) -> Optional[PartyPokemon]:
    """Decodes one 100-byte Gen 3 party record.

    A failed substructure checksum is logged and reported through
    ``checksum_valid`` rather than raised, so one corrupt slot does not hide
    the rest of the party.

    Returns:
        Optional[PartyPokemon]: The Pokemon, or None for an empty slot.
    """
    pid, ot_id = struct.unpack_from('<II', record, 0)
    if pid == 0 and ot_id == 0:
        return None

    checksum = struct.unpack_from('<H', record, 28)[0]
    plain = decode_substructures(bytes(record[32:32 + SUBSTRUCTURE_SIZE]), pid, ot_id)
    checksum_valid = calculate_checksum(plain) == checksum
    if not checksum_valid:
        logger.warning(f"Checksum failed for party record PID:{pid:08X}")

    def block(kind: SubstructureType) -> bytes:
        start = int(kind) * SUBSTRUCTURE_BLOCK_SIZE
        return plain[start:start + SUBSTRUCTURE_BLOCK_SIZE]

    species_id, _item, experience = struct.unpack_from('<HHI', block(SubstructureType.GROWTH), 0)
    moves = struct.unpack_from('<4H', block(SubstructureType.ATTACKS), 0)
    iv_word = struct.unpack_from('<I', block(SubstructureType.MISC), 4)[0]
    current_hp, max_hp = struct.unpack_from('<HH', record, 86)

    return PartyPokemon(
        species_id=species_id,
        nickname=decode_gen3_string(record[8:8 + GEN3_NICKNAME_LENGTH]),
        level=record[84],
        ot_name=decode_gen3_string(record[20:20 + GEN3_OT_NAME_LENGTH]),
        ot_id=ot_id,
        experience=experience,
        moves=tuple(m for m in moves if m),
        current_hp=current_hp,
        max_hp=max_hp,
        personality=pid,
        ivs=tuple((iv_word >> (5 * i)) & 0x1F for i in range(6)),
        checksum_valid=checksum_valid,
    )


def _parse_gen3_party(data) -> List[PartyPokemon]:
    sections = gen3_active_sections(data)
    layout = GEN3_LAYOUTS[detect_gen3_family(data, sections[0])]
    section1 = sections[1]
    count = min(struct.unpack_from('<I', data, section1 + layout.party_count)[0], PARTY_MAX)

    party = []
    for i in range(count):
        start = section1 + layout.party_data + i * POKEMON_SIZE_BYTES
        pokemon = parse_gen3_pokemon(bytes(data[start:start + POKEMON_SIZE_BYTES]))
        if pokemon is not None:
            party.append(pokemon)
    return party


def parse_party(data: bytes) -> List[PartyPokemon]:
    """Reads the party out of a save image.

    Args:
        data (bytes): Raw save file contents.

    Returns:
        List[PartyPokemon]: Party members in slot order; empty slots are skipped.

    Raises:
        UnrecognizedSaveError: If ``detect_save`` does not recognize the image.
    """
    info = detect_save(data)
    if info is None:
        raise UnrecognizedSaveError(len(data))
    if info.generation == 3:
        return _parse_gen3_party(data)
    return _parse_gb_party(data, info.generation)
