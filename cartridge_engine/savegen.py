"""
New Save File Synthesis.

Builds a minimum-valid save image for a game template:

- Gen 1 (Red/Blue/Yellow): 32 KB, single main block, 8-bit complement checksum.
- Gen 2 (Gold/Silver/Crystal): 32 KB, main and box-storage 16-bit sum checksums.
- Gen 3 (Ruby/Sapphire/Emerald/FireRed/LeafGreen): 128 KB, two slots of
  14 sections, the first slot populated, each section with its own folded
  checksum. An optional starter is written as a full encrypted 100-byte
  party record.

The result backs both the "download only" path and the "create and keep
editing" path; see SynthesizedSave.

Ref: https://bulbapedia.bulbagarden.net/wiki/Save_data_structure_(Generation_III)
     https://bulbapedia.bulbagarden.net/wiki/Pok%C3%A9mon_data_structure_(Generation_III)
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .checksums import update_gen1_checksum, update_gen2_checksums, update_gen3_section_checksum
from .config import SaveConfig, config as default_config
from .constants import (
    GEN1_PLAYER_NAME, GEN1_NAME_LENGTH, GEN1_MONEY, GEN1_OPTIONS, GEN1_BADGES,
    GEN1_TRAINER_ID, GEN1_PLAY_TIME, GEN1_PARTY_COUNT, GEN1_DEFAULT_OPTIONS,
    GEN2_TRAINER_ID, GEN2_PLAYER_NAME, GEN2_NAME_LENGTH, GEN2_PLAY_TIME, GEN2_MONEY,
    GEN2_BADGES, GEN2_PARTY_COUNT, GEN2_CRYSTAL_GENDER,
    GEN3_SAVE_SIZE, GEN1_SAVE_SIZE, GEN2_SAVE_SIZE,
    GEN3_SECTION_SIZE, GEN3_SECTION_COUNT, GEN3_SECTION_ID, GEN3_SECTION_CHECKSUM,
    GEN3_SECTION_SIGNATURE, GEN3_SECTION_SAVE_INDEX, GEN3_SIGNATURE,
    GEN3_PLAYER_NAME, GEN3_NAME_LENGTH, GEN3_PLAYER_GENDER, GEN3_TRAINER_ID, GEN3_SECRET_ID,
    GEN3_NICKNAME_LENGTH, GEN3_OT_NAME_LENGTH, GEN3_LANGUAGE_ENGLISH, GEN3_POKE_BALL,
    POKEMON_SIZE_BYTES, SUBSTRUCTURE_BLOCK_SIZE, SUBSTRUCTURE_SIZE,
)
from .core.dataclasses import GameTemplate, NewSaveOptions, SpeciesRecord, SynthesizedSave
from .core.enums import Platform, TrainerGender, Gen3Family, GrowthRate, Stat, SubstructureType
from .core.exceptions import UnknownGameTemplateError, InvalidSaveOptionsError
from .decryption import calculate_checksum, encode_substructures
from .text import encode_gen1_string, encode_gen3_string, unsupported_characters

logger = logging.getLogger(__name__)


# =============================================================================
# Templates
# =============================================================================

GAME_TEMPLATES: Dict[str, GameTemplate] = {
    t.game_id: t for t in (
        GameTemplate("ruby", "Pokemon Ruby", 3, Platform.GBA, GEN3_SAVE_SIZE, "AXVE",
                     family=Gen3Family.RUBY_SAPPHIRE, version_id=2),
        GameTemplate("sapphire", "Pokemon Sapphire", 3, Platform.GBA, GEN3_SAVE_SIZE, "AXPE",
                     family=Gen3Family.RUBY_SAPPHIRE, version_id=1),
        GameTemplate("emerald", "Pokemon Emerald", 3, Platform.GBA, GEN3_SAVE_SIZE, "BPEE",
                     family=Gen3Family.EMERALD, version_id=3),
        GameTemplate("firered", "Pokemon FireRed", 3, Platform.GBA, GEN3_SAVE_SIZE, "BPRE",
                     family=Gen3Family.FIRERED_LEAFGREEN, version_id=4),
        GameTemplate("leafgreen", "Pokemon LeafGreen", 3, Platform.GBA, GEN3_SAVE_SIZE, "BPGE",
                     family=Gen3Family.FIRERED_LEAFGREEN, version_id=5),
        GameTemplate("red", "Pokemon Red", 1, Platform.GB, GEN1_SAVE_SIZE, "RED"),
        GameTemplate("blue", "Pokemon Blue", 1, Platform.GB, GEN1_SAVE_SIZE, "BLUE"),
        GameTemplate("yellow", "Pokemon Yellow", 1, Platform.GBC, GEN1_SAVE_SIZE, "YELLOW"),
        GameTemplate("gold", "Pokemon Gold", 2, Platform.GBC, GEN2_SAVE_SIZE, "GOLD"),
        GameTemplate("silver", "Pokemon Silver", 2, Platform.GBC, GEN2_SAVE_SIZE, "SILVER"),
        GameTemplate("crystal", "Pokemon Crystal", 2, Platform.GBC, GEN2_SAVE_SIZE, "CRYSTAL"),
    )
}

_HOENN_STARTERS = [(252, "Treecko"), (255, "Torchic"), (258, "Mudkip")]
_KANTO_STARTERS = [(1, "Bulbasaur"), (4, "Charmander"), (7, "Squirtle")]
_JOHTO_STARTERS = [(152, "Chikorita"), (155, "Cyndaquil"), (158, "Totodile")]

STARTER_OPTIONS: Dict[str, List[Tuple[int, str]]] = {
    "ruby": _HOENN_STARTERS,
    "sapphire": _HOENN_STARTERS,
    "emerald": _HOENN_STARTERS,
    "firered": _KANTO_STARTERS,
    "leafgreen": _KANTO_STARTERS,
    "red": _KANTO_STARTERS,
    "blue": _KANTO_STARTERS,
    "yellow": [(25, "Pikachu")],
    "gold": _JOHTO_STARTERS,
    "silver": _JOHTO_STARTERS,
    "crystal": _JOHTO_STARTERS,
}


@dataclass(frozen=True)
class Gen3Layout:
    """Family-specific offsets.

    Party and money are in section 1, the key in section 0. ``flags`` is
    the event flag array's offset inside SaveBlock1 (which spans sections
    1-4) and ``badge_flag`` the id of the first gym badge flag.
    """
    party_count: int
    party_data: int
    money: int
    flags: int
    badge_flag: int
    security_key: Optional[int] = None
    game_code: Optional[int] = None   # section 0 field holding 1 on FRLG


GEN3_LAYOUTS: Dict[Gen3Family, Gen3Layout] = {
    Gen3Family.RUBY_SAPPHIRE: Gen3Layout(
        party_count=0x234, party_data=0x238, money=0x490, flags=0x1220, badge_flag=0x807,
    ),
    Gen3Family.EMERALD: Gen3Layout(
        party_count=0x234, party_data=0x238, money=0x490, flags=0x1270, badge_flag=0x867,
        security_key=0xAC,
    ),
    Gen3Family.FIRERED_LEAFGREEN: Gen3Layout(
        party_count=0x34, party_data=0x38, money=0x290, flags=0xEE0, badge_flag=0x820,
        security_key=0xAF8, game_code=0xAC,
    ),
}


def get_template(game_id: str) -> GameTemplate:
    template = GAME_TEMPLATES.get(game_id)
    if template is None:
        raise UnknownGameTemplateError(game_id)
    return template


def get_save_file_extension(game_id: str) -> str:
    """File extension for a game's save. Every supported game uses ``.sav``."""
    return ".sav"


# =============================================================================
# Field encoding
# =============================================================================

def encode_bcd(value: int, length: int) -> bytes:
    """Packs a non-negative integer as big-endian BCD, two digits per byte."""
    out = bytearray(length)
    for i in range(length - 1, -1, -1):
        value, low = divmod(value, 10)
        value, high = divmod(value, 10)
        out[i] = (high << 4) | low
    return bytes(out)


def decode_bcd(data: bytes) -> int:
    value = 0
    for b in data:
        value = value * 100 + (b >> 4) * 10 + (b & 0x0F)
    return value


def normalize_trainer_name(name: str, max_length: int, generation: int = 3) -> str:
    """Strips and truncates a trainer name, rejecting empty names.

    Characters outside the generation's charset are kept in the returned
    name but logged, since they are stored as spaces.
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidSaveOptionsError("trainer_name", "name is empty")
    if len(cleaned) > max_length:
        logger.warning(f"Trainer name '{cleaned}' truncated to {max_length} characters")
        cleaned = cleaned[:max_length]
    missing = unsupported_characters(cleaned, generation)
    if missing:
        logger.warning(
            f"Trainer name '{cleaned}' has characters Gen {generation} cannot store "
            f"({''.join(missing)}), written as spaces"
        )
    return cleaned


def clamp_money(money: Optional[int], settings: SaveConfig) -> int:
    if money is None:
        return settings.default_money
    return max(0, min(int(money), settings.max_money))


def _check_id(value: int, field_name: str) -> int:
    if not 0 <= value <= 0xFFFF:
        raise InvalidSaveOptionsError(field_name, f"{value} is not a 16-bit id")
    return value


# =============================================================================
# Gen 3 Pokemon record
# =============================================================================

def nature_modifier(nature: int, stat: Stat) -> Tuple[int, int]:
    """Returns (numerator, denominator) for a nature's effect on a stat.

    Natures are laid out 5x5: nature // 5 picks the raised stat and
    nature % 5 the lowered one, both in Atk/Def/Spe/SpA/SpD order.
    """
    raised = Stat(nature // 5 + 1)
    lowered = Stat(nature % 5 + 1)
    if raised == lowered:
        return 1, 1
    if stat == raised:
        return 110, 100
    if stat == lowered:
        return 90, 100
    return 1, 1


def calculate_gen3_stat(base: int, iv: int, ev: int, level: int, nature: int, stat: Stat) -> int:
    """Gen 3 stat formula.

    Args:
        base: Species base stat.
        iv: Individual value (0-31).
        ev: Effort value (0-255).
        level: Pokemon level.
        nature: Nature id (personality % 25).
        stat: Which stat is being calculated.

    Returns:
        int: The battle stat.
    """
    core = ((2 * base + iv + ev // 4) * level) // 100
    if stat == Stat.HP:
        return core + level + 10
    num, den = nature_modifier(nature, stat)
    return (core + 5) * num // den


def pack_ivs(ivs: Sequence[int]) -> int:
    """Packs six IVs (HP, Atk, Def, Spe, SpA, SpD) into the Misc IV word."""
    packed = 0
    for i, iv in enumerate(ivs):
        packed |= (iv & 0x1F) << (5 * i)
    return packed


def build_gen3_pokemon(
    species_id: int,
    personality: int,
    trainer_id: int,
    secret_id: int,
    trainer_name: str,
    trainer_gender: TrainerGender,
    ivs: Sequence[int],
    template: GameTemplate,
    species: Optional[SpeciesRecord] = None,
    settings: Optional[SaveConfig] = None,
) -> bytes:
    """Builds a 100-byte party Pokemon record.

    The 48-byte substructure is assembled in Growth/Attacks/EVs/Misc order,
    checksummed, then shuffled by ``personality % 24`` and XOR-encrypted
    with ``personality ^ ot_id``.

    Args:
        species_id: National id of the Pokemon.
        personality: 32-bit personality value.
        trainer_id: Visible trainer id.
        secret_id: Secret id (upper half of the OT id).
        trainer_name: Original trainer name.
        trainer_gender: Original trainer gender.
        ivs: Six IVs in HP/Atk/Def/Spe/SpA/SpD order.
        template: Game the Pokemon originates from.
        species: Reference record for name, base stats and growth rate.
        settings: Save defaults (level, friendship, moves).

    Returns:
        bytes: The 100-byte record.
    """
    settings = settings or default_config.save_file
    level = settings.starter_level
    ot_id = ((secret_id & 0xFFFF) << 16) | (trainer_id & 0xFFFF)
    growth_rate = species.growth_rate if species else GrowthRate.MEDIUM_FAST
    nickname = species.name.upper() if species else "POKEMON"

    growth = struct.pack('<HHIBBH', species_id, 0, growth_rate.experience_at(level),
                         0, settings.starter_friendship, 0)
    moves = list(settings.starter_moves)[:4] + [0] * (4 - len(settings.starter_moves[:4]))
    pps = list(settings.starter_move_pp)[:4] + [0] * (4 - len(settings.starter_move_pp[:4]))
    attacks = struct.pack('<4H4B', *moves, *pps)
    evs = bytes(SUBSTRUCTURE_BLOCK_SIZE)
    origins = (level & 0x7F) | ((template.version_id & 0xF) << 7) \
        | (GEN3_POKE_BALL << 11) | (int(trainer_gender) << 15)
    misc = struct.pack('<BBHII', 0, 0, origins, pack_ivs(ivs), 0)

    blocks = {
        SubstructureType.GROWTH: growth,
        SubstructureType.ATTACKS: attacks,
        SubstructureType.EVS: evs,
        SubstructureType.MISC: misc,
    }
    plain = b''.join(blocks[t] for t in SubstructureType)

    record = bytearray(POKEMON_SIZE_BYTES)
    struct.pack_into('<II', record, 0, personality, ot_id)
    record[8:8 + GEN3_NICKNAME_LENGTH] = encode_gen3_string(nickname, GEN3_NICKNAME_LENGTH)
    struct.pack_into('<H', record, 18, GEN3_LANGUAGE_ENGLISH)
    record[20:20 + GEN3_OT_NAME_LENGTH] = encode_gen3_string(trainer_name, GEN3_OT_NAME_LENGTH)
    record[27] = 0  # markings
    struct.pack_into('<H', record, 28, calculate_checksum(plain))
    record[32:32 + SUBSTRUCTURE_SIZE] = encode_substructures(plain, personality, ot_id)

    base = species or SpeciesRecord(
        national_id=species_id, name=nickname, types=(),
        hp=settings.default_base_stat, attack=settings.default_base_stat,
        defense=settings.default_base_stat, sp_attack=settings.default_base_stat,
        sp_defense=settings.default_base_stat, speed=settings.default_base_stat,
    )
    nature = personality % 25
    base_by_stat = {
        Stat.HP: base.hp, Stat.ATTACK: base.attack, Stat.DEFENSE: base.defense,
        Stat.SPEED: base.speed, Stat.SP_ATTACK: base.sp_attack, Stat.SP_DEFENSE: base.sp_defense,
    }
    stats = {s: calculate_gen3_stat(base_by_stat[s], ivs[s], 0, level, nature, s) for s in Stat}

    record[84] = level
    struct.pack_into(
        '<7H', record, 86,
        stats[Stat.HP], stats[Stat.HP], stats[Stat.ATTACK], stats[Stat.DEFENSE],
        stats[Stat.SPEED], stats[Stat.SP_ATTACK], stats[Stat.SP_DEFENSE],
    )
    return bytes(record)


# =============================================================================
# Per-generation writers
# =============================================================================

def _create_gen1_save(template: GameTemplate, name: str, trainer_id: int, money: int) -> bytearray:
    data = bytearray(template.file_size)
    data[GEN1_PLAYER_NAME:GEN1_PLAYER_NAME + GEN1_NAME_LENGTH] = encode_gen1_string(name, GEN1_NAME_LENGTH)
    struct.pack_into('>H', data, GEN1_TRAINER_ID, trainer_id)
    data[GEN1_MONEY:GEN1_MONEY + 3] = encode_bcd(money, 3)
    data[GEN1_OPTIONS] = GEN1_DEFAULT_OPTIONS
    data[GEN1_BADGES] = 0
    data[GEN1_PARTY_COUNT] = 0
    data[GEN1_PARTY_COUNT + 1] = 0xFF  # species list terminator
    data[GEN1_PLAY_TIME:GEN1_PLAY_TIME + 3] = b'\x00\x00\x00'
    update_gen1_checksum(data)
    return data


def _create_gen2_save(
    template: GameTemplate, name: str, trainer_id: int, money: int, gender: TrainerGender,
) -> bytearray:
    data = bytearray(template.file_size)
    struct.pack_into('>H', data, GEN2_TRAINER_ID, trainer_id)
    data[GEN2_PLAYER_NAME:GEN2_PLAYER_NAME + GEN2_NAME_LENGTH] = encode_gen1_string(name, GEN2_NAME_LENGTH)
    data[GEN2_MONEY:GEN2_MONEY + 3] = money.to_bytes(3, 'big')
    struct.pack_into('<H', data, GEN2_BADGES, 0)
    if template.game_id == "crystal":
        data[GEN2_CRYSTAL_GENDER] = int(gender)
    data[GEN2_PLAY_TIME:GEN2_PLAY_TIME + 3] = b'\x00\x00\x00'
    data[GEN2_PARTY_COUNT] = 0
    update_gen2_checksums(data)
    return data


def _create_gen3_save(
    template: GameTemplate,
    name: str,
    trainer_id: int,
    secret_id: int,
    money: int,
    gender: TrainerGender,
    starter: Optional[bytes],
    security_key: int = 0,
) -> bytearray:
    layout = GEN3_LAYOUTS[template.family]
    data = bytearray(b'\xFF' * template.file_size)

    for section_id in range(GEN3_SECTION_COUNT):
        offset = section_id * GEN3_SECTION_SIZE
        data[offset:offset + GEN3_SECTION_ID] = bytes(GEN3_SECTION_ID)
        struct.pack_into('<H', data, offset + GEN3_SECTION_ID, section_id)
        struct.pack_into('<H', data, offset + GEN3_SECTION_CHECKSUM, 0)
        struct.pack_into('<I', data, offset + GEN3_SECTION_SIGNATURE, GEN3_SIGNATURE)
        struct.pack_into('<I', data, offset + GEN3_SECTION_SAVE_INDEX, 1)

    section0 = 0
    data[section0 + GEN3_PLAYER_NAME:section0 + GEN3_PLAYER_NAME + GEN3_NAME_LENGTH] = \
        encode_gen3_string(name, GEN3_NAME_LENGTH)
    data[section0 + GEN3_PLAYER_GENDER] = int(gender)
    struct.pack_into('<H', data, section0 + GEN3_TRAINER_ID, trainer_id)
    struct.pack_into('<H', data, section0 + GEN3_SECRET_ID, secret_id)

    if layout.game_code is not None:
        struct.pack_into('<I', data, section0 + layout.game_code, 1)
    if layout.security_key is not None:
        struct.pack_into('<I', data, section0 + layout.security_key, security_key)
    else:
        security_key = 0

    section1 = GEN3_SECTION_SIZE
    struct.pack_into('<I', data, section1 + layout.money, (money ^ security_key) & 0xFFFFFFFF)
    struct.pack_into('<I', data, section1 + layout.party_count, 1 if starter else 0)
    if starter:
        start = section1 + layout.party_data
        data[start:start + POKEMON_SIZE_BYTES] = starter

    for section_id in range(GEN3_SECTION_COUNT):
        update_gen3_section_checksum(data, section_id * GEN3_SECTION_SIZE, section_id)
    return data


# =============================================================================
# Public API
# =============================================================================

def create_new_save(
    options: NewSaveOptions,
    species: Optional[Sequence[SpeciesRecord]] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    settings: Optional[SaveConfig] = None,
) -> SynthesizedSave:
    """Synthesizes a new save image.

    Args:
        options (NewSaveOptions): Game id, trainer name/gender, money and
                                  an optional starter National id.
        species (Optional[Sequence[SpeciesRecord]]): Reference table for the
                                  starter's name, base stats and growth rate.
        seed (Optional[int]): Seed for ids, personality and IVs.
        rng (Optional[np.random.Generator]): Generator to use instead of a seed.
        settings (Optional[SaveConfig]): Limits and defaults.

    Returns:
        SynthesizedSave: The finished image and its file extension.

    Raises:
        UnknownGameTemplateError: If ``game_id`` has no template.
        InvalidSaveOptionsError: If the name is empty or an id is out of range.
    """
    settings = settings or default_config.save_file
    rng = rng if rng is not None else np.random.default_rng(seed)
    template = get_template(options.game_id)

    name = normalize_trainer_name(options.trainer_name, settings.max_name_length, template.generation)
    money = clamp_money(options.money, settings)
    gender = TrainerGender(options.trainer_gender) if options.trainer_gender is not None \
        else template.default_gender
    trainer_id = _check_id(
        options.trainer_id if options.trainer_id is not None else int(rng.integers(0, 0x10000)),
        "trainer_id",
    )

    personality = None
    if template.generation == 1:
        data = _create_gen1_save(template, name, trainer_id, money)
    elif template.generation == 2:
        data = _create_gen2_save(template, name, trainer_id, money, gender)
    else:
        secret_id = _check_id(
            options.secret_id if options.secret_id is not None else int(rng.integers(0, 0x10000)),
            "secret_id",
        )
        starter = None
        if options.starter_species:
            if not 0 < options.starter_species <= 386:
                raise InvalidSaveOptionsError("starter_species", f"#{options.starter_species} is not a Gen 3 species")
            by_id = {s.national_id: s for s in (species or ())}
            personality = int(rng.integers(0, 0x100000000))
            ivs = [int(iv) for iv in rng.integers(0, 32, size=6)]
            starter = build_gen3_pokemon(
                options.starter_species, personality, trainer_id, secret_id, name, gender,
                ivs, template, by_id.get(options.starter_species), settings,
            )
        # Emerald/FRLG saves carry a random money key; 0 and 1 would read back as RS/FRLG
        security_key = template.security_key
        if GEN3_LAYOUTS[template.family].security_key is not None and not security_key:
            security_key = int(rng.integers(2, 0x100000000))
        data = _create_gen3_save(template, name, trainer_id, secret_id, money, gender, starter, security_key)

    if options.starter_species and template.generation < 3:
        logger.warning(f"Starter selection is only supported for Gen 3 saves, ignored for {template.name}")

    if len(data) != template.file_size:
        raise InvalidSaveOptionsError("game_id", f"synthesized {len(data)} bytes, expected {template.file_size}")

    logger.info(f"Created {template.name} save for {name} (ID {trainer_id:05d})")
    return SynthesizedSave(
        data=bytes(data),
        template=template,
        trainer_name=name,
        extension=get_save_file_extension(template.game_id),
        personality=personality,
    )
