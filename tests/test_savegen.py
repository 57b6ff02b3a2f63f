import sys
import os
import struct
import logging
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cartridge_engine.savegen import (
    GAME_TEMPLATES, STARTER_OPTIONS, GEN3_LAYOUTS, create_new_save, get_save_file_extension, get_template,
    encode_bcd, decode_bcd, nature_modifier, calculate_gen3_stat, pack_ivs, build_gen3_pokemon,
)
from cartridge_engine.checksums import verify_gen1_checksum, verify_gen2_checksums, verify_gen3_section_checksum
from cartridge_engine.decryption import decode_substructures
from cartridge_engine.text import decode_gen3_string, unsupported_characters
from cartridge_engine.core.dataclasses import NewSaveOptions
from cartridge_engine.core.enums import Gen3Family, Stat, TrainerGender
from cartridge_engine.core.exceptions import UnknownGameTemplateError, InvalidSaveOptionsError


def read_party_record(data, family):
    layout = GEN3_LAYOUTS[family]
    section1 = 0x1000
    count = struct.unpack_from('<I', data, section1 + layout.party_count)[0]
    start = section1 + layout.party_data
    return count, bytes(data[start:start + 100])


# =============================================================================
# Field helpers
# =============================================================================

def test_bcd():
    assert encode_bcd(3000, 3) == b'\x00\x30\x00'
    assert encode_bcd(999999, 3) == b'\x99\x99\x99'
    assert decode_bcd(b'\x01\x23\x45') == 12345


@pytest.mark.parametrize("nature, stat, expected", [
    (0, Stat.ATTACK, (1, 1)),          # Hardy
    (1, Stat.ATTACK, (110, 100)),      # Lonely
    (1, Stat.DEFENSE, (90, 100)),
    (15, Stat.SP_ATTACK, (110, 100)),  # Modest
    (15, Stat.ATTACK, (90, 100)),
    (15, Stat.SPEED, (1, 1)),
])
def test_nature_modifier(nature, stat, expected):
    assert nature_modifier(nature, stat) == expected


def test_stat_formula():
    assert calculate_gen3_stat(100, 31, 0, 50, 0, Stat.ATTACK) == 120
    assert calculate_gen3_stat(100, 31, 0, 50, 0, Stat.HP) == 175
    assert calculate_gen3_stat(100, 31, 0, 50, 15, Stat.SP_ATTACK) == 132
    assert calculate_gen3_stat(100, 31, 0, 50, 15, Stat.ATTACK) == 108


def test_pack_ivs():
    assert pack_ivs([31, 0, 0, 0, 0, 0]) == 31
    assert pack_ivs([0, 31, 0, 0, 0, 0]) == 31 << 5
    assert pack_ivs([31] * 6) == 0x3FFFFFFF


def test_templates():
    assert len(GAME_TEMPLATES) == 11
    assert set(STARTER_OPTIONS) == set(GAME_TEMPLATES)
    assert get_template("emerald").family is Gen3Family.EMERALD
    assert get_save_file_extension("red") == ".sav"
    with pytest.raises(UnknownGameTemplateError):
        get_template("diamond")


# =============================================================================
# Gen 1 / Gen 2
# =============================================================================

def test_gen1_save():
    save = create_new_save(NewSaveOptions("red", "ASH", trainer_id=12345), seed=1)
    data = save.to_bytes()
    assert len(data) == 0x8000
    assert data[0x2598:0x25A3] == bytes([0x80, 0x92, 0x87]) + b'\x50' * 8
    assert data[0x25F3:0x25F6] == b'\x00\x30\x00'
    assert struct.unpack_from('>H', data, 0x2605)[0] == 12345
    assert verify_gen1_checksum(data)
    assert save.download_name == "ASH_red.sav"


def test_gen2_save():
    save = create_new_save(NewSaveOptions("gold", "GOLD", money=123456, trainer_id=1), seed=1)
    data = save.to_bytes()
    assert len(data) == 0x8000
    assert int.from_bytes(data[0x23DB:0x23DE], 'big') == 123456
    assert verify_gen2_checksums(data)


def test_crystal_gender():
    save = create_new_save(NewSaveOptions("crystal", "KRIS", trainer_gender=TrainerGender.FEMALE), seed=1)
    assert save.data[0x3E3D] == 1


def test_gen1_starter_is_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        save = create_new_save(NewSaveOptions("red", "ASH", starter_species=1), seed=1)
    assert "only supported for Gen 3" in caplog.text
    assert save.personality is None


# =============================================================================
# Gen 3
# =============================================================================

@pytest.mark.parametrize("game_id", ["ruby", "sapphire", "emerald", "firered", "leafgreen"])
def test_gen3_sections(game_id):
    save = create_new_save(NewSaveOptions(game_id, "MAY", trainer_id=100, secret_id=200), seed=3)
    data = save.to_bytes()
    assert len(data) == 0x20000

    for section_id in range(14):
        offset = section_id * 0x1000
        assert struct.unpack_from('<H', data, offset + 0xFF4)[0] == section_id
        assert struct.unpack_from('<I', data, offset + 0xFF8)[0] == 0x08012025
        assert verify_gen3_section_checksum(data, offset, section_id)

    assert decode_gen3_string(data[0:8]) == "MAY"
    assert struct.unpack_from('<HH', data, 0x0A) == (100, 200)
    # Second slot stays blank
    assert data[0xE000:0x1C000] == b'\xFF' * 0xE000


def test_gen3_money_encryption():
    save = create_new_save(NewSaveOptions("firered", "RED", money=5000), seed=8)
    data = save.to_bytes()
    key = struct.unpack_from('<I', data, 0xAF8)[0]
    assert key not in (0, 1)
    assert struct.unpack_from('<I', data, 0xAC)[0] == 1
    assert struct.unpack_from('<I', data, 0x1000 + 0x290)[0] ^ key == 5000

    ruby = create_new_save(NewSaveOptions("ruby", "BRENDAN", money=5000), seed=8).to_bytes()
    assert struct.unpack_from('<I', ruby, 0x1000 + 0x490)[0] == 5000


def test_gen3_starter_record(species):
    options = NewSaveOptions("emerald", "MAY", starter_species=258, trainer_id=111, secret_id=222)
    save = create_new_save(options, species=species, seed=5)
    count, record = read_party_record(save.data, Gen3Family.EMERALD)
    assert count == 1

    pid, otid = struct.unpack_from('<II', record, 0)
    assert pid == save.personality
    assert otid == (222 << 16) | 111
    assert decode_gen3_string(record[8:18]) == "MUDKIP"
    assert decode_gen3_string(record[20:27]) == "MAY"

    checksum = struct.unpack_from('<H', record, 28)[0]
    plain = decode_substructures(record[32:80], pid, otid, checksum)
    species_id, item, exp = struct.unpack_from('<HHI', plain, 0)
    assert (species_id, item, exp) == (258, 0, 135)   # medium-slow at level 5
    assert struct.unpack_from('<2H', plain, 12) == (33, 45)

    origins = struct.unpack_from('<H', plain, 38)[0]
    assert origins & 0x7F == 5
    assert (origins >> 7) & 0xF == 3
    assert (origins >> 11) & 0xF == 4

    assert record[84] == 5
    hp, max_hp = struct.unpack_from('<HH', record, 86)
    assert hp == max_hp
    assert 20 <= hp <= 21


def test_gen3_without_species_table():
    record = build_gen3_pokemon(
        258, 0x12345678, 1, 2, "MAY", TrainerGender.FEMALE, [0] * 6, get_template("sapphire"),
    )
    assert len(record) == 100
    assert decode_gen3_string(record[8:18]) == "POKEMON"


def test_gen3_starter_out_of_range():
    with pytest.raises(InvalidSaveOptionsError):
        create_new_save(NewSaveOptions("emerald", "MAY", starter_species=400), seed=1)


def test_seeded_saves_are_identical(species):
    options = NewSaveOptions("leafgreen", "LEAF", starter_species=1)
    a = create_new_save(options, species=species, seed=77)
    b = create_new_save(options, species=species, seed=77)
    assert a.data == b.data


# =============================================================================
# Options
# =============================================================================

def test_name_rules():
    with pytest.raises(InvalidSaveOptionsError):
        create_new_save(NewSaveOptions("red", "   "), seed=1)
    save = create_new_save(NewSaveOptions("ruby", "  ABCDEFGHIJ "), seed=1)
    assert save.trainer_name == "ABCDEFG"


def test_unstorable_name_characters_are_logged(caplog):
    with caplog.at_level(logging.WARNING):
        save = create_new_save(NewSaveOptions("red", "ASH#"), seed=1)
    assert "cannot store" in caplog.text
    assert save.trainer_name == "ASH#"
    # stored as a space
    assert save.data[0x2598 + 3] == 0x7F


def test_unsupported_characters():
    assert unsupported_characters("José", 1) == []
    assert unsupported_characters("José", 3) == []
    assert unsupported_characters("A#B#&", 3) == ["#", "&"]


def test_money_is_clamped():
    data = create_new_save(NewSaveOptions("gold", "ETHAN", money=5_000_000), seed=1).data
    assert int.from_bytes(data[0x23DB:0x23DE], 'big') == 999999
    data = create_new_save(NewSaveOptions("gold", "ETHAN", money=-5), seed=1).data
    assert int.from_bytes(data[0x23DB:0x23DE], 'big') == 0


def test_trainer_id_range():
    with pytest.raises(InvalidSaveOptionsError):
        create_new_save(NewSaveOptions("red", "ASH", trainer_id=70000), seed=1)


def test_editable_copy_is_independent():
    save = create_new_save(NewSaveOptions("red", "ASH"), seed=1)
    editable = save.editable()
    editable[0] = 0xAA
    assert isinstance(editable, bytearray)
    assert save.data[0] == 0
