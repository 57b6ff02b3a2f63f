import sys
import os
import struct
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cartridge_engine.core.dataclasses import GameConfig, SpeciesRecord
from cartridge_engine.core.enums import GrowthRate
from cartridge_engine.constants import GB_LOGO_PREFIX


def _species(national_id, name, types, stats, legendary=False, generation=1, growth=GrowthRate.MEDIUM_SLOW):
    hp, atk, defense, spa, spd, spe = stats
    return SpeciesRecord(
        national_id=national_id, name=name, types=tuple(types),
        hp=hp, attack=atk, defense=defense, sp_attack=spa, sp_defense=spd, speed=spe,
        is_legendary=legendary, generation=generation, growth_rate=growth,
    )


SPECIES = [
    _species(1, "Bulbasaur", ["grass", "poison"], (45, 49, 49, 65, 65, 45)),
    _species(4, "Charmander", ["fire"], (39, 52, 43, 60, 50, 65)),
    _species(7, "Squirtle", ["water"], (44, 48, 65, 50, 64, 43)),
    _species(16, "Pidgey", ["normal", "flying"], (40, 45, 40, 35, 35, 56)),
    _species(19, "Rattata", ["normal"], (30, 56, 35, 25, 35, 72), growth=GrowthRate.MEDIUM_FAST),
    _species(25, "Pikachu", ["electric"], (35, 55, 30, 50, 40, 90), growth=GrowthRate.MEDIUM_FAST),
    _species(150, "Mewtwo", ["psychic"], (106, 110, 90, 154, 90, 130), legendary=True, growth=GrowthRate.SLOW),
    _species(152, "Chikorita", ["grass"], (45, 49, 65, 49, 65, 45), generation=2),
    _species(252, "Treecko", ["grass"], (40, 45, 35, 65, 55, 70), generation=3),
    _species(258, "Mudkip", ["water"], (50, 70, 50, 50, 50, 40), generation=3),
    _species(382, "Kyogre", ["water"], (100, 100, 90, 150, 140, 90), legendary=True, generation=3,
             growth=GrowthRate.SLOW),
]


@pytest.fixture
def species():
    """Small species table spanning Gen 1-3, with two legendaries."""
    return list(SPECIES)


@pytest.fixture
def red_config():
    return GameConfig(
        game_code="POKEMON RED",
        game_name="Pokemon Red",
        generation=1,
        platform="GB",
        offsets={"wildGrassEncounters": 0x1000, "starterOffsets": [0x3000, 0x3001, 0x3002]},
    )


@pytest.fixture
def gold_config():
    return GameConfig(
        game_code="POKEMON GOLD",
        game_name="Pokemon Gold",
        generation=2,
        platform="GBC",
        pokemon_count=251,
        offsets={"wildGrassEncounters": 0x1000},
    )


@pytest.fixture
def emerald_config():
    return GameConfig(
        game_code="BPEE",
        game_name="Pokemon Emerald",
        generation=3,
        platform="GBA",
        pokemon_count=386,
        offsets={"wildEncounterPointer": "0x100", "starterOffsets": ["0x2000", "0x2002", "0x2004"]},
    )


@pytest.fixture
def configs(red_config, gold_config, emerald_config):
    return [red_config, gold_config, emerald_config]


@pytest.fixture
def make_gb_rom():
    """Factory for a GB/GBC image carrying the Nintendo logo and a title."""
    def _make(title="POKEMON RED", cgb_flag=0x00, size=0x8000):
        rom = bytearray(size)
        rom[0x104:0x104 + len(GB_LOGO_PREFIX)] = GB_LOGO_PREFIX
        encoded = title.encode("ascii")[:16]
        rom[0x134:0x134 + len(encoded)] = encoded
        rom[0x143] = cgb_flag
        return rom
    return _make


@pytest.fixture
def make_gba_rom():
    """Factory for a GBA image with an ARM branch entry point and header fields."""
    def _make(game_code="BPEE", title="POKEMON EMER", size=0x40000, entry=True, fixed=True):
        rom = bytearray(size)
        if entry:
            struct.pack_into('<I', rom, 0, 0xEA00002E)
        encoded = title.encode("ascii")[:12]
        rom[0xA0:0xA0 + len(encoded)] = encoded
        code = game_code.encode("ascii")[:4]
        rom[0xAC:0xAC + len(code)] = code
        if fixed:
            rom[0xB2] = 0x96
        return rom
    return _make
