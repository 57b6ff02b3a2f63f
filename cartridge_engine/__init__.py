"""
Pokemon Cartridge Engine.

Byte-level tooling for Game Boy, Game Boy Color and Game Boy Advance
Pokemon cartridges and their save files:

- Header parsing and ROM configuration matching (GB/GBC/GBA)
- Gen 1 internal <-> National species id translation
- Wild encounter and starter randomization (in place, seeded)
- New save synthesis for Gen 1/2/3, including Gen 3 encryption
- Save file fingerprinting, party readback and field editing

Pipeline Overview:
    ROM bytes ──> parse_header ──> match_config ──> GameInfo
                                                       │
        species table ──> WildEncounterRandomizer ─────┘──> mutated ROM

    NewSaveOptions ──> create_new_save ──> SynthesizedSave (.sav bytes)
                                                  │
              detect_save / parse_party <─────────┤
              set_trainer_name / set_money ... <──┘  (checksums refreshed)

Usage:
    from cartridge_engine import detect_rom, randomize_wild_encounters, RandomizationOptions

    info = detect_rom(rom, configs, file_name="red.gb")
    buffer = bytearray(rom)
    result = randomize_wild_encounters(buffer, info.config, species, RandomizationOptions(), seed=42)
    print(f"{result.total_changes} slots changed")
"""

from __future__ import annotations

# Package version
__version__ = "0.1.0"

# Configuration
from .config import config, EngineConfig, RandomizerConfig, SaveConfig

# Core enums and types
from .core.enums import Platform, Gen3Family, TrainerGender, GrowthRate, Stat
from .core.dataclasses import (
    GameConfig,
    GameInfo,
    GbHeader,
    GbaHeader,
    SpeciesRecord,
    EncounterSlot,
    RandomizationOptions,
    RandomizationResult,
    SpeciesChange,
    GameTemplate,
    NewSaveOptions,
    SynthesizedSave,
    SaveInfo,
    PartyPokemon,
)

# Exceptions
from .core.exceptions import (
    CartridgeEngineError,
    MissingOffsetError,
    EncounterTableNotFoundError,
    UnsupportedSpeciesError,
    EmptySpeciesPoolError,
    UnknownGameTemplateError,
    InvalidSaveOptionsError,
    UnrecognizedSaveError,
)

# Detection
from .header import parse_header, parse_gb_header, parse_gba_header
from .matcher import match_config, detect_rom

# Species translation
from .species import internal_to_national, national_to_internal

# Randomization
from .randomizer import (
    WildEncounterRandomizer,
    randomize_wild_encounters,
    set_starters,
    get_random_starters,
)

# Save files
from .savegen import create_new_save, get_save_file_extension, GAME_TEMPLATES, STARTER_OPTIONS
from .savefile import detect_save, parse_party
from .saveedit import set_trainer_name, set_money, set_badges, set_play_time

__all__ = [
    # Version
    "__version__",
    # Config
    "config",
    "EngineConfig",
    "RandomizerConfig",
    "SaveConfig",
    # Enums
    "Platform",
    "Gen3Family",
    "TrainerGender",
    "GrowthRate",
    "Stat",
    # Dataclasses
    "GameConfig",
    "GameInfo",
    "GbHeader",
    "GbaHeader",
    "SpeciesRecord",
    "EncounterSlot",
    "RandomizationOptions",
    "RandomizationResult",
    "SpeciesChange",
    "GameTemplate",
    "NewSaveOptions",
    "SynthesizedSave",
    "SaveInfo",
    "PartyPokemon",
    # Exceptions
    "CartridgeEngineError",
    "MissingOffsetError",
    "EncounterTableNotFoundError",
    "UnsupportedSpeciesError",
    "EmptySpeciesPoolError",
    "UnknownGameTemplateError",
    "InvalidSaveOptionsError",
    "UnrecognizedSaveError",
    # Detection
    "parse_header",
    "parse_gb_header",
    "parse_gba_header",
    "match_config",
    "detect_rom",
    # Species
    "internal_to_national",
    "national_to_internal",
    # Randomization
    "WildEncounterRandomizer",
    "randomize_wild_encounters",
    "set_starters",
    "get_random_starters",
    # Save files
    "create_new_save",
    "get_save_file_extension",
    "GAME_TEMPLATES",
    "STARTER_OPTIONS",
    "detect_save",
    "parse_party",
    "set_trainer_name",
    "set_money",
    "set_badges",
    "set_play_time",
]
