"""
Core Module - Data structures, enums, and protocols.

This module provides the fundamental types used throughout the
Cartridge Engine.
"""

from __future__ import annotations

from .enums import (
    Platform,
    Gen3Family,
    SubstructureType,
    TrainerGender,
    GrowthRate,
    Stat,
)

from .dataclasses import (
    GbHeader,
    GbaHeader,
    GameConfig,
    GameInfo,
    SpeciesRecord,
    EncounterSlot,
    RandomizationOptions,
    SpeciesChange,
    RandomizationResult,
    GameTemplate,
    NewSaveOptions,
    SynthesizedSave,
    PlayTime,
    SaveInfo,
    PartyPokemon,
)

from .protocols import EncounterLocator

from .exceptions import (
    CartridgeEngineError,
    RomError,
    UnrecognizedRomError,
    MissingOffsetError,
    EncounterTableNotFoundError,
    SpeciesError,
    UnsupportedSpeciesError,
    EmptySpeciesPoolError,
    SaveError,
    UnknownGameTemplateError,
    InvalidSaveOptionsError,
    UnrecognizedSaveError,
    DecryptionError,
    DataError,
    ReferenceDataError,
)

__all__ = [
    # Enums
    "Platform",
    "Gen3Family",
    "SubstructureType",
    "TrainerGender",
    "GrowthRate",
    "Stat",
    # Dataclasses
    "GbHeader",
    "GbaHeader",
    "GameConfig",
    "GameInfo",
    "SpeciesRecord",
    "EncounterSlot",
    "RandomizationOptions",
    "SpeciesChange",
    "RandomizationResult",
    "GameTemplate",
    "NewSaveOptions",
    "SynthesizedSave",
    "PlayTime",
    "SaveInfo",
    "PartyPokemon",
    # Protocols
    "EncounterLocator",
    # Exceptions
    "CartridgeEngineError",
    "RomError",
    "UnrecognizedRomError",
    "MissingOffsetError",
    "EncounterTableNotFoundError",
    "SpeciesError",
    "UnsupportedSpeciesError",
    "EmptySpeciesPoolError",
    "SaveError",
    "UnknownGameTemplateError",
    "InvalidSaveOptionsError",
    "UnrecognizedSaveError",
    "DecryptionError",
    "DataError",
    "ReferenceDataError",
]
