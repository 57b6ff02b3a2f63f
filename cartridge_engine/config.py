"""
Centralized Configuration for the Cartridge Engine.

This module provides a single source of truth for the tunable values
used by the randomizer and the save synthesizer. Fixed binary layout
(header fields, save offsets) lives in constants.py instead; what is
here are the empirical limits a caller may reasonably want to change.

Usage:
    from cartridge_engine.config import config, EngineConfig

    # Use default config
    start = config.randomizer.gba_scan_start

    # Create custom config
    custom = EngineConfig(randomizer=RandomizerConfig(gb_area_count=80))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Any
import json
from pathlib import Path


@dataclass
class RandomizerConfig:
    """
    Encounter table location and selection limits.

    The GB area count approximates "every area in the game". The GBA scan
    range and slot-shape thresholds are empirical: they were never checked
    against a full set of ROM dumps, so they are kept adjustable.
    """

    # GB/GBC fixed-area walk
    gb_area_count: int = 50
    gb_area_size: int = 20             # 10 slots x (level, species)
    gb_slots_per_area: int = 10

    # GBA shape scan
    gba_strategy: str = "shape_scan"   # or "pointer_table"
    gba_scan_start: int = 0x100000
    gba_scan_end: int = 0x800000       # clamped to buffer length
    gba_min_level: int = 2
    gba_max_level: int = 100
    gba_max_species: int = 386

    # GBA pointer-table walk
    pointer_search_radius: int = 0x10000
    pointer_search_floor: int = 0x100000
    pointer_max_maps: int = 500
    pointer_max_species: int = 500

    # Random starters
    starter_target_bst: int = 320
    starter_bst_variance: int = 100
    starter_count: int = 3


@dataclass
class SaveConfig:
    """New save file defaults and limits."""

    max_money: int = 999999
    default_money: int = 3000
    max_name_length: int = 7
    starter_level: int = 5
    starter_friendship: int = 70
    default_base_stat: int = 50

    # Tackle and Growl, with their base PP
    starter_moves: tuple = (33, 45)
    starter_move_pp: tuple = (35, 40)


@dataclass
class EngineConfig:
    """
    Master configuration class for the Cartridge Engine.

    Combines all sub-configurations into a single object that can
    be passed throughout the codebase.

    Example:
        config = EngineConfig()
        print(config.randomizer.gb_area_count)  # 50
        print(config.save_file.default_money)  # 3000
    """

    randomizer: RandomizerConfig = field(default_factory=RandomizerConfig)
    save_file: SaveConfig = field(default_factory=SaveConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "randomizer": self.randomizer.__dict__,
            "save_file": {k: v if not isinstance(v, tuple) else list(v)
                     for k, v in self.save_file.__dict__.items()},
        }

    def save(self, path: str | Path) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str | Path) -> EngineConfig:
        """Load configuration from JSON file."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)

        return cls(
            randomizer=RandomizerConfig(**data.get("randomizer", {})),
            save_file=SaveConfig(**{k: tuple(v) if isinstance(v, list) else v
                                    for k, v in data.get("save_file", {}).items()}),
        )


# Global default configuration instance
config = EngineConfig()
