"""
Cartridge Engine - Command Line Interface

Thin wrapper over the engine for working with ROM and save files on disk.
Reference data (species table and ROM configurations) comes either from a
SQLAlchemy database (``--db``) or from JSON files (``--species``/``--configs``).

Usage:
    cartridge-engine detect red.gb --configs configs.json
    cartridge-engine randomize red.gb -o red_random.gb --species species.json --configs configs.json -s 42
    cartridge-engine new-save emerald --name MAY --starter 258 -o may.sav --species species.json
    cartridge-engine detect-save may.sav
    cartridge-engine edit-save may.sav --money 50000 --badges 0xFF
    cartridge-engine list-games
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .config import EngineConfig, config as default_config
from .core.dataclasses import GameConfig, NewSaveOptions, RandomizationOptions, SpeciesRecord
from .core.enums import TrainerGender
from .core.exceptions import CartridgeEngineError, UnrecognizedRomError
from .db import ReferenceDatabase, load_species_json, load_configs_json
from .matcher import detect_rom
from .randomizer import WildEncounterRandomizer, get_random_starters, set_starters
from .saveedit import set_badges, set_money, set_play_time, set_trainer_name
from .savefile import detect_save, parse_party
from .savegen import GAME_TEMPLATES, STARTER_OPTIONS, create_new_save

logger = logging.getLogger(__name__)


def print_separator(char: str = '-', length: int = 60) -> None:
    """Prints a visual separator line."""
    print(char * length)


def load_reference(args) -> Tuple[List[SpeciesRecord], List[GameConfig]]:
    """Loads species and configs from --db, then overrides with any JSON files given."""
    species: List[SpeciesRecord] = []
    configs: List[GameConfig] = []
    if getattr(args, "db", None):
        with ReferenceDatabase(args.db) as db:
            species = db.list_species()
            configs = db.list_game_configs()
    if getattr(args, "species", None):
        species = load_species_json(args.species)
    if getattr(args, "configs", None):
        configs = load_configs_json(args.configs)
    return species, configs


def load_engine_config(args) -> EngineConfig:
    if getattr(args, "engine_config", None):
        return EngineConfig.load(args.engine_config)
    return default_config


def _default_output(path: str, suffix: str) -> str:
    root, ext = os.path.splitext(path)
    return f"{root}_{suffix}{ext}"


# =============================================================================
# Commands
# =============================================================================

def cmd_detect(args) -> int:
    _, configs = load_reference(args)
    data = Path(args.rom).read_bytes()
    info = detect_rom(data, configs, file_name=os.path.basename(args.rom))
    if info is None:
        print(f"Unsupported or unrecognized ROM: {args.rom}")
        return 1

    print_separator('=')
    print(f"Game:       {info.game_name}")
    print(f"Code:       {info.game_code}")
    print(f"Generation: {info.generation} ({info.platform.value})")
    print(f"Region:     {info.region}")
    print(f"Size:       {info.file_size} bytes")
    print(f"Offsets:    {', '.join(sorted(info.offsets)) or '-'}")
    print_separator('=')
    return 0


def cmd_randomize(args) -> int:
    species, configs = load_reference(args)
    engine_config = load_engine_config(args)
    rom_path = args.rom
    data = Path(rom_path).read_bytes()

    info = detect_rom(data, configs, file_name=os.path.basename(rom_path))
    if info is None:
        raise UnrecognizedRomError(os.path.basename(rom_path), len(data))

    options = RandomizationOptions(
        match_bst=args.match_bst,
        bst_variance=args.bst_variance,
        include_legendaries=args.legendaries,
        same_type=args.same_type,
    )
    buffer = bytearray(data)
    randomizer = WildEncounterRandomizer(species, options, seed=args.seed, settings=engine_config.randomizer)
    result = randomizer.randomize(buffer, info.config)

    if args.starters:
        starter_ids = get_random_starters(
            [s for s in species if s.generation <= info.generation],
            rng=randomizer.rng,
            settings=engine_config.randomizer,
        )
        written = set_starters(buffer, info.config, starter_ids)
        print(f"Starters: {', '.join(f'#{i}' for i in starter_ids)} ({written} slots)")

    output = args.output or _default_output(rom_path, "randomized")
    Path(output).write_bytes(bytes(buffer))

    print(f"Changed {result.total_changes} encounter slots")
    if args.verbose:
        for change in result.changes:
            print(f"  0x{change.address:06X}: {change.original_name} -> {change.new_name}")
    print(f"Created file: {output}")
    return 0


def cmd_new_save(args) -> int:
    species, _ = load_reference(args)
    engine_config = load_engine_config(args)
    options = NewSaveOptions(
        game_id=args.game,
        trainer_name=args.name,
        trainer_gender=TrainerGender[args.gender.upper()] if args.gender else None,
        money=args.money,
        starter_species=args.starter,
        trainer_id=args.trainer_id,
        secret_id=args.secret_id,
    )
    save = create_new_save(options, species=species, seed=args.seed, settings=engine_config.save_file)
    output = args.output or save.download_name
    Path(output).write_bytes(save.to_bytes())
    print(f"Created {save.template.name} save for {save.trainer_name}: {output}")
    return 0


def cmd_detect_save(args) -> int:
    data = Path(args.save).read_bytes()
    info = detect_save(data)
    if info is None:
        print(f"Unrecognized save file: {args.save}")
        return 1

    print_separator('=')
    print(f"Game:       {info.game} (Gen {info.generation})")
    print(f"Trainer:    {info.trainer_name} (ID {info.trainer_id:05d})")
    print(f"Money:      {info.money}")
    print(f"Badges:     {bin(info.badges).count('1')}/8")
    print(f"Play Time:  {info.play_time.hours}:{info.play_time.minutes:02d}:{info.play_time.seconds:02d}")
    print(f"Checksum:   {'OK' if info.checksum_valid else 'INVALID'}")
    print_separator()
    party = parse_party(data)
    if not party:
        print("Party:      (empty)")
    for i, mon in enumerate(party, 1):
        flag = "" if mon.checksum_valid else "  [bad checksum]"
        print(f"  {i}. #{mon.species_id:03d} {mon.nickname:<10} Lv.{mon.level:<3} OT {mon.ot_name}{flag}")
    print_separator('=')
    return 0


def cmd_edit_save(args) -> int:
    path = Path(args.save)
    data = bytearray(path.read_bytes())
    engine_config = load_engine_config(args)

    if args.name is not None:
        set_trainer_name(data, args.name, engine_config.save_file)
    if args.money is not None:
        set_money(data, args.money, engine_config.save_file)
    if args.badges is not None:
        set_badges(data, args.badges)
    if args.play_time is not None:
        set_play_time(data, *args.play_time)

    output = args.output or args.save
    Path(output).write_bytes(bytes(data))
    print(f"Updated file: {output}")
    return 0


def cmd_list_games(args) -> int:
    for game_id, template in GAME_TEMPLATES.items():
        starters = ", ".join(name for _, name in STARTER_OPTIONS.get(game_id, []))
        print(f"{game_id:<10} {template.name:<20} Gen {template.generation}  {starters}")
    return 0


# =============================================================================
# Argument Parsing
# =============================================================================

def _add_reference_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--db", help="SQLAlchemy URL of the reference database")
    parser.add_argument("--species", help="Species table JSON file")
    parser.add_argument("--configs", help="ROM configuration JSON file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cartridge-engine",
        description="Inspect, randomize and create Pokemon cartridge and save files.",
    )
    parser.add_argument("--engine-config", help="JSON file overriding engine defaults")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and per-slot output")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("detect", help="Identify a ROM image")
    p.add_argument("rom", help="Path to the ROM file")
    _add_reference_args(p)
    p.set_defaults(func=cmd_detect)

    p = sub.add_parser("randomize", help="Randomize wild encounters in a ROM")
    p.add_argument("rom", help="Path to the input ROM file")
    p.add_argument("-o", "--output", help="Output path (default: adds '_randomized' to the file name)")
    p.add_argument("-s", "--seed", type=int, help="Random seed for reproducible results")
    p.add_argument("--match-bst", action="store_true", help="Prefer replacements with a similar base stat total")
    p.add_argument("--bst-variance", type=int, default=50, help="Allowed base stat total difference")
    p.add_argument("--legendaries", action="store_true", help="Allow legendary replacements")
    p.add_argument("--same-type", action="store_true", help="Prefer replacements sharing a type")
    p.add_argument("--starters", action="store_true", help="Also randomize the starter Pokemon")
    _add_reference_args(p)
    p.set_defaults(func=cmd_randomize)

    p = sub.add_parser("new-save", help="Create a new save file")
    p.add_argument("game", choices=sorted(GAME_TEMPLATES), help="Game id")
    p.add_argument("--name", required=True, help="Trainer name (max 7 characters)")
    p.add_argument("--gender", choices=["male", "female"], help="Trainer gender")
    p.add_argument("--money", type=int, help="Starting money")
    p.add_argument("--starter", type=int, help="National Dex number of a starter (Gen 3 only)")
    p.add_argument("--trainer-id", type=int, help="Trainer id (random if omitted)")
    p.add_argument("--secret-id", type=int, help="Secret id, Gen 3 only (random if omitted)")
    p.add_argument("-s", "--seed", type=int, help="Random seed for ids, personality and IVs")
    p.add_argument("-o", "--output", help="Output path (default: <name>_<game>.sav)")
    _add_reference_args(p)
    p.set_defaults(func=cmd_new_save)

    p = sub.add_parser("detect-save", help="Identify a save file")
    p.add_argument("save", help="Path to the save file")
    p.set_defaults(func=cmd_detect_save)

    p = sub.add_parser("edit-save", help="Edit trainer fields of a save file")
    p.add_argument("save", help="Path to the save file")
    p.add_argument("--name", help="New trainer name")
    p.add_argument("--money", type=int, help="New money amount")
    p.add_argument("--badges", type=lambda v: int(v, 0), help="Badge bitmask, e.g. 0xFF for all eight")
    p.add_argument("--play-time", type=int, nargs=3, metavar=("H", "M", "S"), help="Play time")
    p.add_argument("-o", "--output", help="Output path (default: overwrite the input)")
    p.set_defaults(func=cmd_edit_save)

    p = sub.add_parser("list-games", help="List games a save can be created for")
    p.set_defaults(func=cmd_list_games)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    try:
        return args.func(args)
    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename}")
        return 1
    except CartridgeEngineError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
