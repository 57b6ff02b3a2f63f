"""
Wild Encounter and Starter Randomization.

Rewrites species ids inside a ROM buffer in place. Replacement selection
follows a fixed policy, first success wins:

1. same_type: a pool species sharing at least one type with the original.
2. match_bst: a pool species whose base stat total is within
   +/- bst_variance of the original's.
3. Any pool species.

Every candidate draw is uniform and comes from a NumPy Generator, so a
seeded randomizer reproduces its output exactly.
"""

from __future__ import annotations

import logging
import struct
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import RandomizerConfig, config as default_config
from .constants import OFFSET_STARTERS
from .core.dataclasses import (
    GameConfig, SpeciesRecord,
    RandomizationOptions, RandomizationResult, SpeciesChange,
)
from .core.enums import Platform
from .core.exceptions import EmptySpeciesPoolError, MissingOffsetError
from .core.protocols import EncounterLocator
from .encounters import default_locator
from .species import to_storage_id

logger = logging.getLogger(__name__)


def build_pool(species: Sequence[SpeciesRecord], generation: int, include_legendaries: bool) -> List[SpeciesRecord]:
    """Filters the species table down to valid replacement candidates.

    Args:
        species: Full species table.
        generation: Generation of the target game; later species are excluded.
        include_legendaries: Keep legendary-flagged species.

    Returns:
        List[SpeciesRecord]: The candidate pool.

    Raises:
        EmptySpeciesPoolError: If no species survive filtering.
    """
    pool = [s for s in species if s.generation <= generation]
    if not include_legendaries:
        pool = [s for s in pool if not s.is_legendary]
    if not pool:
        raise EmptySpeciesPoolError(generation, include_legendaries)
    return pool


class SpeciesSelector:
    """
    Replacement picker over a fixed candidate pool.

    Usage:
        selector = SpeciesSelector(pool, options, seed=42)
        new = selector.select(original)
    """

    def __init__(
        self,
        pool: Sequence[SpeciesRecord],
        options: RandomizationOptions,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.pool = list(pool)
        self.options = options
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def choose(self, candidates: Sequence[SpeciesRecord]) -> Optional[SpeciesRecord]:
        if not candidates:
            return None
        return candidates[int(self.rng.integers(len(candidates)))]

    def same_type(self, original: SpeciesRecord) -> Optional[SpeciesRecord]:
        return self.choose([s for s in self.pool if s.shares_type_with(original)])

    def similar_bst(self, target_bst: int, variance: int) -> Optional[SpeciesRecord]:
        return self.choose([s for s in self.pool if abs(s.bst - target_bst) <= variance])

    def select(self, original: SpeciesRecord) -> SpeciesRecord:
        replacement = None
        if self.options.same_type:
            replacement = self.same_type(original)
        if replacement is None and self.options.match_bst:
            replacement = self.similar_bst(original.bst, self.options.bst_variance)
        if replacement is None:
            replacement = self.choose(self.pool)
        return replacement


class WildEncounterRandomizer:
    """
    Randomizes the wild encounter tables of one ROM.

    The slot layout is delegated to an EncounterLocator: by default the
    fixed-area walk for GB/GBC and the shape scan for GBA (see
    ``RandomizerConfig.gba_strategy``).

    Usage:
        randomizer = WildEncounterRandomizer(species, options, seed=7)
        result = randomizer.randomize(rom, game_config)
        print(f"{result.total_changes} slots changed")
    """

    def __init__(
        self,
        species: Sequence[SpeciesRecord],
        options: RandomizationOptions,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        locator: Optional[EncounterLocator] = None,
        settings: Optional[RandomizerConfig] = None,
    ):
        self.species = list(species)
        self.options = options
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.locator = locator
        self.settings = settings or default_config.randomizer

    def plan(self, buffer, game_config: GameConfig) -> List[tuple]:
        """Computes every replacement without modifying the buffer.

        Returns:
            List[tuple]: (slot, encoded bytes, original, replacement) per change.

        Raises:
            EmptySpeciesPoolError: If the filtered pool is empty.
            MissingOffsetError: If the config lacks the table offset.
            EncounterTableNotFoundError: If a GBA table walk finds no table.
        """
        pool = build_pool(self.species, game_config.generation, self.options.include_legendaries)
        by_id: Dict[int, SpeciesRecord] = {s.national_id: s for s in pool}
        selector = SpeciesSelector(pool, self.options, rng=self.rng)
        locator = self.locator or default_locator(game_config, self.settings)

        planned = []
        for slot in locator.find_slots(buffer, game_config):
            original = by_id.get(slot.species_id)
            if original is None:
                continue
            replacement = selector.select(original)
            encoded = locator.encode_species(slot, replacement.national_id, game_config.generation)
            if encoded is None:
                logger.debug(f"Cannot store #{replacement.national_id} at 0x{slot.address:X}, slot skipped")
                continue
            planned.append((slot, encoded, original, replacement))
        return planned

    def randomize(self, buffer: bytearray, game_config: GameConfig) -> RandomizationResult:
        """Rewrites the buffer's encounter slots in place.

        Args:
            buffer (bytearray): ROM image to mutate.
            game_config (GameConfig): Matched configuration for the image.

        Returns:
            RandomizationResult: Number of changed slots and the change log.
        """
        planned = self.plan(buffer, game_config)

        result = RandomizationResult()
        for slot, encoded, original, replacement in planned:
            buffer[slot.address:slot.address + len(encoded)] = encoded
            result.changes.append(SpeciesChange(original.name, replacement.name, slot.address))
        result.total_changes = len(result.changes)

        logger.info(f"Randomized {result.total_changes} encounter slots in {game_config.game_name}")
        return result


def randomize_wild_encounters(
    buffer: bytearray,
    game_config: GameConfig,
    species: Sequence[SpeciesRecord],
    options: RandomizationOptions,
    seed: Optional[int] = None,
    locator: Optional[EncounterLocator] = None,
    rng: Optional[np.random.Generator] = None,
) -> RandomizationResult:
    """Convenience wrapper around WildEncounterRandomizer.

    Pass ``rng`` to draw from a caller-owned Generator (e.g. one shared with
    starter selection); otherwise a Generator is seeded from ``seed``.
    """
    randomizer = WildEncounterRandomizer(species, options, seed=seed, rng=rng, locator=locator)
    return randomizer.randomize(buffer, game_config)


def set_starters(buffer: bytearray, game_config: GameConfig, starter_ids: Sequence[int]) -> int:
    """Writes starter species into the configured starter slots.

    GBA slots take a 16-bit National id; GB/GBC slots take one byte,
    translated to the internal index for Gen 1.

    Args:
        buffer (bytearray): ROM image to mutate.
        game_config (GameConfig): Matched configuration.
        starter_ids (Sequence[int]): National ids, one per slot.

    Returns:
        int: Number of slots written.

    Raises:
        MissingOffsetError: If the config has no starter offsets.
    """
    offsets = game_config.get_offset(OFFSET_STARTERS)
    if not offsets:
        raise MissingOffsetError(OFFSET_STARTERS, game_config.game_code)
    if isinstance(offsets, int):
        offsets = (offsets,)

    writes = []
    for offset, national_id in zip(offsets, starter_ids):
        if game_config.platform is Platform.GBA:
            writes.append((offset, struct.pack('<H', national_id)))
            continue
        stored = to_storage_id(national_id, game_config.generation)
        if stored is None:
            logger.warning(f"Starter #{national_id} cannot be stored in Gen {game_config.generation}, skipped")
            continue
        writes.append((offset, bytes([stored])))

    for offset, encoded in writes:
        buffer[offset:offset + len(encoded)] = encoded
    return len(writes)


def get_random_starters(
    species: Sequence[SpeciesRecord],
    exclude_legendaries: bool = True,
    balanced_bst: bool = True,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    settings: Optional[RandomizerConfig] = None,
) -> List[int]:
    """Picks distinct starter species.

    With ``balanced_bst`` each pick prefers species within
    ``starter_bst_variance`` of ``starter_target_bst``.

    Returns:
        List[int]: National ids, at most ``starter_count`` of them.
    """
    settings = settings or default_config.randomizer
    rng = rng if rng is not None else np.random.default_rng(seed)

    pool = [s for s in species if not (exclude_legendaries and s.is_legendary)]
    selector = SpeciesSelector(pool, RandomizationOptions(), rng=rng)

    starters = []
    for _ in range(settings.starter_count):
        if not selector.pool:
            break
        pick = None
        if balanced_bst:
            pick = selector.similar_bst(settings.starter_target_bst, settings.starter_bst_variance)
        if pick is None:
            pick = selector.choose(selector.pool)
        starters.append(pick.national_id)
        selector.pool = [s for s in selector.pool if s.national_id != pick.national_id]
    return starters
