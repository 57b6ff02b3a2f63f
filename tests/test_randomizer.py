import sys
import os
import struct
import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cartridge_engine.config import RandomizerConfig
from cartridge_engine.encounters import ShapeScanLocator
from cartridge_engine.randomizer import (
    build_pool, SpeciesSelector, WildEncounterRandomizer,
    randomize_wild_encounters, set_starters, get_random_starters,
)
from cartridge_engine.species import INTERNAL_TO_NATIONAL, national_to_internal
from cartridge_engine.core.dataclasses import GameConfig, RandomizationOptions
from cartridge_engine.core.exceptions import EmptySpeciesPoolError, MissingOffsetError

GRASS = 0x1000
SEEDS = range(200)
SCAN = ShapeScanLocator(RandomizerConfig(gba_scan_start=0x100, gba_scan_end=0x200))


def make_gen1_rom():
    """Two grass areas of Pidgey/Rattata plus a Mewtwo slot."""
    rom = bytearray(0x4000)
    pidgey, rattata, mewtwo = national_to_internal(16), national_to_internal(19), national_to_internal(150)
    for area in range(2):
        base = GRASS + area * 20
        for slot in range(10):
            rom[base + slot * 2] = 2 + slot
            rom[base + slot * 2 + 1] = pidgey if slot % 2 else rattata
    rom[GRASS + 40:GRASS + 42] = bytes([70, mewtwo])
    return rom


def species_bytes(rom, count=20):
    return [rom[GRASS + i * 2 + 1] for i in range(count)]


def level_bytes(rom, count=21):
    return [rom[GRASS + i * 2] for i in range(count)]


def make_gba_slots(species_id=258, count=4):
    """A GBA buffer with ``count`` (5, 7, species) encounter slots at 0x100."""
    rom = bytearray(0x400)
    for i in range(count):
        struct.pack_into('<BBH', rom, 0x100 + i * 4, 5, 7, species_id)
    return rom


def gba_species(rom, count=4):
    return [struct.unpack_from('<H', rom, 0x100 + i * 4 + 2)[0] for i in range(count)]


def test_build_pool_filters(species):
    pool = build_pool(species, 1, include_legendaries=False)
    assert {s.national_id for s in pool} == {1, 4, 7, 16, 19, 25}
    pool = build_pool(species, 3, include_legendaries=True)
    assert len(pool) == len(species)


def test_build_pool_empty(species):
    legendaries = [s for s in species if s.is_legendary]
    with pytest.raises(EmptySpeciesPoolError):
        build_pool(legendaries, 3, include_legendaries=False)


def test_randomize_gen1_keeps_levels_and_translates(species, red_config):
    rom = make_gen1_rom()
    original = bytes(rom)
    result = randomize_wild_encounters(rom, red_config, species, RandomizationOptions(), seed=1)

    assert level_bytes(rom) == level_bytes(original)
    allowed = {national_to_internal(n) for n in (1, 4, 7, 16, 19, 25)}
    assert set(species_bytes(rom)) <= allowed
    assert result.total_changes == 20
    assert len(result.changes) == 20
    # Everything outside the species bytes is untouched
    touched = {change.address for change in result.changes}
    assert all(rom[i] == original[i] for i in range(len(rom)) if i not in touched)


def test_slots_outside_pool_are_skipped(species, red_config):
    rom = make_gen1_rom()
    randomize_wild_encounters(rom, red_config, species, RandomizationOptions(), seed=3)
    # Mewtwo is legendary and not in the pool, so its slot is left alone
    assert rom[GRASS + 41] == national_to_internal(150)


def test_same_type_across_seeds(species, red_config):
    normal_types = {national_to_internal(16), national_to_internal(19)}
    levels = level_bytes(make_gen1_rom())
    for seed in SEEDS:
        rom = make_gen1_rom()
        randomize_wild_encounters(rom, red_config, species, RandomizationOptions(same_type=True), seed=seed)
        assert set(species_bytes(rom)) <= normal_types, f"seed {seed}"
        assert level_bytes(rom) == levels, f"seed {seed}"


def test_bst_window_across_seeds(species, red_config):
    options = RandomizationOptions(match_bst=True, bst_variance=10)
    for seed in SEEDS:
        rom = make_gen1_rom()
        randomize_wild_encounters(rom, red_config, species, options, seed=seed)
        # Only Pidgey (251) and Rattata (253) are within 10 of each other
        assert {INTERNAL_TO_NATIONAL[b] for b in species_bytes(rom)} <= {16, 19}, f"seed {seed}"


def test_gba_bst_window_across_seeds(species, emerald_config):
    by_id = {s.national_id: s for s in species}
    mudkip_bst = by_id[258].bst
    options = RandomizationOptions(match_bst=True, bst_variance=10)
    for seed in SEEDS:
        rom = make_gba_slots()
        randomize_wild_encounters(rom, emerald_config, species, options, seed=seed, locator=SCAN)
        for species_id in gba_species(rom):
            assert abs(by_id[species_id].bst - mudkip_bst) <= 10, f"seed {seed}"


def test_legendaries_excluded_across_seeds(species, red_config):
    mewtwo = national_to_internal(150)
    for seed in SEEDS:
        rom = make_gen1_rom()
        randomize_wild_encounters(rom, red_config, species, RandomizationOptions(), seed=seed)
        assert mewtwo not in species_bytes(rom), f"seed {seed}"


def test_gba_legendaries_excluded_across_seeds(species, emerald_config):
    legendary_ids = {s.national_id for s in species if s.is_legendary}
    assert legendary_ids == {150, 382}
    for seed in SEEDS:
        rom = make_gba_slots()
        result = randomize_wild_encounters(rom, emerald_config, species, RandomizationOptions(), seed=seed, locator=SCAN)
        assert result.total_changes == 4
        assert not set(gba_species(rom)) & legendary_ids, f"seed {seed}"


def test_rng_pass_through_matches_seed(species, red_config):
    seeded, shared = make_gen1_rom(), make_gen1_rom()
    randomize_wild_encounters(seeded, red_config, species, RandomizationOptions(), seed=5)
    randomize_wild_encounters(shared, red_config, species, RandomizationOptions(), rng=np.random.default_rng(5))
    assert seeded == shared


def test_rng_pass_through_advances_caller_generator(species, red_config):
    rng = np.random.default_rng(5)
    first, second = make_gen1_rom(), make_gen1_rom()
    randomize_wild_encounters(first, red_config, species, RandomizationOptions(), rng=rng)
    randomize_wild_encounters(second, red_config, species, RandomizationOptions(), rng=rng)
    # Both runs drew from one stream, so the second continues where the first stopped
    assert first != second


def test_include_legendaries(species, red_config):
    rom = make_gen1_rom()
    options = RandomizationOptions(include_legendaries=True)
    result = randomize_wild_encounters(rom, red_config, species, options, seed=11)
    assert result.total_changes == 21


def test_seed_is_reproducible(species, red_config):
    a, b = make_gen1_rom(), make_gen1_rom()
    randomize_wild_encounters(a, red_config, species, RandomizationOptions(), seed=42)
    randomize_wild_encounters(b, red_config, species, RandomizationOptions(), seed=42)
    assert a == b


def test_no_mutation_on_empty_pool(species, red_config):
    rom = make_gen1_rom()
    original = bytes(rom)
    legendaries = [s for s in species if s.is_legendary]
    with pytest.raises(EmptySpeciesPoolError):
        randomize_wild_encounters(rom, red_config, legendaries, RandomizationOptions(), seed=1)
    assert bytes(rom) == original


def test_no_mutation_on_missing_offset(species):
    config = GameConfig("POKEMON BLUE", "Pokemon Blue", 1, "GB")
    rom = make_gen1_rom()
    original = bytes(rom)
    with pytest.raises(MissingOffsetError):
        randomize_wild_encounters(rom, config, species, RandomizationOptions(), seed=1)
    assert bytes(rom) == original


def test_gba_shape_scan_randomize(species, emerald_config):
    settings = RandomizerConfig(gba_scan_start=0x100, gba_scan_end=0x200)
    rom = bytearray(0x400)
    for i in range(4):
        struct.pack_into('<BBH', rom, 0x100 + i * 4, 5, 7, 258)

    randomizer = WildEncounterRandomizer(species, RandomizationOptions(), seed=9, locator=ShapeScanLocator(settings))
    result = randomizer.randomize(rom, emerald_config)

    assert result.total_changes == 4
    pool_ids = {1, 4, 7, 16, 19, 25, 152, 252, 258}
    for i in range(4):
        min_level, max_level, species_id = struct.unpack_from('<BBH', rom, 0x100 + i * 4)
        assert (min_level, max_level) == (5, 7)
        assert species_id in pool_ids


def test_plan_does_not_write(species, red_config):
    rom = make_gen1_rom()
    original = bytes(rom)
    planned = WildEncounterRandomizer(species, RandomizationOptions(), seed=2).plan(rom, red_config)
    assert len(planned) == 20
    assert bytes(rom) == original


def test_selector_falls_back_to_any(species):
    pool = [s for s in species if s.national_id in (4, 7)]
    pikachu = next(s for s in species if s.national_id == 25)
    selector = SpeciesSelector(pool, RandomizationOptions(same_type=True, match_bst=True, bst_variance=0), seed=0)
    assert selector.select(pikachu) in pool


def test_set_starters_gen1(red_config):
    rom = bytearray(0x4000)
    assert set_starters(rom, red_config, [1, 4, 7]) == 3
    assert rom[0x3000:0x3003] == bytes([0x99, 0xB0, 0xB1])


def test_set_starters_skips_unstorable(red_config):
    rom = bytearray(0x4000)
    assert set_starters(rom, red_config, [1, 252, 7]) == 2
    assert rom[0x3001] == 0


def test_set_starters_gba(emerald_config):
    rom = bytearray(0x4000)
    assert set_starters(rom, emerald_config, [252, 255, 258]) == 3
    assert struct.unpack_from('<3H', rom, 0x2000) == (252, 255, 258)


def test_set_starters_requires_offsets(gold_config):
    with pytest.raises(MissingOffsetError):
        set_starters(bytearray(0x4000), gold_config, [152])


def test_random_starters(species):
    starters = get_random_starters(species, seed=4)
    assert len(starters) == 3
    assert len(set(starters)) == 3
    assert 150 not in starters and 382 not in starters
    assert starters == get_random_starters(species, seed=4)


def test_random_starters_small_pool(species):
    pool = [s for s in species if s.national_id in (16, 19)]
    assert sorted(get_random_starters(pool, seed=1)) == [16, 19]
