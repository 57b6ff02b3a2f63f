import sys
import os
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cartridge_engine.species import (
    GEN1_INTERNAL_IDS, GEN1_SPECIES_COUNT, NATIONAL_TO_INTERNAL, INTERNAL_TO_NATIONAL,
    internal_to_national, national_to_internal, require_national, require_internal,
    from_storage_id, to_storage_id,
)
from cartridge_engine.core.exceptions import UnsupportedSpeciesError


def test_table_is_a_bijection():
    assert GEN1_SPECIES_COUNT == 151
    assert len(set(GEN1_INTERNAL_IDS)) == 151
    assert len(INTERNAL_TO_NATIONAL) == 151
    for national_id in range(1, 152):
        assert internal_to_national(national_to_internal(national_id)) == national_id
    for internal_id, national_id in INTERNAL_TO_NATIONAL.items():
        assert NATIONAL_TO_INTERNAL[national_id] == internal_id


@pytest.mark.parametrize("national_id, internal_id", [
    (1, 0x99),    # Bulbasaur
    (25, 0x54),   # Pikachu
    (112, 0x01),  # Rhydon
    (150, 0x83),  # Mewtwo
    (151, 0x15),  # Mew
])
def test_known_indices(national_id, internal_id):
    assert national_to_internal(national_id) == internal_id
    assert internal_to_national(internal_id) == national_id


def test_out_of_domain_values():
    assert internal_to_national(0x00) is None
    assert internal_to_national(0x1F) is None  # MissingNo.
    assert national_to_internal(0) is None
    assert national_to_internal(152) is None

    with pytest.raises(UnsupportedSpeciesError):
        require_national(0x1F)
    with pytest.raises(UnsupportedSpeciesError) as exc:
        require_internal(252)
    assert exc.value.value == 252


def test_storage_ids_by_generation():
    assert from_storage_id(0x99, 1) == 1
    assert from_storage_id(25, 2) == 25
    assert from_storage_id(0, 3) is None
    assert to_storage_id(1, 1) == 0x99
    assert to_storage_id(252, 1) is None
    assert to_storage_id(252, 3) == 252
