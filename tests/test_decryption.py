import sys
import os
import struct
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cartridge_engine.decryption import (
    PERMUTATIONS, decrypt_data, encrypt_data, encryption_key, get_substructure_order,
    shuffle_substructures, unshuffle_substructures, calculate_checksum, verify_checksum,
    encode_substructures, decode_substructures,
)
from cartridge_engine.core.exceptions import DecryptionError


def create_mock_substructures():
    """
    Creates a plain 48-byte GAEM block.
    Target: Bulbasaur (Species 1), 1000 XP, Move 1 = Pound
    """
    # Growth (Species 1, Item 0, XP 1000, Pad)
    growth = struct.pack('<HHII', 1, 0, 1000, 0)

    # Attacks: 4 Moves (8 bytes), 4 PP (4 bytes)
    attacks = struct.pack('<4H4B', 1, 0, 0, 0, 35, 0, 0, 0)
    assert len(attacks) == 12

    # EVs / Misc
    evs = b'\x00' * 12
    misc = struct.pack('<BBHII', 0, 0, 0x2205, 0x3FFFFFFF, 0)

    return growth + attacks + evs + misc


def test_permutation_table():
    assert len(PERMUTATIONS) == 24
    assert len(set(PERMUTATIONS)) == 24
    for order in PERMUTATIONS:
        assert sorted(order) == [0, 1, 2, 3]
    # PID 0x12345678 % 24 == 0 -> GAEM
    assert get_substructure_order(0x12345678) == (0, 1, 2, 3)
    assert get_substructure_order(24 + 6) == (1, 0, 2, 3)


def test_xor_is_symmetric():
    data = bytes(range(48))
    key = encryption_key(0x12345678, 0x87654321)
    assert key == 0x12345678 ^ 0x87654321
    assert decrypt_data(encrypt_data(data, key), key) == data
    assert encrypt_data(b'\x00\x00\x00\x00', 0xDEADBEEF) == struct.pack('<I', 0xDEADBEEF)


def test_shuffle_places_blocks_by_order():
    plain = create_mock_substructures()
    growth, attacks, evs, misc = (plain[i:i + 12] for i in range(0, 48, 12))

    # PID % 24 == 1 -> G A M E
    assert shuffle_substructures(plain, 1) == growth + attacks + misc + evs
    # PID % 24 == 23 -> M E A G
    assert shuffle_substructures(plain, 23) == misc + evs + attacks + growth

    for pid in range(24):
        assert unshuffle_substructures(shuffle_substructures(plain, pid), pid) == plain


def test_wrong_length_raises():
    with pytest.raises(DecryptionError):
        unshuffle_substructures(b'\x00' * 47, 0)
    with pytest.raises(DecryptionError):
        shuffle_substructures(b'\x00' * 52, 0)


def test_checksum():
    plain = create_mock_substructures()
    words = struct.unpack('<24H', plain)
    assert calculate_checksum(plain) == sum(words) & 0xFFFF
    assert verify_checksum(plain, sum(words) & 0xFFFF)
    assert not verify_checksum(plain, (sum(words) + 1) & 0xFFFF)


def test_encode_decode_record():
    pid = 0x0000ABCD  # % 24 == 13 -> E G M A
    otid = 0x87654321
    plain = create_mock_substructures()
    checksum = calculate_checksum(plain)

    stored = encode_substructures(plain, pid, otid)
    assert stored != plain
    assert decode_substructures(stored, pid, otid, checksum) == plain

    # Species is the first u16 of the Growth block
    assert struct.unpack_from('<H', decode_substructures(stored, pid, otid), 0)[0] == 1


def test_decode_with_wrong_key_fails_checksum():
    pid, otid = 0x12345678, 0x87654321
    plain = create_mock_substructures()
    stored = encode_substructures(plain, pid, otid)
    with pytest.raises(DecryptionError) as exc:
        decode_substructures(stored, pid, otid ^ 1, calculate_checksum(plain))
    assert exc.value.personality == pid
