import sys
import os
import struct

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cartridge_engine.checksums import (
    gen1_checksum, update_gen1_checksum, verify_gen1_checksum,
    gen2_main_checksum, gen2_box_checksum, update_gen2_checksums, verify_gen2_checksums,
    gen3_section_checksum, update_gen3_section_checksum, verify_gen3_section_checksum,
)
from cartridge_engine.constants import GEN1_CHECKSUM, GEN2_MAIN_CHECKSUM, GEN2_BOX_CHECKSUM, GEN3_SECTION_CHECKSUM


def test_gen1_checksum():
    data = bytearray(0x8000)
    assert gen1_checksum(data) == 0xFF

    data[0x2598] = 0x80
    data[0x3522] = 0x01
    data[0x3523] = 0x77    # checksum byte itself is excluded
    assert gen1_checksum(data) == (~0x81) & 0xFF

    update_gen1_checksum(data)
    assert data[GEN1_CHECKSUM] == 0x7E
    assert verify_gen1_checksum(data)

    data[0x2600] ^= 0xFF
    assert not verify_gen1_checksum(data)


def test_gen2_checksums():
    data = bytearray(0x8000)
    data[0x2009] = 0xFF
    data[0x2D68] = 0x02
    data[0x2D6B] = 0x10
    data[0x2F2C] = 0x20
    data[0x2F2D] = 0x99    # outside the box region

    assert gen2_main_checksum(data) == 0x101
    assert gen2_box_checksum(data) == 0x30

    update_gen2_checksums(data)
    assert struct.unpack_from('<H', data, GEN2_MAIN_CHECKSUM)[0] == 0x101
    assert struct.unpack_from('<H', data, GEN2_BOX_CHECKSUM)[0] == 0x30
    assert verify_gen2_checksums(data)

    data[0x2100] = 1
    assert not verify_gen2_checksums(data)


def test_gen2_checksum_wraps_to_16_bits():
    data = bytearray(0x8000)
    data[0x2009:0x2009 + 300] = b'\xFF' * 300
    assert gen2_main_checksum(data) == (300 * 0xFF) & 0xFFFF


def test_gen3_section_checksum_folds_halves():
    data = bytearray(0x1000)
    struct.pack_into('<I', data, 0, 0x00010002)
    assert gen3_section_checksum(data, 0, 1) == 3

    struct.pack_into('<I', data, 4, 0xFFFF0000)
    # 0x00010002 + 0xFFFF0000 = 0x1_0000_0002 -> truncated to 0x00000002
    assert gen3_section_checksum(data, 0, 1) == 2


def test_gen3_section_data_size_depends_on_id():
    data = bytearray(0x1000)
    struct.pack_into('<I', data, 0xF2C, 5)    # past section 0's data, inside section 1's
    assert gen3_section_checksum(data, 0, 0) == 0
    assert gen3_section_checksum(data, 0, 1) == 5


def test_gen3_update_and_verify():
    data = bytearray(0x3000)
    offset = 0x1000
    struct.pack_into('<I', data, offset + 0x10, 0x12345678)
    checksum = update_gen3_section_checksum(data, offset, 2)
    assert struct.unpack_from('<H', data, offset + GEN3_SECTION_CHECKSUM)[0] == checksum
    assert checksum == (0x1234 + 0x5678) & 0xFFFF
    assert verify_gen3_section_checksum(data, offset, 2)

    data[offset + 0x20] = 1
    assert not verify_gen3_section_checksum(data, offset, 2)
