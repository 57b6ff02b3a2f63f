"""
Save file checksums for Generations 1-3.

A save whose checksum is stale is treated as corrupt by the game (and by
most emulators), so every writer in savegen.py finishes by calling the
matching ``update_*`` function here.
"""

from __future__ import annotations

import struct

import numpy as np

from .constants import (
    GEN1_CHECKSUM_START, GEN1_CHECKSUM_END, GEN1_CHECKSUM,
    GEN2_MAIN_CHECKSUM_START, GEN2_MAIN_CHECKSUM_END, GEN2_MAIN_CHECKSUM,
    GEN2_BOX_CHECKSUM_START, GEN2_BOX_CHECKSUM_END, GEN2_BOX_CHECKSUM,
    GEN3_SECTION_DATA_SIZES, GEN3_SECTION_CHECKSUM,
)


def _byte_sum(data, start: int, end: int) -> int:
    return int(np.frombuffer(bytes(data[start:end]), dtype=np.uint8).sum(dtype=np.uint64))


# =============================================================================
# Generation 1
# =============================================================================

def gen1_checksum(data) -> int:
    """8-bit complement of the byte sum over the main save block (0x2598-0x3522)."""
    return ~_byte_sum(data, GEN1_CHECKSUM_START, GEN1_CHECKSUM_END) & 0xFF


def update_gen1_checksum(data: bytearray) -> int:
    checksum = gen1_checksum(data)
    data[GEN1_CHECKSUM] = checksum
    return checksum


def verify_gen1_checksum(data) -> bool:
    return data[GEN1_CHECKSUM] == gen1_checksum(data)


# =============================================================================
# Generation 2
# =============================================================================

def gen2_main_checksum(data) -> int:
    """16-bit byte sum over the main data region (0x2009-0x2D68)."""
    return _byte_sum(data, GEN2_MAIN_CHECKSUM_START, GEN2_MAIN_CHECKSUM_END) & 0xFFFF


def gen2_box_checksum(data) -> int:
    """16-bit byte sum over the box storage region (0x2D6B-0x2F2C)."""
    return _byte_sum(data, GEN2_BOX_CHECKSUM_START, GEN2_BOX_CHECKSUM_END) & 0xFFFF


def update_gen2_checksums(data: bytearray) -> tuple:
    main = gen2_main_checksum(data)
    box = gen2_box_checksum(data)
    struct.pack_into('<H', data, GEN2_MAIN_CHECKSUM, main)
    struct.pack_into('<H', data, GEN2_BOX_CHECKSUM, box)
    return main, box


def verify_gen2_checksums(data) -> bool:
    main = struct.unpack_from('<H', data, GEN2_MAIN_CHECKSUM)[0]
    box = struct.unpack_from('<H', data, GEN2_BOX_CHECKSUM)[0]
    return main == gen2_main_checksum(data) and box == gen2_box_checksum(data)


# =============================================================================
# Generation 3
# =============================================================================

def gen3_section_checksum(data, section_offset: int, section_id: int) -> int:
    """Folded 16-bit checksum of one 4 KB save section.

    The section's data region is summed as little-endian u32 words, then
    the upper and lower halves of the 32-bit total are added together.

    Args:
        data: Save image.
        section_offset (int): Start of the section in the image.
        section_id (int): Section id (0-13), which selects the data size.

    Returns:
        int: 16-bit checksum.
    """
    size = GEN3_SECTION_DATA_SIZES[section_id]
    words = np.frombuffer(bytes(data[section_offset:section_offset + size]), dtype='<u4')
    total = int(words.sum(dtype=np.uint64)) & 0xFFFFFFFF
    return ((total >> 16) + (total & 0xFFFF)) & 0xFFFF


def update_gen3_section_checksum(data: bytearray, section_offset: int, section_id: int) -> int:
    checksum = gen3_section_checksum(data, section_offset, section_id)
    struct.pack_into('<H', data, section_offset + GEN3_SECTION_CHECKSUM, checksum)
    return checksum


def verify_gen3_section_checksum(data, section_offset: int, section_id: int) -> bool:
    stored = struct.unpack_from('<H', data, section_offset + GEN3_SECTION_CHECKSUM)[0]
    return stored == gen3_section_checksum(data, section_offset, section_id)
