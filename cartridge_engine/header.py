"""
Cartridge Header Parsing.

Recognizes which binary family (GB, GBC, GBA) a ROM image belongs to and
extracts the declared title / game code. Malformed or foreign input is
reported as None so callers can say "not a supported cartridge" without
handling exceptions.

Ref: https://gbdev.io/pandocs/The_Cartridge_Header.html
     https://problemkaputt.de/gbatek.htm#gbacartridgeheader
"""

from __future__ import annotations

import logging
import re
import struct
from typing import Optional, Union

from .constants import (
    GB_LOGO_OFFSET, GB_LOGO_PREFIX, GB_TITLE_OFFSET, GB_TITLE_LENGTH,
    GB_CGB_FLAG_OFFSET, GB_CGB_FLAGS, GB_HEADER_END,
    GBA_MIN_SIZE, GBA_ENTRY_BRANCH_MASK, GBA_ENTRY_BRANCH_OPCODE,
    GBA_FIXED_VALUE_OFFSET, GBA_FIXED_VALUE,
    GBA_TITLE_OFFSET, GBA_TITLE_LENGTH, GBA_GAME_CODE_OFFSET, GBA_GAME_CODE_LENGTH,
)
from .core.dataclasses import GbHeader, GbaHeader

logger = logging.getLogger(__name__)

ParsedHeader = Union[GbHeader, GbaHeader]

GAME_CODE_PATTERN = re.compile(r"^[A-Z0-9]{4}$")


def _read_ascii(data: bytes, offset: int, length: int) -> str:
    """Reads a NUL-terminated ASCII field, trimming trailing padding."""
    raw = bytes(data[offset:offset + length])
    raw = raw.split(b"\x00", 1)[0]
    return raw.decode("ascii", errors="replace").rstrip()


def parse_gb_header(data: bytes) -> Optional[GbHeader]:
    """Parses a GB/GBC cartridge header.

    Args:
        data (bytes): ROM image.

    Returns:
        Optional[GbHeader]: Title and color flag, or None if the Nintendo
                            logo prefix at 0x104 is missing or the image is too short.
    """
    if len(data) < GB_HEADER_END:
        return None
    if bytes(data[GB_LOGO_OFFSET:GB_LOGO_OFFSET + len(GB_LOGO_PREFIX)]) != GB_LOGO_PREFIX:
        return None

    is_color = data[GB_CGB_FLAG_OFFSET] in GB_CGB_FLAGS
    # On color carts the last title byte is the CGB flag
    title_length = GB_TITLE_LENGTH - 1 if is_color else GB_TITLE_LENGTH
    title = _read_ascii(data, GB_TITLE_OFFSET, title_length)
    return GbHeader(title=title, is_color=is_color)


def parse_gba_header(data: bytes) -> Optional[GbaHeader]:
    """Parses a GBA cartridge header.

    The entry point at 0x00 is normally an ARM branch (0xEA......) and byte
    0xB2 is the fixed value 0x96. Either is accepted; failing both, a
    well-formed 4-character game code is taken as a last resort.

    Args:
        data (bytes): ROM image (at least 256 KB).

    Returns:
        Optional[GbaHeader]: Title and game code, or None if unrecognized.
    """
    if len(data) < GBA_MIN_SIZE:
        return None

    entry_point = struct.unpack_from('<I', data, 0)[0]
    game_code = _read_ascii(data, GBA_GAME_CODE_OFFSET, GBA_GAME_CODE_LENGTH)

    if (entry_point & GBA_ENTRY_BRANCH_MASK) != GBA_ENTRY_BRANCH_OPCODE \
            and data[GBA_FIXED_VALUE_OFFSET] != GBA_FIXED_VALUE \
            and not GAME_CODE_PATTERN.match(game_code):
        return None

    title = _read_ascii(data, GBA_TITLE_OFFSET, GBA_TITLE_LENGTH)
    return GbaHeader(title=title, game_code=game_code)


def parse_header(data: bytes) -> Optional[ParsedHeader]:
    """Detects the cartridge family and parses its header.

    The strict GB logo check runs first; a GBA image never carries the GB
    logo at 0x104, while a large GB image could pass the GBA fallbacks.

    Args:
        data (bytes): ROM image.

    Returns:
        Optional[ParsedHeader]: GbHeader, GbaHeader, or None if unrecognized.
    """
    header = parse_gb_header(data)
    if header is None:
        header = parse_gba_header(data)
    if header is None:
        logger.debug(f"Unrecognized cartridge header ({len(data)} bytes)")
    return header
