"""
In-game character encodings.

Gen 1 and Gen 2 share one 8-bit table (terminator 0x50); Gen 3 uses its
own (terminator 0xFF). Characters with no mapping decode as "?" and
encode as a space; ``unsupported_characters`` reports them up front.
The PK and MN glyphs decode to two-letter strings and are read-only.
"""

from __future__ import annotations

from typing import Dict, List

GEN1_TERMINATOR = 0x50
GEN1_SPACE = 0x7F
GEN3_TERMINATOR = 0xFF
GEN3_SPACE = 0x00

GEN1_CHAR_MAP: Dict[int, str] = {
    0x7F: " ",
    0x9A: "(", 0x9B: ")", 0x9C: ":", 0x9D: ";", 0x9E: "[", 0x9F: "]",
    0xBA: "é",
    0xE0: "'", 0xE1: "PK", 0xE2: "MN", 0xE3: "-", 0xE6: "?", 0xE7: "!", 0xE8: ".",
    0xEF: "♂", 0xF1: "×", 0xF3: "/", 0xF4: ",", 0xF5: "♀",
}
GEN1_CHAR_MAP.update({0x80 + i: chr(ord("A") + i) for i in range(26)})
GEN1_CHAR_MAP.update({0xA0 + i: chr(ord("a") + i) for i in range(26)})
GEN1_CHAR_MAP.update({0xF6 + i: str(i) for i in range(10)})

GEN3_CHAR_MAP: Dict[int, str] = {
    0x00: " ",
    0x01: "À", 0x02: "Á", 0x03: "Â", 0x04: "Ç", 0x05: "È",
    0x06: "É", 0x07: "Ê", 0x08: "Ë", 0x09: "Ì", 0x1B: "é",
    0xAB: "!", 0xAC: "?", 0xAD: ".", 0xAE: "-",
    0xB1: "“", 0xB2: "”", 0xB3: "‘", 0xB4: "'",
    0xB5: "♂", 0xB6: "♀", 0xB8: ",", 0xBA: "/",
}
GEN3_CHAR_MAP.update({0xA1 + i: str(i) for i in range(10)})
GEN3_CHAR_MAP.update({0xBB + i: chr(ord("A") + i) for i in range(26)})
GEN3_CHAR_MAP.update({0xD5 + i: chr(ord("a") + i) for i in range(26)})

GEN1_ENCODE_MAP = {char: code for code, char in GEN1_CHAR_MAP.items()}
GEN3_ENCODE_MAP = {char: code for code, char in GEN3_CHAR_MAP.items()}


def _decode(data: bytes, char_map: Dict[int, str], terminator: int) -> str:
    chars = []
    for b in data:
        if b == terminator:
            break
        chars.append(char_map.get(b, "?"))
    return "".join(chars)


def _encode(text: str, length: int, encode_map: Dict[str, int], terminator: int, space: int) -> bytes:
    out = bytearray([terminator] * length)
    for i, char in enumerate(text[:length]):
        out[i] = encode_map.get(char, space)
    return bytes(out)


def decode_gen1_string(data: bytes) -> str:
    """Decodes a Gen 1/2 string up to its 0x50 terminator."""
    return _decode(data, GEN1_CHAR_MAP, GEN1_TERMINATOR)


def encode_gen1_string(text: str, length: int) -> bytes:
    """Encodes text into a fixed-width Gen 1/2 field padded with 0x50.

    Callers must leave room for the terminator when the field requires one.
    """
    return _encode(text, length, GEN1_ENCODE_MAP, GEN1_TERMINATOR, GEN1_SPACE)


def decode_gen3_string(data: bytes) -> str:
    """Decodes a Gen 3 string up to its 0xFF terminator."""
    return _decode(data, GEN3_CHAR_MAP, GEN3_TERMINATOR)


def encode_gen3_string(text: str, length: int) -> bytes:
    """Encodes text into a fixed-width Gen 3 field padded with 0xFF."""
    return _encode(text, length, GEN3_ENCODE_MAP, GEN3_TERMINATOR, GEN3_SPACE)


def unsupported_characters(text: str, generation: int) -> List[str]:
    """Characters of ``text`` the generation's charset cannot store, in order of appearance."""
    encode_map = GEN3_ENCODE_MAP if generation >= 3 else GEN1_ENCODE_MAP
    missing = []
    for char in text:
        if char not in encode_map and char not in missing:
            missing.append(char)
    return missing
