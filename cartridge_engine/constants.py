"""
Binary Layout Constants for GB/GBC/GBA Cartridges and Save Files.

This file contains the fixed offsets (header fields, save block fields)
and structure sizes that the engine reads and writes. Per-game offsets
that vary between releases (encounter tables, starter slots) are NOT
here: they live in the GameConfig table loaded at runtime.

Reference: https://gbdev.io/pandocs/The_Cartridge_Header.html
           https://bulbapedia.bulbagarden.net/wiki/Save_data_structure_(Generation_I)
           https://bulbapedia.bulbagarden.net/wiki/Save_data_structure_(Generation_III)
"""

# GB / GBC Cartridge Header
GB_LOGO_OFFSET = 0x104
GB_LOGO_PREFIX = bytes([0xCE, 0xED, 0x66, 0x66, 0xCC, 0x0D, 0x00, 0x0B])
GB_TITLE_OFFSET = 0x134
GB_TITLE_LENGTH = 16
GB_CGB_FLAG_OFFSET = 0x143
GB_CGB_FLAGS = (0x80, 0xC0)            # 0x80 = CGB-enhanced, 0xC0 = CGB-only
GB_HEADER_END = 0x150

# GBA Cartridge Header
GBA_MIN_SIZE = 0x40000                 # 256 KB
GBA_ENTRY_BRANCH_MASK = 0xFF000000
GBA_ENTRY_BRANCH_OPCODE = 0xEA000000   # ARM unconditional branch
GBA_FIXED_VALUE_OFFSET = 0xB2
GBA_FIXED_VALUE = 0x96
GBA_TITLE_OFFSET = 0xA0
GBA_TITLE_LENGTH = 12
GBA_GAME_CODE_OFFSET = 0xAC
GBA_GAME_CODE_LENGTH = 4
GBA_ROM_BASE = 0x08000000              # Cartridge ROM mapped address
GBA_POINTER_LIMIT = 0x0A000000
GBA_OFFSET_MASK = 0x01FFFFFF

# Named offsets looked up in GameConfig.offsets
OFFSET_WILD_GRASS = "wildGrassEncounters"
OFFSET_WILD_POINTER = "wildEncounterPointer"
OFFSET_STARTERS = "starterOffsets"

# Gen 3 map encounter header: bank, map, pad, then 4 encounter pointers
GBA_MAP_HEADER_SIZE = 20
GBA_ENCOUNTER_SLOT_SIZE = 4            # min level, max level, species u16
GBA_GRASS_SLOTS = 12
GBA_WATER_SLOTS = 5
GBA_ROCK_SMASH_SLOTS = 5
GBA_FISHING_SLOTS = 10

# Data Structure Sizes (Bytes)
GEN1_SAVE_SIZE = 0x8000                # 32 KB
GEN2_SAVE_SIZE = 0x8000                # 32 KB
GEN3_SAVE_SIZE = 0x20000               # 128 KB
GEN3_MIN_SAVE_SIZE = 0x10000
GEN3_MAX_SAVE_SIZE = 0x40000
POKEMON_SIZE_BYTES = 100               # Gen 3 party Pokemon
SUBSTRUCTURE_SIZE = 48
SUBSTRUCTURE_BLOCK_SIZE = 12

# Gen 1 Save Layout
GEN1_PLAYER_NAME = 0x2598
GEN1_NAME_LENGTH = 11
GEN1_MONEY = 0x25F3                    # 3 bytes, packed BCD
GEN1_OPTIONS = 0x2601
GEN1_BADGES = 0x2602
GEN1_TRAINER_ID = 0x2605               # u16 big-endian
GEN1_PLAY_TIME = 0x2CED                # hours, minutes, seconds
GEN1_PARTY_COUNT = 0x2F2C
GEN1_CHECKSUM_START = 0x2598
GEN1_CHECKSUM_END = 0x3523             # exclusive; checksum byte lives here
GEN1_CHECKSUM = 0x3523
GEN1_DEFAULT_OPTIONS = 0x40

# Gen 2 Save Layout
GEN2_TRAINER_ID = 0x2009               # u16 big-endian
GEN2_PLAYER_NAME = 0x200B
GEN2_NAME_LENGTH = 11
GEN2_PLAY_TIME = 0x2054
GEN2_MONEY = 0x23DB                    # 3 bytes big-endian
GEN2_BADGES = 0x23E5                   # Johto, Kanto
GEN2_PARTY_COUNT = 0x2865
GEN2_CRYSTAL_GENDER = 0x3E3D
GEN2_MAIN_CHECKSUM_START = 0x2009
GEN2_MAIN_CHECKSUM_END = 0x2D69
GEN2_MAIN_CHECKSUM = 0x2D69            # u16 little-endian
GEN2_BOX_CHECKSUM_START = 0x2D6B
GEN2_BOX_CHECKSUM_END = 0x2F2D
GEN2_BOX_CHECKSUM = 0x2F2D             # u16 little-endian

# Gen 3 Save Layout
GEN3_SECTION_SIZE = 0x1000
GEN3_SECTION_COUNT = 14
GEN3_SLOT_SIZE = GEN3_SECTION_SIZE * GEN3_SECTION_COUNT  # 0xE000
GEN3_SECTION_ID = 0xFF4                # u16
GEN3_SECTION_CHECKSUM = 0xFF6          # u16
GEN3_SECTION_SIGNATURE = 0xFF8         # u32
GEN3_SECTION_SAVE_INDEX = 0xFFC        # u32
GEN3_SIGNATURE = 0x08012025
GEN3_SECTION_DATA_SIZES = (
    0xF2C,                             # 0: trainer info
    0xF80,                             # 1: team / items
    0xF80,                             # 2: game state
    0xF80,                             # 3: misc data
    0xC40,                             # 4: rival info
    0xF80, 0xF80, 0xF80, 0xF80,        # 5-13: PC boxes
    0xF80, 0xF80, 0xF80, 0xF80,
    0x7D0,
)

GEN3_SAVEBLOCK1_CHUNK = 0xF80          # SaveBlock1 bytes per section, starting at section 1

# Section 0 (trainer info)
GEN3_PLAYER_NAME = 0x00
GEN3_NAME_LENGTH = 8                   # 7 characters + terminator
GEN3_PLAYER_GENDER = 0x08
GEN3_TRAINER_ID = 0x0A
GEN3_SECRET_ID = 0x0C
GEN3_PLAY_TIME_HOURS = 0x0E            # u16
GEN3_PLAY_TIME_MINUTES = 0x10
GEN3_PLAY_TIME_SECONDS = 0x11
GEN3_PLAY_TIME_FRAMES = 0x12

# Gen 3 Pokemon record
GEN3_NICKNAME_LENGTH = 10
GEN3_OT_NAME_LENGTH = 7
GEN3_LANGUAGE_ENGLISH = 0x0202
GEN3_POKE_BALL = 4

# Party records (count byte, 7-byte species list, then records, OT names, nicknames)
PARTY_MAX = 6
PARTY_NAME_LENGTH = 11
GEN1_PARTY_RECORD_SIZE = 44
GEN2_PARTY_RECORD_SIZE = 48

# Play time limits
GB_MAX_PLAY_HOURS = 255
GEN3_MAX_PLAY_HOURS = 999
