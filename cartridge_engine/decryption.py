import struct

from .core.exceptions import DecryptionError
from .constants import SUBSTRUCTURE_SIZE, SUBSTRUCTURE_BLOCK_SIZE

"""
Gen 3 Pokémon Encryption Logic.

Ref: https://bulbapedia.bulbagarden.net/wiki/Pok%C3%A9mon_data_structure_(Generation_III)

Key components:
1. Data shuffling based on Personality Value (PID).
2. XOR Encryption with a 32-bit key (PID ^ full OT ID).
3. Checksum over the unencrypted substructures.
"""

# order[i] is the block type stored at position i (0=Growth, 1=Attacks, 2=EVs, 3=Misc)
PERMUTATIONS = (
    (0, 1, 2, 3), (0, 1, 3, 2), (0, 2, 1, 3), (0, 2, 3, 1), (0, 3, 1, 2), (0, 3, 2, 1),
    (1, 0, 2, 3), (1, 0, 3, 2), (1, 2, 0, 3), (1, 2, 3, 0), (1, 3, 0, 2), (1, 3, 2, 0),
    (2, 0, 1, 3), (2, 0, 3, 1), (2, 1, 0, 3), (2, 1, 3, 0), (2, 3, 0, 1), (2, 3, 1, 0),
    (3, 0, 1, 2), (3, 0, 2, 1), (3, 1, 0, 2), (3, 1, 2, 0), (3, 2, 0, 1), (3, 2, 1, 0),
)


def encryption_key(pid: int, ot_id: int) -> int:
    """Returns the 32-bit XOR key for a Pokémon record."""
    return (pid ^ ot_id) & 0xFFFFFFFF


def decrypt_data(data: bytes, key: int) -> bytes:
    """Decrypts a block of Pokémon data using a 32-bit XOR key.

    Args:
        data (bytes): The encrypted byte buffer (length must be multiple of 4).
        key (int): The 32-bit decryption key.

    Returns:
        bytes: The decrypted data.
    """
    words = struct.unpack(f'<{len(data) // 4}I', data)
    return struct.pack(f'<{len(words)}I', *(word ^ key for word in words))


# XOR is symmetric
encrypt_data = decrypt_data


def get_substructure_order(pid: int) -> tuple:
    """Determines the permutation order of substructures.

    The 48-byte data block is divided into 4 substructures (G, A, E, M) of 12 bytes.
    The order depends on PID % 24.

    Args:
        pid (int): Personality Value.

    Returns:
        tuple: 4 integers, the block type at each position (0=Growth, 1=Attacks, 2=EVs, 3=Misc).
    """
    return PERMUTATIONS[pid % 24]


def _split_blocks(data: bytes) -> list:
    if len(data) != SUBSTRUCTURE_SIZE:
        raise DecryptionError(f"Substructure data must be {SUBSTRUCTURE_SIZE} bytes, got {len(data)}")
    return [data[i:i + SUBSTRUCTURE_BLOCK_SIZE] for i in range(0, SUBSTRUCTURE_SIZE, SUBSTRUCTURE_BLOCK_SIZE)]


def unshuffle_substructures(data: bytes, pid: int) -> bytes:
    """Reorders the shuffled substructures into the standard 'GAEM' order.

    Args:
        data (bytes): The 48-byte decrypted data block.
        pid (int): Personality Value used to determine shuffle order.

    Returns:
        bytes: The 48-byte data block in standard order.

    Raises:
        DecryptionError: If data length is not 48 bytes.
    """
    blocks = _split_blocks(data)
    ordered_blocks = [b''] * 4
    for position, block_type in enumerate(get_substructure_order(pid)):
        ordered_blocks[block_type] = blocks[position]
    return b''.join(ordered_blocks)


def shuffle_substructures(data: bytes, pid: int) -> bytes:
    """Inverse of unshuffle_substructures: lays GAEM blocks out in PID order.

    Args:
        data (bytes): The 48-byte data block in standard order.
        pid (int): Personality Value.

    Returns:
        bytes: The 48-byte data block in stored order.
    """
    blocks = _split_blocks(data)
    return b''.join(blocks[block_type] for block_type in get_substructure_order(pid))


def calculate_checksum(substructures: bytes) -> int:
    """Sum of all 16-bit words in the unencrypted substructures, truncated to 16 bits."""
    words = struct.unpack(f'<{len(substructures) // 2}H', substructures)
    return sum(words) & 0xFFFF


def verify_checksum(substructures: bytes, original_checksum: int) -> bool:
    """Verifies that the decrypted data matches its checksum.

    Args:
        substructures (bytes): The 48-byte decrypted substructure data.
        original_checksum (int): The 16-bit checksum read from the Pokémon struct.

    Returns:
        bool: True if checksum calculates correctly.
    """
    return calculate_checksum(substructures) == original_checksum


def encode_substructures(plain: bytes, pid: int, ot_id: int) -> bytes:
    """Shuffles and encrypts a GAEM-ordered 48-byte block for storage."""
    return encrypt_data(shuffle_substructures(plain, pid), encryption_key(pid, ot_id))


def decode_substructures(stored: bytes, pid: int, ot_id: int, checksum: int = None) -> bytes:
    """Decrypts and unshuffles a stored 48-byte block into GAEM order.

    Args:
        stored (bytes): The 48 bytes at record offset 32.
        pid (int): Personality Value.
        ot_id (int): Full 32-bit original trainer id.
        checksum (int): Stored checksum to verify against, if given.

    Returns:
        bytes: The plain substructures in standard order.

    Raises:
        DecryptionError: If the checksum is given and does not match.
    """
    decrypted = decrypt_data(stored, encryption_key(pid, ot_id))
    if checksum is not None and not verify_checksum(decrypted, checksum):
        raise DecryptionError(
            personality=pid,
            expected_checksum=checksum,
            actual_checksum=calculate_checksum(decrypted),
        )
    return unshuffle_substructures(decrypted, pid)
