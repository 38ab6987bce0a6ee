"""
Key encodings: hex-prefix nibble paths for the trie and fixed-width
integers for state keys.
"""

UINT_KEY_WIDTH = 8


def bytes_to_nibbles(b: bytes) -> tuple[int, ...]:
    """Split each byte into its high and low nibble."""
    return tuple(n for byte in b for n in (byte >> 4, byte & 0x0F))


def nibbles_to_bytes(nibbles: tuple[int, ...]) -> bytes:
    if len(nibbles) % 2:
        raise ValueError("Nibbles must be of even length")
    return bytes((nibbles[i] << 4) | nibbles[i + 1] for i in range(0, len(nibbles), 2))


def hex_prefix_encode(nibbles: tuple[int, ...], is_leaf: bool) -> bytes:
    """
    Hex-prefix encode a nibble path.

    The first nibble is a flag: bit 1 marks a leaf, bit 0 marks odd length.
    Even-length paths get a zero padding nibble after the flag.
    """
    odd = len(nibbles) % 2
    flag = (2 if is_leaf else 0) + odd
    prefix = (flag,) if odd else (flag, 0)
    return nibbles_to_bytes(prefix + tuple(nibbles))


def hex_prefix_decode(encoded: bytes) -> tuple[tuple[int, ...], bool]:
    """Returns (nibbles, is_leaf)."""
    nibbles = bytes_to_nibbles(encoded)
    flag = nibbles[0]
    is_leaf = flag >= 2
    if flag % 2:
        return nibbles[1:], is_leaf
    return nibbles[2:], is_leaf


def encode_uint(value: int) -> bytes:
    """Big-endian fixed-width encoding so ids sort and never prefix each other."""
    return value.to_bytes(UINT_KEY_WIDTH, 'big')


def decode_uint(data: bytes) -> int:
    return int.from_bytes(data, 'big')
