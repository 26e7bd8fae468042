"""
Stable 64-bit hashing shared by shard routing, fingerprinting and page storage.
"""

FNV64_OFFSET_BASIS = 0xcbf29ce484222325
FNV64_PRIME = 0x100000001b3
_MASK64 = 0xFFFFFFFFFFFFFFFF


def fnv1a_64(value: str) -> int:
    """Return the unsigned 64-bit FNV-1a hash of the UTF-8 bytes of value."""
    h = FNV64_OFFSET_BASIS
    for byte in value.encode('utf-8'):
        h ^= byte
        h = (h * FNV64_PRIME) & _MASK64
    return h


def to_signed64(value: int) -> int:
    """Reinterpret an unsigned 64-bit integer as two's complement signed."""
    if value >= 1 << 63:
        return value - (1 << 64)
    return value
