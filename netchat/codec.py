"""Conversion of 32-bit integers to and from little-endian bytes."""

from __future__ import annotations

import struct

_INT32 = struct.Struct("<i")


def decompose_int32(value: int) -> bytes:
    """Return the four little-endian bytes of a signed or unsigned 32-bit value."""
    if not -(1 << 31) <= value < (1 << 32):
        raise ValueError(f"value does not fit in 32 bits: {value}")
    return (value & 0xFFFFFFFF).to_bytes(4, "little")


def compose_int32(data: bytes) -> int:
    """Return the signed 32-bit integer held in four little-endian bytes."""
    if len(data) != 4:
        raise ValueError(f"expected 4 bytes, got {len(data)}")
    return _INT32.unpack(bytes(data))[0]