"""Typed, length-prefixed message buffer."""

from __future__ import annotations

import struct
from enum import IntEnum

from netchat.codec import compose_int32, decompose_int32

MAX_PACKET_SIZE = 8192

_TYPE = struct.Struct(">H")
_UINT32 = struct.Struct(">I")


class PacketType(IntEnum):
    """Kinds of packet exchanged between client and server."""

    INVALID = 0
    INTEGER_ARRAY = 1
    CHAT_MESSAGE = 2
    TEST = 3
    GREETINGS = 4


class PacketError(ValueError):
    """Raised when a packet would overflow or is read past its end."""


class Packet:
    """A buffer that starts with a two-byte packet type followed by written fields."""

    def __init__(self, packet_type: PacketType = PacketType.INVALID) -> None:
        self.buffer = bytearray(_TYPE.pack(int(packet_type)))
        self.extraction_offset = _TYPE.size

    @property
    def packet_type(self) -> PacketType | int:
        """The packet type, or the raw number when it is not a known type."""
        raw = _TYPE.unpack_from(self.buffer, 0)[0]
        try:
            return PacketType(raw)
        except ValueError:
            return raw

    def _append(self, data: bytes) -> None:
        if len(self.buffer) + len(data) > MAX_PACKET_SIZE:
            raise PacketError("packet size exceeds max buffer size")
        self.buffer += data

    def _take(self, size: int) -> bytes:
        end = self.extraction_offset + size
        if end > len(self.buffer):
            raise PacketError("extraction offset exceeds buffer size")
        data = bytes(self.buffer[self.extraction_offset:end])
        self.extraction_offset = end
        return data

    def write_uint32(self, value: int) -> Packet:
        """Append an unsigned 32-bit integer in network byte order."""
        if not 0 <= value <= 0xFFFFFFFF:
            raise PacketError(f"value does not fit in 32 bits: {value}")
        self._append(_UINT32.pack(value))
        return self

    def read_uint32(self) -> int:
        """Read an unsigned 32-bit integer in network byte order."""
        return _UINT32.unpack(self._take(_UINT32.size))[0]

    def write_bytes(self, data: bytes) -> Packet:
        """Append a length-prefixed run of bytes."""
        self.write_uint32(len(data))
        self._append(bytes(data))
        return self

    def read_bytes(self) -> bytes:
        """Read a length-prefixed run of bytes."""
        size = self.read_uint32()
        return self._take(size)

    def write_uint32_list(self, values) -> Packet:
        """Append a count followed by each value as four little-endian bytes."""
        values = list(values)
        self.write_uint32(len(values))
        self._append(b"".join(decompose_int32(value) for value in values))
        return self

    def read_uint32_list(self) -> list[int]:
        """Read a list written by write_uint32_list."""
        count = self.read_uint32()
        data = self._take(4 * count)
        return [
            compose_int32(data[start:start + 4]) & 0xFFFFFFFF
            for start in range(0, len(data), 4)
        ]

    def write_string(self, text: str) -> Packet:
        """Append a length-prefixed UTF-8 string."""
        return self.write_bytes(text.encode("utf-8"))

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        data = self.read_bytes()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PacketError("string is not valid UTF-8") from exc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Packet):
            return NotImplemented
        return self.buffer == other.buffer and self.extraction_offset == other.extraction_offset

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Packet(type={self.packet_type!r}, size={len(self.buffer)})"