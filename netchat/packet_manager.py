"""Queue of packets plus the state of the packet being sent or received."""

from __future__ import annotations

from collections import deque
from enum import Enum

from netchat.packet import Packet


class PacketTask(Enum):
    """Which part of a packet is being transferred."""

    PROCESS_PACKET_SIZE = 0
    PROCESS_PACKET_CONTENTS = 1


class PacketManager:
    """FIFO of packets with the transfer progress of the front packet."""

    def __init__(self) -> None:
        self._packets: deque[Packet] = deque()
        self.current_packet_size = 0
        self.current_packet_extraction_offset = 0
        self.current_task = PacketTask.PROCESS_PACKET_SIZE

    def clear(self) -> None:
        """Drop every queued packet."""
        self._packets.clear()

    def has_pending_packets(self) -> bool:
        return bool(self._packets)

    def append(self, packet: Packet) -> None:
        self._packets.append(packet)

    def current_packet(self) -> Packet:
        """Return the front packet without removing it."""
        if not self._packets:
            raise IndexError("no pending packets")
        return self._packets[0]

    def pop(self) -> Packet:
        """Remove and return the front packet."""
        if not self._packets:
            raise IndexError("no pending packets")
        return self._packets.popleft()

    def __len__(self) -> int:
        return len(self._packets)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PacketManager):
            return NotImplemented
        return (
            self.current_packet_extraction_offset == other.current_packet_extraction_offset
            and self.current_packet_size == other.current_packet_size
            and self.current_task == other.current_task
        )

    __hash__ = None  # type: ignore[assignment]