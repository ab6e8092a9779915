"""A connected peer: its socket, address and packet queues."""

from __future__ import annotations

from netchat.address import IPAddress
from netchat.packet import MAX_PACKET_SIZE
from netchat.packet_manager import PacketManager
from netchat.tcp_socket import TCPSocket


class TCPConnection:
    """A socket to one peer together with its incoming and outgoing packets."""

    def __init__(self, socket: TCPSocket, ip: IPAddress) -> None:
        self.socket = socket
        self.ip = ip
        self.incoming = PacketManager()
        self.outgoing = PacketManager()
        self.buffer = bytearray(MAX_PACKET_SIZE)
        self._text = f"[{ip.address}:{ip.port}]"

    def close(self) -> None:
        """Close the socket if it is still open."""
        if self.socket.handle is not None:
            self.socket.close()

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"TCPConnection({self._text})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TCPConnection):
            return NotImplemented
        return (
            self.buffer == other.buffer
            and self.ip == other.ip
            and self.socket == other.socket
            and self._text == other._text
            and self.incoming == other.incoming
            and self.outgoing == other.outgoing
        )

    __hash__ = None  # type: ignore[assignment]