"""Poll bookkeeping and the incremental steps of sending and receiving framed packets.

On the wire each packet is a two-byte big-endian length followed by that many bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntFlag

from netchat.connection import TCPConnection
from netchat.packet import MAX_PACKET_SIZE, Packet, PacketError
from netchat.packet_manager import PacketManager, PacketTask
from netchat.tcp_socket import SocketError, TCPSocket

_SIZE = struct.Struct(">H")


class PollEvent(IntFlag):
    """Socket readiness and error conditions."""

    ERR = 0x0001
    HUP = 0x0002
    NVAL = 0x0004
    WRNORM = 0x0010
    RDNORM = 0x0100


@dataclass
class PollEntry:
    """A socket with the events requested for it and the events reported."""

    sock: TCPSocket
    events: PollEvent = PollEvent.RDNORM
    revents: PollEvent = PollEvent(0)

    @property
    def fd(self) -> int:
        return self.sock.fileno()


def poll_entry_for(sock: TCPSocket) -> PollEntry:
    """Return an entry that asks for readability of the socket."""
    return PollEntry(sock, PollEvent.RDNORM, PollEvent(0))


def revents_error(revents: int) -> str | None:
    """Name the error condition in reported events, or None when there is none."""
    status = None
    for flag, name in (
        (PollEvent.ERR, "POLLERR"),
        (PollEvent.HUP, "POLLHUP"),
        (PollEvent.NVAL, "POLLNVAL"),
    ):
        if revents & flag:
            status = name
    return status


def received_bytes_error(received: int | None | BaseException) -> str | None:
    """Describe why a receive result ends the connection, or return None if it does not.

    ``received`` is what receive_data returned, or the exception it raised.
    """
    if isinstance(received, BaseException):
        if isinstance(received, (BlockingIOError, InterruptedError)):
            return None
        return "Recv < 0"
    if received == 0:
        return "Recv == 0"
    return None


def _handle(sock: TCPSocket):
    if sock.handle is None:
        raise SocketError("socket is not open")
    return sock.handle


def receive_data(connection: TCPConnection) -> int | None:
    """Read what is missing of the current size header or packet body.

    Advances the incoming extraction offset and returns the number of bytes read:
    0 when the peer has closed, None when nothing is available yet.
    Raises SocketError when the socket fails.
    """
    incoming = connection.incoming
    offset = incoming.current_packet_extraction_offset
    if incoming.current_task is PacketTask.PROCESS_PACKET_SIZE:
        end = _SIZE.size
    else:
        end = incoming.current_packet_size
    handle = _handle(connection.socket)
    try:
        received = handle.recv_into(memoryview(connection.buffer)[offset:end])
    except (BlockingIOError, InterruptedError):
        return None
    except OSError as exc:
        raise SocketError(f"receive failed: {exc}") from exc
    incoming.current_packet_extraction_offset += received
    return received


def process_packet_size(connection: TCPConnection) -> None:
    """Once the size header is complete, switch to receiving the packet body.

    Raises PacketError when the announced size exceeds the maximum packet size.
    """
    incoming = connection.incoming
    if incoming.current_packet_extraction_offset != _SIZE.size:
        return
    size = _SIZE.unpack_from(connection.buffer, 0)[0]
    if size > MAX_PACKET_SIZE:
        raise PacketError("packet size too large")
    incoming.current_packet_size = size
    incoming.current_packet_extraction_offset = 0
    incoming.current_task = PacketTask.PROCESS_PACKET_CONTENTS


def process_packet_content(connection: TCPConnection) -> Packet:
    """Queue the received body as an incoming packet and get ready for the next header."""
    incoming = connection.incoming
    packet = Packet()
    packet.buffer = bytearray(connection.buffer[:incoming.current_packet_size])
    incoming.append(packet)
    incoming.current_packet_size = 0
    incoming.current_packet_extraction_offset = 0
    incoming.current_task = PacketTask.PROCESS_PACKET_SIZE
    return packet


def _send(sock: TCPSocket, data: bytes) -> int:
    handle = _handle(sock)
    try:
        return handle.send(data)
    except OSError:
        return 0


def send_size_data(manager: PacketManager, sock: TCPSocket) -> bool:
    """Send what remains of the front packet's size header.

    Returns True when the header is complete, False when it must be resumed later.
    """
    packet = manager.current_packet()
    manager.current_packet_size = len(packet.buffer)
    header = _SIZE.pack(manager.current_packet_size)
    sent = _send(sock, header[manager.current_packet_extraction_offset:])
    if sent > 0:
        manager.current_packet_extraction_offset += sent
    if manager.current_packet_extraction_offset != _SIZE.size:
        return False
    manager.current_packet_extraction_offset = 0
    manager.current_task = PacketTask.PROCESS_PACKET_CONTENTS
    return True


def send_content_data(manager: PacketManager, sock: TCPSocket) -> bool:
    """Send what remains of the front packet's body, dropping the packet once it is all sent.

    Returns True when the packet is complete, False when it must be resumed later.
    """
    packet = manager.current_packet()
    offset = manager.current_packet_extraction_offset
    sent = _send(sock, bytes(packet.buffer[offset:manager.current_packet_size]))
    if sent > 0:
        manager.current_packet_extraction_offset += sent
    if manager.current_packet_extraction_offset != manager.current_packet_size:
        return False
    manager.current_packet_extraction_offset = 0
    manager.current_task = PacketTask.PROCESS_PACKET_SIZE
    manager.pop()
    return True