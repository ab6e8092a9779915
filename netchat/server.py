"""Polling TCP server that exchanges framed packets with many connections."""

from __future__ import annotations

import logging
import select
import time

from netchat.address import IPAddress
from netchat.connection import TCPConnection
from netchat.packet import Packet, PacketError
from netchat.packet_manager import PacketTask
from netchat.tcp_socket import SocketError, TCPSocket
from netchat.utility import (
    PollEntry,
    PollEvent,
    poll_entry_for,
    process_packet_content,
    process_packet_size,
    receive_data,
    received_bytes_error,
    revents_error,
    send_content_data,
    send_size_data,
)

_log = logging.getLogger(__name__)

POLL_TIMEOUT = 0.001


def _usable(fd: int) -> bool:
    try:
        select.select([fd], [], [], 0)
    except (OSError, ValueError):
        return False
    return True


def _poll(entries: list[PollEntry], timeout: float) -> int:
    """Fill in the reported events of each entry; return how many entries report any."""
    readers: list[int] = []
    writers: list[int] = []
    for entry in entries:
        entry.revents = PollEvent(0)
        fd = entry.fd
        if fd < 0:
            entry.revents = PollEvent.NVAL
            continue
        if entry.events & PollEvent.RDNORM:
            readers.append(fd)
        if entry.events & PollEvent.WRNORM:
            writers.append(fd)

    readable: list[int] = []
    writable: list[int] = []
    if readers or writers:
        try:
            readable, writable, _ = select.select(readers, writers, [], timeout)
        except (OSError, ValueError):
            for entry in entries:
                if entry.fd >= 0 and not _usable(entry.fd):
                    entry.revents = PollEvent.NVAL
    else:
        time.sleep(timeout)

    readable_set, writable_set = set(readable), set(writable)
    for entry in entries:
        if entry.revents:
            continue
        if entry.fd in readable_set:
            entry.revents |= PollEvent.RDNORM
        if entry.fd in writable_set:
            entry.revents |= PollEvent.WRNORM
    return sum(1 for entry in entries if entry.revents)


def _read_step(connection: TCPConnection) -> str | None:
    """Receive what is available for the connection; return a reason to close it, if any."""
    try:
        received = receive_data(connection)
    except SocketError as exc:
        received = exc
    status = received_bytes_error(received)
    if status:
        return status
    if not received:
        return None
    incoming = connection.incoming
    if incoming.current_task is PacketTask.PROCESS_PACKET_SIZE:
        try:
            process_packet_size(connection)
        except PacketError:
            return "Packet size too large."
    elif incoming.current_packet_extraction_offset == incoming.current_packet_size:
        process_packet_content(connection)
    return None


def _write_step(connection: TCPConnection) -> None:
    """Send as much of the outgoing queue as the socket takes without blocking."""
    manager = connection.outgoing
    while manager.has_pending_packets():
        if manager.current_task is PacketTask.PROCESS_PACKET_SIZE:
            if not send_size_data(manager, connection.socket):
                break
        elif not send_content_data(manager, connection.socket):
            break


class Server:
    """Accepts connections and moves framed packets in and out of them, one frame at a time."""

    def __init__(self) -> None:
        self.listening_socket = TCPSocket()
        self.master_fd: list[PollEntry] = []
        self.use_fd: list[PollEntry] = []
        self.connections: list[TCPConnection] = []

    def start(self, ip: IPAddress) -> None:
        """Open a listening socket on the address; raises SocketError on failure."""
        self.master_fd.clear()
        self.connections.clear()
        self.listening_socket = TCPSocket(ip.version)
        try:
            self.listening_socket.create()
        except SocketError:
            _log.error("Socket failed to create.")
            raise
        _log.info("Socket successfully created.")
        try:
            self.listening_socket.listen(ip)
        except SocketError:
            _log.error("Failed to listen.")
            self.listening_socket.close()
            raise
        self.master_fd.append(poll_entry_for(self.listening_socket))
        _log.info("Socket successfully listening.")

    def frame(self) -> None:
        """Accept, read, write and dispatch whatever is ready right now."""
        if not self.master_fd:
            raise SocketError("server is not started")

        for connection, entry in zip(self.connections, self.master_fd[1:]):
            if connection.outgoing.has_pending_packets():
                entry.events = PollEvent.RDNORM | PollEvent.WRNORM

        self.use_fd = [PollEntry(entry.sock, entry.events) for entry in self.master_fd]
        if _poll(self.use_fd, POLL_TIMEOUT) > 0:
            if self.use_fd[0].revents & PollEvent.RDNORM:
                self._accept()

            for i in range(len(self.use_fd) - 1, 0, -1):
                index = i - 1
                entry = self.use_fd[i]
                status = revents_error(entry.revents)
                if status:
                    self.close_connection(index, status)
                    continue

                connection = self.connections[index]
                if entry.revents & PollEvent.RDNORM:
                    status = _read_step(connection)
                    if status:
                        self.close_connection(index, status)
                        continue

                if entry.revents & PollEvent.WRNORM:
                    _write_step(connection)
                    if not connection.outgoing.has_pending_packets():
                        self.master_fd[i].events = PollEvent.RDNORM

        for index in range(len(self.connections) - 1, -1, -1):
            incoming = self.connections[index].incoming
            while incoming.has_pending_packets():
                packet = incoming.current_packet()
                try:
                    handled = self.process_packet(self.connections[index], packet)
                except PacketError:
                    handled = False
                if not handled:
                    self.close_connection(index, "Failed to process incoming packet.")
                    break
                incoming.pop()

    def _accept(self) -> None:
        try:
            sock, ip = self.listening_socket.accept()
        except SocketError:
            _log.error("Failed to accept new connection.")
            return
        connection = TCPConnection(sock, ip)
        self.connections.append(connection)
        self.master_fd.append(poll_entry_for(sock))
        self.on_connect(connection)

    def share_message(self, connection: TCPConnection, packet: Packet) -> None:
        """Queue the packet for every other connection, appending each receiver's name to it."""
        for other in self.connections:
            if other is connection:
                continue
            packet.write_string(str(other))
            other.outgoing.append(packet)

    def on_connect(self, connection: TCPConnection) -> None:
        print(f"{connection} - New connection accepted.")

    def on_disconnect(self, connection: TCPConnection, reason: str) -> None:
        print(f"[{reason}] Connection lost: {connection}.")

    def process_packet(self, connection: TCPConnection, packet: Packet) -> bool:
        """Handle one incoming packet; returning False closes the connection."""
        print(f"Packet received with size: {len(packet.buffer)}")
        return True

    def close_connection(self, index: int, reason: str) -> None:
        """Report, close and forget the connection at the index."""
        connection = self.connections[index]
        self.on_disconnect(connection, reason)
        del self.master_fd[index + 1]
        if index + 1 < len(self.use_fd):
            del self.use_fd[index + 1]
        connection.close()
        del self.connections[index]