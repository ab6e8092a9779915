"""Polling TCP client that exchanges framed packets with one server."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from netchat.address import IPAddress
from netchat.connection import TCPConnection
from netchat.packet import Packet, PacketType
from netchat.server import POLL_TIMEOUT, _poll, _read_step, _write_step
from netchat.tcp_socket import SocketError, TCPSocket
from netchat.utility import PollEntry, PollEvent, poll_entry_for, revents_error

_log = logging.getLogger(__name__)


class Client:
    """One connection to a server, driven a frame at a time."""

    def __init__(self, input_stream: TextIO | None = None) -> None:
        self.input_stream = input_stream if input_stream is not None else sys.stdin
        self.connection: TCPConnection | None = None
        self._connected = False
        self._master: PollEntry | None = None

    def connect(self, ip: IPAddress) -> None:
        """Connect to the server; raises SocketError after on_connect_fail when that fails."""
        self._connected = False
        sock = TCPSocket(ip.version)
        try:
            sock.create()
            _log.info("Socket successfully created.")
            sock.set_blocking(True)
            sock.connect(ip)
            sock.set_blocking(False)
        except SocketError:
            if sock.handle is not None:
                sock.close()
            self.on_connect_fail()
            raise
        self.connection = TCPConnection(sock, ip)
        self._master = poll_entry_for(sock)
        self._connected = True
        self.on_connect()

    def is_connected(self) -> bool:
        return self._connected

    def frame(self) -> bool:
        """Read, write and dispatch whatever is ready; return whether still connected."""
        if not self._connected or self.connection is None or self._master is None:
            return False
        connection = self.connection
        master = self._master
        if connection.outgoing.has_pending_packets():
            master.events = PollEvent.RDNORM | PollEvent.WRNORM
        use = PollEntry(master.sock, master.events)
        if _poll([use], POLL_TIMEOUT) > 0:
            status = revents_error(use.revents)
            if status:
                self.close_connection(status)
                return False
            if use.revents & PollEvent.RDNORM:
                status = _read_step(connection)
                if status:
                    self.close_connection(status)
                    return False
            if use.revents & PollEvent.WRNORM:
                _write_step(connection)
                if not connection.outgoing.has_pending_packets():
                    master.events = PollEvent.RDNORM

        incoming = connection.incoming
        while incoming.has_pending_packets():
            try:
                handled = self.process_packet(connection, incoming.current_packet())
            except ValueError:
                handled = False
            if not handled:
                self.close_connection("Failed to process incoming packet.")
                return False
            incoming.pop()
        return True

    def chat_frame(self) -> None:
        """Read one line of input and queue it as a chat message; raises EOFError at end of input."""
        if self.connection is None:
            raise SocketError("not connected")
        line = self.input_stream.readline()
        if not line:
            raise EOFError("end of input")
        message = Packet(PacketType.CHAT_MESSAGE)
        message.write_string(line.rstrip("\r\n"))
        self.connection.outgoing.append(message)

    def on_connect(self) -> None:
        print("Successfully connected!")

    def on_connect_fail(self) -> None:
        """Drop any half-made connection state and report the failure."""
        self.connection = None
        self._master = None
        self._connected = False
        _log.warning("Connection attempt failed.")
        print("Failed to connect.")

    def on_disconnect(self, reason: str) -> None:
        print(f"Lost connection. Reason: {reason}.")

    def process_packet(self, connection: TCPConnection, packet: Packet) -> bool:
        """Handle one incoming packet; returning False closes the connection."""
        print(f"Packet received with size: {len(packet.buffer)}")
        return True

    def close_connection(self, reason: str) -> None:
        """Report the reason and close the connection."""
        self.on_disconnect(reason)
        self._master = None
        self._connected = False
        if self.connection is not None:
            self.connection.close()