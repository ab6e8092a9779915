"""Datagram socket that carries one packet per datagram."""

from __future__ import annotations

import socket

from netchat.address import IPAddress, IPVersion
from netchat.packet import MAX_PACKET_SIZE, Packet, PacketError
from netchat.tcp_socket import SocketError

_FAMILIES = {
    IPVersion.IPV4: socket.AF_INET,
    IPVersion.IPV6: socket.AF_INET6,
}


class UDPSocket:
    """A UDP socket bound to one IP version."""

    def __init__(self, version: IPVersion = IPVersion.IPV4, handle: socket.socket | None = None) -> None:
        self.version = IPVersion(version)
        self.type = socket.SOCK_DGRAM
        self.protocol = socket.IPPROTO_UDP
        self.handle = handle

    def _require_handle(self) -> socket.socket:
        if self.handle is None:
            raise SocketError("socket is not open")
        return self.handle

    def _check_version(self, endpoint: IPAddress) -> None:
        if endpoint.version != self.version:
            raise SocketError(
                f"address version {endpoint.version.name} does not match socket version {self.version.name}"
            )

    def create(self) -> None:
        """Open the OS socket."""
        if self.handle is not None:
            raise SocketError("socket already created")
        try:
            family = _FAMILIES[self.version]
        except KeyError:
            raise SocketError(f"unsupported IP version: {self.version.name}") from None
        try:
            self.handle = socket.socket(family, self.type, self.protocol)
        except OSError as exc:
            raise SocketError(f"cannot create socket: {exc}") from exc

    def close(self) -> None:
        handle = self._require_handle()
        try:
            handle.close()
        except OSError as exc:
            raise SocketError(f"cannot close socket: {exc}") from exc
        self.handle = None

    def fileno(self) -> int:
        """The OS descriptor, or -1 when the socket is not open."""
        return -1 if self.handle is None else self.handle.fileno()

    def bind(self, endpoint: IPAddress) -> None:
        self._check_version(endpoint)
        handle = self._require_handle()
        try:
            handle.bind(endpoint.to_sockaddr())
        except OSError as exc:
            raise SocketError(f"cannot bind to {endpoint!r}: {exc}") from exc

    def connect(self, endpoint: IPAddress) -> None:
        """Fix the peer that send() writes to and recv() accepts from."""
        self._check_version(endpoint)
        handle = self._require_handle()
        try:
            handle.connect(endpoint.to_sockaddr())
        except OSError as exc:
            raise SocketError(f"cannot connect to {endpoint!r}: {exc}") from exc

    def send(self, packet: Packet) -> None:
        """Send the whole packet as one datagram to the connected peer."""
        handle = self._require_handle()
        data = bytes(packet.buffer)
        try:
            sent = handle.send(data)
        except OSError as exc:
            raise SocketError(f"cannot send packet: {exc}") from exc
        if sent != len(data):
            raise SocketError(f"sent {sent} of {len(data)} bytes")

    def recv(self) -> Packet:
        """Receive one datagram and return it as a packet."""
        handle = self._require_handle()
        try:
            data = handle.recv(MAX_PACKET_SIZE)
        except OSError as exc:
            raise SocketError(f"cannot receive packet: {exc}") from exc
        packet = Packet()
        if len(data) < len(packet.buffer):
            raise PacketError("datagram is shorter than a packet header")
        packet.buffer = bytearray(data)
        return packet

    @property
    def local_address(self) -> IPAddress:
        """The address the socket is bound to."""
        handle = self._require_handle()
        return IPAddress.from_sockaddr(handle.family, handle.getsockname())

    def __enter__(self) -> UDPSocket:
        return self

    def __exit__(self, *exc_info) -> None:
        if self.handle is not None:
            self.close()

    def __repr__(self) -> str:
        return f"UDPSocket(version={self.version.name}, fileno={self.fileno()})"