"""IP endpoint description: textual address, raw bytes, port and version."""

from __future__ import annotations

import socket
from enum import IntEnum


class IPVersion(IntEnum):
    """Internet protocol version of an address."""

    UNKNOWN = 0
    IPV4 = 1
    IPV6 = 2


class AddressError(ValueError):
    """Raised when an address cannot be interpreted."""


_IPV4_NONE = b"\xff\xff\xff\xff"


def _pack_address(address: str) -> tuple[IPVersion, bytes]:
    """Return the version and network-order bytes of a textual IP address."""
    try:
        packed = socket.inet_pton(socket.AF_INET, address)
    except (OSError, ValueError):
        pass
    else:
        if packed != _IPV4_NONE:
            return IPVersion.IPV4, packed
    try:
        return IPVersion.IPV6, socket.inet_pton(socket.AF_INET6, address)
    except (OSError, ValueError) as exc:
        raise AddressError(f"cannot process IP address: {address!r}") from exc


def _check_port(port: int) -> int:
    if not 0 <= port <= 0xFFFF:
        raise AddressError(f"port out of range: {port}")
    return port


class IPAddress:
    """An IPv4 or IPv6 endpoint."""

    __slots__ = ("domain", "address", "port", "version", "stream")

    def __init__(self, address: str, port: int = 80) -> None:
        version, packed = _pack_address(address)
        self._fill(address, _check_port(port), version, packed)

    def _fill(self, address: str, port: int, version: IPVersion, packed: bytes) -> None:
        self.domain = address
        self.address = address
        self.port = port
        self.version = version
        self.stream = packed

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: tuple) -> IPAddress:
        """Build an address from a socket family and the tuple the socket module returns."""
        if family == socket.AF_INET:
            version = IPVersion.IPV4
            host = sockaddr[0]
        elif family == socket.AF_INET6:
            version = IPVersion.IPV6
            host = sockaddr[0].split("%", 1)[0]
        else:
            raise AddressError(f"unsupported address family: {family}")
        try:
            packed = socket.inet_pton(family, host)
        except (OSError, ValueError) as exc:
            raise AddressError(f"cannot process IP address: {host!r}") from exc
        text = socket.inet_ntop(family, packed)
        instance = cls.__new__(cls)
        instance._fill(text, _check_port(sockaddr[1]), version, packed)
        return instance

    @property
    def family(self) -> int:
        """The socket address family matching this address."""
        if self.version is IPVersion.IPV4:
            return socket.AF_INET
        if self.version is IPVersion.IPV6:
            return socket.AF_INET6
        raise AddressError("address has no known version")

    def to_sockaddr(self) -> tuple:
        """Return the tuple the socket module expects for this address."""
        if self.version is IPVersion.IPV4:
            return (socket.inet_ntop(socket.AF_INET, self.stream), self.port)
        if self.version is IPVersion.IPV6:
            return (socket.inet_ntop(socket.AF_INET6, self.stream), self.port, 0, 0)
        raise AddressError("address has no known version")

    def _key(self) -> tuple:
        return (self.address, self.domain, self.stream, self.port, self.version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IPAddress):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"IPAddress({self.address!r}, {self.port})"