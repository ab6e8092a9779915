"""Stream socket that remembers its address version and blocking mode."""

from __future__ import annotations

import socket

from netchat.address import IPAddress, IPVersion


class SocketError(OSError):
    """Raised when a socket operation fails."""


_FAMILIES = {
    IPVersion.IPV4: socket.AF_INET,
    IPVersion.IPV6: socket.AF_INET6,
}


class TCPSocket:
    """A TCP socket bound to one IP version; the OS socket exists between create() and close()."""

    def __init__(self, version: IPVersion = IPVersion.IPV4, handle: socket.socket | None = None) -> None:
        self.version = IPVersion(version)
        self.type = socket.SOCK_STREAM
        self.protocol = socket.IPPROTO_TCP
        self.handle = handle
        self.is_blocking = False

    def _family(self) -> int:
        try:
            return _FAMILIES[self.version]
        except KeyError:
            raise SocketError(f"unsupported IP version: {self.version.name}") from None

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
        """Open the OS socket and switch it to non-blocking mode."""
        if self.handle is not None:
            raise SocketError("socket already created")
        family = self._family()
        try:
            self.handle = socket.socket(family, self.type, self.protocol)
        except OSError as exc:
            raise SocketError(f"cannot create socket: {exc}") from exc
        self.set_blocking(False)

    def close(self) -> None:
        """Close the OS socket."""
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

    def listen(self, endpoint: IPAddress, backlog: int = 5) -> None:
        """Bind to the endpoint and start listening."""
        self.bind(endpoint)
        try:
            self.handle.listen(backlog)
        except OSError as exc:
            raise SocketError(f"cannot listen on {endpoint!r}: {exc}") from exc

    def accept(self) -> tuple[TCPSocket, IPAddress]:
        """Accept a pending connection; return the new socket and the peer's address."""
        self._family()
        handle = self._require_handle()
        try:
            connection, peer = handle.accept()
        except OSError as exc:
            raise SocketError(f"cannot accept connection: {exc}") from exc
        accepted = TCPSocket(self.version, connection)
        accepted.set_blocking(False)
        return accepted, IPAddress.from_sockaddr(handle.family, peer)

    def connect(self, endpoint: IPAddress) -> None:
        self._check_version(endpoint)
        handle = self._require_handle()
        try:
            handle.connect(endpoint.to_sockaddr())
        except OSError as exc:
            raise SocketError(f"cannot connect to {endpoint!r}: {exc}") from exc

    def set_blocking(self, blocking: bool) -> None:
        handle = self._require_handle()
        try:
            handle.setblocking(blocking)
        except OSError as exc:
            raise SocketError(f"cannot change blocking mode: {exc}") from exc
        self.is_blocking = bool(blocking)

    @property
    def local_address(self) -> IPAddress:
        """The address the socket is bound to."""
        handle = self._require_handle()
        return IPAddress.from_sockaddr(handle.family, handle.getsockname())

    def __enter__(self) -> TCPSocket:
        return self

    def __exit__(self, *exc_info) -> None:
        if self.handle is not None:
            self.close()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TCPSocket):
            return NotImplemented
        return (
            self.handle is other.handle
            and self.version == other.version
            and self.is_blocking == other.is_blocking
            and self.protocol == other.protocol
            and self.type == other.type
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TCPSocket(version={self.version.name}, fileno={self.fileno()}, blocking={self.is_blocking})"