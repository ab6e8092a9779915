"""Chat server: greets clients and relays chat messages between them."""

from __future__ import annotations

import argparse
import sys

from netchat.address import AddressError, IPAddress
from netchat.connection import TCPConnection
from netchat.packet import Packet, PacketType
from netchat.server import Server
from netchat.tcp_socket import SocketError

DEFAULT_HOST = "192.168.0.104"
DEFAULT_PORT = 8080


def _greeting(text: str) -> Packet:
    return Packet(PacketType.GREETINGS).write_string(text)


class ChatServer(Server):
    """Server that greets, announces joins and leaves, and relays chat messages."""

    def on_connect(self, connection: TCPConnection) -> None:
        print(f"{connection} - New connection accepted.")
        connection.outgoing.append(_greeting("Welcome"))
        announcement = _greeting("New user connected!")
        for other in self.connections:
            if other is not connection:
                other.outgoing.append(announcement)

    def on_disconnect(self, connection: TCPConnection, reason: str) -> None:
        print(f"[{reason}] Connection lost: {connection}.")
        announcement = _greeting("A user disconnected!")
        for other in self.connections:
            if other is not connection:
                other.outgoing.append(announcement)

    def process_packet(self, connection: TCPConnection, packet: Packet) -> bool:
        kind = packet.packet_type
        if kind == PacketType.CHAT_MESSAGE:
            self.share_message(connection, packet)
            message = packet.read_string()
            print(f"Chat message from {connection}: {message}")
        elif kind == PacketType.GREETINGS:
            print(f"Greetings: {packet.read_string()}")
        elif kind == PacketType.INTEGER_ARRAY:
            count = packet.read_uint32()
            print(f"Array size: {count}")
            for index in range(count):
                print(f"Element[{index}] - {packet.read_uint32()}")
        else:
            print(f"Unrecognized packet type: {int(kind)}")
            return False
        return True


def main(argv=None) -> int:
    """Run the chat server until interrupted."""
    parser = argparse.ArgumentParser(prog="netchat-server", description="Run the chat server.")
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    server = ChatServer()
    try:
        server.start(IPAddress(args.host, args.port))
    except (AddressError, SocketError) as exc:
        print(f"Cannot start server: {exc}", file=sys.stderr)
        return 1
    try:
        while True:
            server.frame()
    except KeyboardInterrupt:
        pass
    finally:
        for connection in server.connections:
            connection.close()
        if server.listening_socket.handle is not None:
            server.listening_socket.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())