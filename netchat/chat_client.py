"""Chat client: sends typed lines to the server and prints what arrives."""

from __future__ import annotations

import argparse
import sys
import threading

from netchat.address import AddressError, IPAddress
from netchat.client import Client
from netchat.connection import TCPConnection
from netchat.packet import Packet, PacketType
from netchat.tcp_socket import SocketError

DEFAULT_HOST = "192.168.0.104"
DEFAULT_PORT = 8080


class ChatClient(Client):
    """Client that greets the server and prints greetings, chat messages and integer arrays."""

    def on_connect(self) -> None:
        print("Successfully connected to the server!")
        hello = Packet(PacketType.GREETINGS).write_string("Hello from the client!")
        self.connection.outgoing.append(hello)

    def process_packet(self, connection: TCPConnection, packet: Packet) -> bool:
        kind = packet.packet_type
        if kind == PacketType.GREETINGS:
            print(f"Greetings: {packet.read_string()}")
        elif kind == PacketType.CHAT_MESSAGE:
            message = packet.read_string()
            user = packet.read_string()
            print(f"From {user}: {message}")
        elif kind == PacketType.INTEGER_ARRAY:
            count = packet.read_uint32()
            print(f"Array Size: {count}")
            for index in range(count):
                print(f"Element[{index}] - {packet.read_uint32()}")
        else:
            print(f"Unrecognized packet type: {int(kind)}")
            return False
        return True


def _read_input(client: Client) -> None:
    while client.is_connected():
        try:
            client.chat_frame()
        except EOFError:
            return


def main(argv=None) -> int:
    """Connect to the chat server and chat until the connection ends."""
    parser = argparse.ArgumentParser(prog="netchat-client", description="Connect to the chat server.")
    parser.add_argument("--host", default=DEFAULT_HOST, help="server address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="server port")
    args = parser.parse_args(argv)

    client = ChatClient()
    try:
        client.connect(IPAddress(args.host, args.port))
    except (AddressError, SocketError) as exc:
        print(f"Cannot connect: {exc}", file=sys.stderr)
        return 1

    threading.Thread(target=_read_input, args=(client,), daemon=True).start()
    try:
        while client.is_connected():
            client.frame()
    except KeyboardInterrupt:
        client.close_connection("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())