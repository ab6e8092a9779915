import socket
import struct
import time

import pytest

from netchat.address import IPAddress
from netchat.packet import Packet, PacketType
from netchat.server import Server
from netchat.tcp_socket import SocketError


class RecordingServer(Server):
    def __init__(self):
        super().__init__()
        self.connected = []
        self.disconnected = []
        self.packets = []
        self.accept_packets = True

    def on_connect(self, connection):
        self.connected.append(connection)

    def on_disconnect(self, connection, reason):
        self.disconnected.append((str(connection), reason))

    def process_packet(self, connection, packet):
        self.packets.append((connection, bytes(packet.buffer)))
        return self.accept_packets


def run_until(server, predicate, limit=1000):
    for _ in range(limit):
        server.frame()
        if predicate():
            return True
        time.sleep(0.002)
    return False


def frame_bytes(packet):
    return struct.pack(">H", len(packet.buffer)) + bytes(packet.buffer)


def recv_exact(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            raise ConnectionError("peer closed")
        data += chunk
    return data


def read_packet(sock):
    size = struct.unpack(">H", recv_exact(sock, 2))[0]
    packet = Packet()
    packet.buffer = bytearray(recv_exact(sock, size))
    return packet


@pytest.fixture
def server():
    srv = RecordingServer()
    srv.start(IPAddress("127.0.0.1", 0))
    yield srv
    for connection in list(srv.connections):
        connection.close()
    if srv.listening_socket.handle is not None:
        srv.listening_socket.close()


def connect_client(server):
    port = server.listening_socket.local_address.port
    client = socket.create_connection(("127.0.0.1", port), timeout=5)
    client.settimeout(5)
    count = len(server.connections) + 1
    assert run_until(server, lambda: len(server.connections) == count)
    return client


def test_start_server(server):
    assert server.listening_socket.local_address.port > 0
    assert len(server.master_fd) == 1
    assert server.master_fd[0].sock is server.listening_socket
    assert server.connections == []


def test_start_failure_raises():
    srv = Server()
    with pytest.raises(SocketError):
        srv.start(IPAddress("203.0.113.1", 0))
    assert srv.listening_socket.handle is None
    assert srv.master_fd == []


def test_frame_before_start_raises():
    with pytest.raises(SocketError):
        Server().frame()


def test_accepts_new_connection(server):
    client = connect_client(server)
    try:
        assert len(server.connected) == 1
        assert str(server.connected[0]).startswith("[127.0.0.1:")
        assert len(server.master_fd) == 2
    finally:
        client.close()


def test_receives_packet(server):
    client = connect_client(server)
    try:
        packet = Packet(PacketType.TEST).write_string("hi")
        client.sendall(frame_bytes(packet))
        assert run_until(server, lambda: server.packets)
        connection, data = server.packets[0]
        assert connection is server.connections[0]
        assert data == bytes(packet.buffer)
    finally:
        client.close()


def test_sends_outgoing_packet(server):
    client = connect_client(server)
    try:
        connection = server.connections[0]
        packet = Packet(PacketType.GREETINGS).write_string("Welcome")
        connection.outgoing.append(packet)
        assert run_until(server, lambda: not connection.outgoing.has_pending_packets())
        received = read_packet(client)
        assert received.packet_type == PacketType.GREETINGS
        assert received.read_string() == "Welcome"
    finally:
        client.close()


def test_peer_close_disconnects(server):
    client = connect_client(server)
    client.close()
    assert run_until(server, lambda: not server.connections)
    assert server.disconnected[0][1] == "Recv == 0"
    assert len(server.master_fd) == 1


def test_oversized_packet_closes_connection(server):
    client = connect_client(server)
    try:
        client.sendall(b"\xff\xff")
        assert run_until(server, lambda: not server.connections)
        assert server.disconnected[0][1] == "Packet size too large."
    finally:
        client.close()


def test_rejected_packet_closes_connection(server):
    server.accept_packets = False
    client = connect_client(server)
    try:
        client.sendall(frame_bytes(Packet(PacketType.TEST)))
        assert run_until(server, lambda: not server.connections)
        assert server.disconnected[0][1] == "Failed to process incoming packet."
        assert len(server.packets) == 1
    finally:
        client.close()


def test_share_message_skips_sender(server):
    first = connect_client(server)
    second = connect_client(server)
    try:
        sender, receiver = server.connections
        packet = Packet(PacketType.CHAT_MESSAGE).write_string("hello")
        server.share_message(sender, packet)
        assert not sender.outgoing.has_pending_packets()
        queued = receiver.outgoing.current_packet()
        assert queued is packet
        assert queued.read_string() == "hello"
        assert queued.read_string() == str(receiver)
    finally:
        first.close()
        second.close()


def test_default_process_packet_reports_size(capsys):
    assert Server().process_packet(None, Packet(PacketType.TEST)) is True
    assert capsys.readouterr().out == "Packet received with size: 2\n"