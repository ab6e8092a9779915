import io
import socket
import struct
import time

import pytest

from netchat.address import IPAddress
from netchat.client import Client
from netchat.packet import Packet, PacketType
from netchat.tcp_socket import SocketError


class RecordingClient(Client):
    def __init__(self, input_stream=None):
        super().__init__(input_stream)
        self.connects = 0
        self.failures = 0
        self.reasons = []
        self.packets = []
        self.accept_packets = True

    def on_connect(self):
        self.connects += 1

    def on_connect_fail(self):
        self.failures += 1

    def on_disconnect(self, reason):
        self.reasons.append(reason)

    def process_packet(self, connection, packet):
        self.packets.append(bytes(packet.buffer))
        return self.accept_packets


def run_until(client, predicate, limit=1000):
    for _ in range(limit):
        client.frame()
        if predicate():
            return True
        time.sleep(0.002)
    return False


def recv_exact(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            raise ConnectionError("peer closed")
        data += chunk
    return data


def closed_port():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


@pytest.fixture
def listener():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    sock.listen()
    sock.settimeout(5)
    yield sock
    sock.close()


@pytest.fixture
def linked(listener):
    client = RecordingClient(io.StringIO("hello there\n"))
    client.connect(IPAddress("127.0.0.1", listener.getsockname()[1]))
    peer, _ = listener.accept()
    peer.settimeout(5)
    yield client, peer
    peer.close()
    if client.connection is not None:
        client.connection.close()


def test_connect(linked, listener):
    client, _ = linked
    assert client.is_connected()
    assert client.connects == 1
    assert str(client.connection) == f"[127.0.0.1:{listener.getsockname()[1]}]"


def test_connect_refused_raises():
    client = RecordingClient()
    with pytest.raises(SocketError):
        client.connect(IPAddress("127.0.0.1", closed_port()))
    assert not client.is_connected()
    assert client.failures == 1


def test_chat_frame_queues_message(linked):
    client, _ = linked
    client.chat_frame()
    packet = client.connection.outgoing.current_packet()
    assert packet.packet_type == PacketType.CHAT_MESSAGE
    assert packet.read_string() == "hello there"


def test_chat_frame_end_of_input(linked):
    client, _ = linked
    client.input_stream = io.StringIO("")
    with pytest.raises(EOFError):
        client.chat_frame()
    assert not client.connection.outgoing.has_pending_packets()


def test_chat_frame_without_connection():
    with pytest.raises(SocketError):
        Client(io.StringIO("text\n")).chat_frame()


def test_frame_sends_outgoing(linked):
    client, peer = linked
    client.chat_frame()
    assert run_until(client, lambda: not client.connection.outgoing.has_pending_packets())
    size = struct.unpack(">H", recv_exact(peer, 2))[0]
    packet = Packet()
    packet.buffer = bytearray(recv_exact(peer, size))
    assert packet.packet_type == PacketType.CHAT_MESSAGE
    assert packet.read_string() == "hello there"


def test_frame_receives_packet(linked):
    client, peer = linked
    packet = Packet(PacketType.GREETINGS).write_string("Welcome")
    peer.sendall(struct.pack(">H", len(packet.buffer)) + bytes(packet.buffer))
    assert run_until(client, lambda: client.packets)
    assert client.packets == [bytes(packet.buffer)]
    assert not client.connection.incoming.has_pending_packets()


def test_peer_close_disconnects(linked):
    client, peer = linked
    peer.close()
    assert run_until(client, lambda: not client.is_connected())
    assert client.reasons == ["Recv == 0"]
    assert client.frame() is False


def test_oversized_packet_disconnects(linked):
    client, peer = linked
    peer.sendall(b"\xff\xff")
    assert run_until(client, lambda: not client.is_connected())
    assert client.reasons == ["Packet size too large."]


def test_rejected_packet_disconnects(linked):
    client, peer = linked
    client.accept_packets = False
    packet = Packet(PacketType.TEST)
    peer.sendall(struct.pack(">H", len(packet.buffer)) + bytes(packet.buffer))
    assert run_until(client, lambda: not client.is_connected())
    assert client.reasons == ["Failed to process incoming packet."]


def test_frame_without_connection():
    assert Client().frame() is False