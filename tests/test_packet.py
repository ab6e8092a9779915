import pytest

from netchat.packet import MAX_PACKET_SIZE, Packet, PacketError, PacketType


def test_default_packet_type():
    packet = Packet()
    assert len(packet.buffer) == 2
    assert packet.packet_type is PacketType.INVALID


def test_assign_and_get_packet_type():
    packet = Packet(PacketType.TEST)
    assert len(packet.buffer) == 2
    assert packet.extraction_offset == 2
    assert packet.packet_type is PacketType.TEST
    assert packet.buffer[1] == 3


def test_integer_extraction_offset():
    packet = Packet(PacketType.TEST)
    assert packet.extraction_offset == 2
    packet.write_uint32(0)
    assert packet.extraction_offset == 2
    packet.write_uint32(0)
    assert packet.extraction_offset == 2
    assert packet.read_uint32() == 0
    assert packet.extraction_offset == 6
    assert packet.read_uint32() == 0
    assert packet.extraction_offset == 10


def test_byte_vector_extraction_offset():
    packet = Packet(PacketType.TEST)
    packet.write_bytes(bytes([10, 20, 30, 40, 50, 100, 120, 3]))
    assert packet.extraction_offset == 2
    packet.write_bytes(bytes([1, 100, 5, 32, 2, 1, 10, 32]))
    assert packet.extraction_offset == 2
    packet.read_bytes()
    assert packet.extraction_offset == 14
    packet.read_bytes()
    assert packet.extraction_offset == 26


def test_integer_vector_extraction_offset():
    packet = Packet(PacketType.TEST)
    in1 = [100, 90, 83, 30, 120, 73, 75, 10]
    in2 = [1, 100, 5, 32, 2, 1, 10, 32]
    packet.write_uint32_list(in1)
    assert packet.extraction_offset == 2
    packet.write_uint32_list(in2)
    assert packet.extraction_offset == 2
    out1 = packet.read_uint32_list()
    assert packet.extraction_offset == 38
    assert out1 == in1
    out2 = packet.read_uint32_list()
    assert packet.extraction_offset == 74
    assert out2 == in2


def test_insert_extract_data():
    packet = Packet(PacketType.TEST)
    buf1 = bytes([10, 20, 30, 40, 50, 100, 120, 3])
    buf2 = bytes([1, 100, 5, 32, 2, 1, 10, 32])
    packet.write_bytes(buf1).write_bytes(buf2)
    out1 = packet.read_bytes()
    out2 = packet.read_bytes()
    assert len(out1) == 8 and out1 == buf1
    assert len(out2) == 8 and out2 == buf2


def test_string_round_trip():
    packet = Packet(PacketType.CHAT_MESSAGE)
    packet.write_string("Hello from the client!").write_string("[127.0.0.1:8080]")
    assert packet.read_string() == "Hello from the client!"
    assert packet.read_string() == "[127.0.0.1:8080]"


def test_wire_layout():
    packet = Packet(PacketType.GREETINGS)
    packet.write_string("Hi")
    assert bytes(packet.buffer) == b"\x00\x04\x00\x00\x00\x02Hi"


def test_uint32_list_elements_little_endian():
    packet = Packet(PacketType.INTEGER_ARRAY)
    packet.write_uint32_list([1])
    assert bytes(packet.buffer[2:]) == b"\x00\x00\x00\x01\x01\x00\x00\x00"


def test_large_uint32_list_value():
    packet = Packet(PacketType.INTEGER_ARRAY)
    packet.write_uint32_list([0xFFFFFF9C])
    assert packet.read_uint32_list() == [0xFFFFFF9C]


def test_read_past_end():
    packet = Packet(PacketType.TEST)
    with pytest.raises(PacketError):
        packet.read_uint32()


def test_overflow():
    packet = Packet(PacketType.TEST)
    with pytest.raises(PacketError):
        packet.write_bytes(bytes(MAX_PACKET_SIZE))


def test_unknown_packet_type_is_raw_number():
    packet = Packet()
    packet.buffer[0:2] = b"\x00\x63"
    assert packet.packet_type == 99


def test_equality():
    a = Packet(PacketType.TEST).write_uint32(5)
    b = Packet(PacketType.TEST).write_uint32(5)
    assert a == b
    b.read_uint32()
    assert not a == b