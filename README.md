# netchat

A small TCP chat server and client. On the wire every packet is a two-byte
big-endian length followed by the packet itself: a two-byte big-endian
packet type and its payload. The server polls its listening socket and every
connection without blocking, greets new users, tells the others when someone
joins or leaves, and passes chat messages on to every other client.

## Install

```
pip install .
```

## Running a chat

Start the server:

```
netchat-server --host 127.0.0.1 --port 8080
```

Then, in another terminal, connect a client to the same address:

```
netchat-client --host 127.0.0.1 --port 8080
```

Both commands take `--host` and `--port`; without them they use
`192.168.0.104` and `8080`. The server runs until interrupted with Ctrl+C.

On connecting, the client sends a greeting and prints the server's
`Greetings: Welcome`. Each line typed into the client is sent as a chat
message. The server prints it and queues it for every other client with a
connection label (`[address:port]`) appended; those clients print it as
`From [address:port]: message`. When a client joins or leaves, the others
receive `New user connected!` or `A user disconnected!`.

## Using the library

- `netchat.address` — `IPAddress` (`address`, `domain`, `port`, `version`,
  `stream`, `to_sockaddr()`, `IPAddress.from_sockaddr()`), `IPVersion`, and
  `AddressError` for text that is neither IPv4 nor IPv6.
- `netchat.codec` — `decompose_int32` and `compose_int32`, 32-bit integers to
  and from four little-endian bytes.
- `netchat.packet` — `Packet`, `PacketType` and `PacketError`, with
  `write_uint32`, `write_string`, `write_bytes`, `write_uint32_list` and the
  matching `read_*` methods. Packets are limited to `MAX_PACKET_SIZE`
  (8192 bytes); writing past it or reading past the end raises `PacketError`.
- `netchat.packet_manager` — `PacketManager`, a queue of packets with the
  send/receive progress of the one in front, and `PacketTask`.
- `netchat.tcp_socket` — `TCPSocket` and `SocketError`; `netchat.udp_socket`
  — `UDPSocket`, which sends and receives one packet per datagram.
- `netchat.connection` — `TCPConnection`, a socket with its `incoming` and
  `outgoing` packet managers.
- `netchat.utility` — poll bookkeeping (`PollEvent`, `PollEntry`) and the
  incremental steps of framed sending and receiving.
- `netchat.server` and `netchat.client` — `Server` and `Client`, whose
  `frame()` drives one round of polling, reading, writing and packet
  handling. Subclass them and override `on_connect`, `on_disconnect` and
  `process_packet`. `netchat.chat_server.ChatServer` and
  `netchat.chat_client.ChatClient` are the subclasses behind the commands.
- `netchat.url` — `URL` and `parse_url`, a small URL splitter giving scheme,
  user info, domain, port, path segments, query (`?q=` only) and fragment.
  It raises `ValueError` for parts it cannot place.

```python
from netchat.packet import Packet, PacketType

packet = Packet(PacketType.CHAT_MESSAGE)
packet.write_string("hello")
assert packet.read_string() == "hello"
```

```python
from netchat.url import parse_url

url = parse_url("http://user@example.com:8080/docs")
print(url.scheme, url.user_info, url.domain, url.port, url.path)
# http user example.com 8080 ['docs']
```

## What it does not do

There are no user names, accounts, encryption or message history: clients
are known only by their address and port, and messages go out in plain text.
`UDPSocket` is only a socket wrapper; no command uses it.

## Tests

```
pip install .[test]
pytest
```