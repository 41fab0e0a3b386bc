# blobarena

blobarena is a small multiplayer arena game played over UDP on the local
machine. Each player steers a blob around a shared world. Blobs grow by
eating the ten green dots scattered across the map, and a bigger blob can
swallow a smaller one that comes within its radius. A swallowed blob goes
back to radius 10 at a random spot, and the dots that get eaten reappear
at random spots.

The server runs the authoritative simulation with a tick of 100 ms and
broadcasts the world state to every connected client after each tick. Each
client predicts its own movement from local input. It reconciles with the
server when world updates arrive, and it interpolates the other players'
positions 200 ms behind server time so that they move smoothly.

## Installation

```
pip install .
```

This installs `pygame`, which the client uses to draw the game window and
read the keyboard.

## Playing

Start the server first. It listens on UDP port 5050 on `127.0.0.1`:

```
blobarena server
```

Then start one client for each player. Each client binds its own local port
on `127.0.0.1`, and that port is also the player's id:

```
blobarena client 6001
blobarena client 6002
```

Running `blobarena` with no arguments, or with anything other than
`server` or `client <port>`, prints a usage message and exits with status 1.

Controls in the client window:

| Key         | Action          |
|-------------|-----------------|
| Arrow up    | Move up         |
| Arrow down  | Move down       |
| Arrow right | Move right      |
| Arrow left  | Move left       |
| Escape      | Leave the game  |

Your own blob is drawn in red, other players are drawn in blue, and dots are
drawn in green. Smaller blobs move faster than larger ones: each frame a blob
moves `10 / max(radius, 10)` units in each pressed direction. The client
gathers ten frames of input and then sends them to the server in one packet.

To leave, close the client window or press Escape. The client then sends a
disconnect packet to the server. To shut down the server, press Ctrl+C or
send it SIGTERM. The server sends a disconnect packet to every connected
client before it exits, and each client closes when it receives one.

A client that the server has not heard from for more than ten ticks, which
is about a second, is dropped by the server.

## Limitations

- Everything runs on `127.0.0.1`. The server port (5050) and the host are
  fixed and cannot be set from the command line.
- A world update carries at most ten players. Players beyond that still
  take part in the simulation, but they are not sent to the clients.
- Packets are sent without acknowledgement or retransmission. A lost packet
  is simply missed.

## Using the pieces

The building blocks can also be imported on their own:

- `blobarena.circular_buffer.CircularBuffer` is a fixed-capacity ring buffer.
  When it is full, a new item overwrites the oldest one. It supports `len()`,
  iteration, indexing (including negative indices), `front()`, `back()`,
  `pop()` and `clear()`.
- `blobarena.shared` holds the game constants, the data types (`Vec2`,
  `Position`, `Player`, `InputEntry`, `ClientInfo`) and the wire packets
  (`HeaderPacket`, `TimeSyncPacket`, `PlayerUpdatePacket`, `DotUpdatePacket`,
  `WorldUpdatePacket`). Each packet has an `encode()` method, and
  `decode_packet` turns bytes back into a packet. It raises `ValueError` on
  short or malformed data. The module also holds the movement rule
  `apply_input` and `lerp`.
- `blobarena.shutdown.Shutdown` installs SIGINT and SIGTERM handlers that set
  a process-wide shutdown flag.
- `blobarena.udp_socket.UdpSocket` is an IPv4 UDP socket with a background
  receive thread that hands each datagram and its sender to a callback. It
  can be used as a context manager.
- `blobarena.server.Server` and `blobarena.client.Client` are the two ends of
  the game. `blobarena.client` also provides `encode_input` and
  `interpolated_position`.
- `blobarena.main.main` is the command-line entry point.

## Running the tests

```
pip install .[test]
pytest
```