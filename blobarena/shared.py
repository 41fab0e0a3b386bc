"""Game constants, shared data types, wire packets and movement rules."""

from __future__ import annotations

import heapq
import math
import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import ClassVar, NamedTuple, Union

from blobarena.circular_buffer import CircularBuffer

INPUT_BUFFER_SIZE = 10
MAX_PLAYER_COUNT = 10
WORLD_WIDTH = 400
WORLD_HEIGHT = 300
DOT_COUNT = 10
DOT_RADIUS = 3
DEFAULT_RADIUS = 10
POSITION_HISTORY = 10


class Button(IntFlag):
    """Bits of an encoded input byte."""

    UP = 1 << 0
    DOWN = 1 << 1
    RIGHT = 1 << 2
    LEFT = 1 << 3
    SPACE = 1 << 4


class Msg(IntEnum):
    CONNECT = 0
    DISCONNECT = 1
    PLAYER_UPDATE = 2
    WORLD_UPDATE = 3
    TIME_SYNC = 4
    DOT_UPDATE = 5


@dataclass(frozen=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0

    def distance(self, other: Vec2) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass
class Position:
    """A player's position at a given server time (milliseconds)."""

    position: Vec2
    time: float


@dataclass
class Player:
    """A remote player as seen by a client."""

    id: int = 0
    radius: int = DEFAULT_RADIUS
    positions: CircularBuffer[Position] = field(
        default_factory=lambda: CircularBuffer(POSITION_HISTORY)
    )


@dataclass(frozen=True, order=True)
class InputEntry:
    """A batch of inputs; ordered by sequence number."""

    sequence_num: int
    inputs: tuple[int, ...] = field(default=(0,) * INPUT_BUFFER_SIZE, compare=False)

    def __post_init__(self) -> None:
        inputs = tuple(self.inputs)
        if len(inputs) != INPUT_BUFFER_SIZE:
            raise ValueError(f"expected {INPUT_BUFFER_SIZE} inputs, got {len(inputs)}")
        if any(not 0 <= value <= 0xFF for value in inputs):
            raise ValueError("inputs must be bytes in 0..255")
        if not 0 <= self.sequence_num < 1 << 64:
            raise ValueError("sequence number out of range")
        object.__setattr__(self, "inputs", inputs)


@dataclass
class ClientInfo:
    """Server-side state of one connected client."""

    id: int
    last_check_in: int = 0
    input_queue: list[InputEntry] = field(default_factory=list)
    last_processed_sequence: int = 0
    position: Vec2 = field(default_factory=Vec2)
    radius: int = DEFAULT_RADIUS

    def push_input(self, entry: InputEntry) -> None:
        """Queue an input batch; the queue is a min-heap on sequence number."""
        heapq.heappush(self.input_queue, entry)


class PlayerSnapshot(NamedTuple):
    id: int
    position: Vec2
    radius: int


_HEADER = struct.Struct("<i")
_TIME_SYNC = struct.Struct("<ifQ")
_PLAYER_UPDATE = struct.Struct(f"<i4xQ{INPUT_BUFFER_SIZE}B6x")
_DOT_UPDATE = struct.Struct(f"<i{2 * DOT_COUNT}f")
_WORLD_UPDATE = struct.Struct(
    f"<ifi{MAX_PLAYER_COUNT}i{2 * MAX_PLAYER_COUNT}f{MAX_PLAYER_COUNT}I"
)


def _require(data: bytes, layout: struct.Struct, name: str) -> None:
    if len(data) < layout.size:
        raise ValueError(f"{name} needs {layout.size} bytes, got {len(data)}")


def _pairs(values: tuple[float, ...]) -> tuple[Vec2, ...]:
    return tuple(Vec2(x, y) for x, y in zip(values[0::2], values[1::2]))


@dataclass(frozen=True)
class HeaderPacket:
    """A packet carrying only its type (connect, disconnect)."""

    type: Msg

    def encode(self) -> bytes:
        return _HEADER.pack(self.type)


@dataclass(frozen=True)
class TimeSyncPacket:
    type: ClassVar[Msg] = Msg.TIME_SYNC
    start_time_nanos: int
    server_time: float = 0.0

    def encode(self) -> bytes:
        return _TIME_SYNC.pack(self.type, self.server_time, self.start_time_nanos)

    @classmethod
    def decode(cls, data: bytes) -> TimeSyncPacket:
        _require(data, _TIME_SYNC, "time sync packet")
        _, server_time, start = _TIME_SYNC.unpack_from(data)
        return cls(start_time_nanos=start, server_time=server_time)


@dataclass(frozen=True)
class PlayerUpdatePacket:
    type: ClassVar[Msg] = Msg.PLAYER_UPDATE
    entry: InputEntry

    def encode(self) -> bytes:
        return _PLAYER_UPDATE.pack(self.type, self.entry.sequence_num, *self.entry.inputs)

    @classmethod
    def decode(cls, data: bytes) -> PlayerUpdatePacket:
        _require(data, _PLAYER_UPDATE, "player update packet")
        _, sequence, *inputs = _PLAYER_UPDATE.unpack_from(data)
        return cls(InputEntry(sequence, tuple(inputs)))


@dataclass(frozen=True)
class DotUpdatePacket:
    type: ClassVar[Msg] = Msg.DOT_UPDATE
    positions: tuple[Vec2, ...]

    def __post_init__(self) -> None:
        positions = tuple(self.positions)
        if len(positions) != DOT_COUNT:
            raise ValueError(f"expected {DOT_COUNT} dots, got {len(positions)}")
        object.__setattr__(self, "positions", positions)

    def encode(self) -> bytes:
        coords = [c for dot in self.positions for c in (dot.x, dot.y)]
        return _DOT_UPDATE.pack(self.type, *coords)

    @classmethod
    def decode(cls, data: bytes) -> DotUpdatePacket:
        _require(data, _DOT_UPDATE, "dot update packet")
        _, *coords = _DOT_UPDATE.unpack_from(data)
        return cls(_pairs(tuple(coords)))


@dataclass(frozen=True)
class WorldUpdatePacket:
    type: ClassVar[Msg] = Msg.WORLD_UPDATE
    time: float
    players: tuple[PlayerSnapshot, ...] = ()

    def __post_init__(self) -> None:
        players = tuple(PlayerSnapshot(*p) for p in self.players)
        if len(players) > MAX_PLAYER_COUNT:
            raise ValueError(f"at most {MAX_PLAYER_COUNT} players fit in a world update")
        object.__setattr__(self, "players", players)

    def encode(self) -> bytes:
        padding = MAX_PLAYER_COUNT - len(self.players)
        ids = [p.id for p in self.players] + [0] * padding
        coords = [c for p in self.players for c in (p.position.x, p.position.y)]
        coords += [0.0] * (2 * padding)
        radii = [p.radius for p in self.players] + [0] * padding
        return _WORLD_UPDATE.pack(
            self.type, self.time, len(self.players), *ids, *coords, *radii
        )

    @classmethod
    def decode(cls, data: bytes) -> WorldUpdatePacket:
        _require(data, _WORLD_UPDATE, "world update packet")
        values = _WORLD_UPDATE.unpack_from(data)
        time, count = values[1], values[2]
        if not 0 <= count <= MAX_PLAYER_COUNT:
            raise ValueError(f"invalid player count {count}")
        rest = values[3:]
        ids = rest[:MAX_PLAYER_COUNT]
        positions = _pairs(rest[MAX_PLAYER_COUNT : 3 * MAX_PLAYER_COUNT])
        radii = rest[3 * MAX_PLAYER_COUNT :]
        players = tuple(
            PlayerSnapshot(ids[i], positions[i], radii[i]) for i in range(count)
        )
        return cls(time=time, players=players)


Packet = Union[
    HeaderPacket, TimeSyncPacket, PlayerUpdatePacket, DotUpdatePacket, WorldUpdatePacket
]

_DECODERS = {
    Msg.TIME_SYNC: TimeSyncPacket.decode,
    Msg.PLAYER_UPDATE: PlayerUpdatePacket.decode,
    Msg.DOT_UPDATE: DotUpdatePacket.decode,
    Msg.WORLD_UPDATE: WorldUpdatePacket.decode,
}


def decode_packet(data: bytes) -> Packet:
    """Decode a datagram into its packet object; raise ValueError if malformed."""
    _require(data, _HEADER, "packet header")
    (raw_type,) = _HEADER.unpack_from(data)
    try:
        msg = Msg(raw_type)
    except ValueError:
        raise ValueError(f"unknown message type {raw_type}") from None
    decoder = _DECODERS.get(msg)
    if decoder is None:
        return HeaderPacket(msg)
    return decoder(data)


def apply_input(position: Vec2, input_bits: int, radius: int) -> Vec2:
    """Return the position after one frame of the given input; bigger blobs move slower."""
    speed = 10.0 / max(radius, DEFAULT_RADIUS)
    x, y = position.x, position.y
    if input_bits & Button.UP:
        y -= speed
    if input_bits & Button.DOWN:
        y += speed
    if input_bits & Button.RIGHT:
        x += speed
    if input_bits & Button.LEFT:
        x -= speed
    return Vec2(x, y)


def lerp(start: float, end: float, amount: float) -> float:
    return start + amount * (end - start)