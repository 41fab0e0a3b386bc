import struct

import pytest

from blobarena.shared import (
    DOT_COUNT,
    INPUT_BUFFER_SIZE,
    MAX_PLAYER_COUNT,
    Button,
    ClientInfo,
    DotUpdatePacket,
    HeaderPacket,
    InputEntry,
    Msg,
    Player,
    PlayerSnapshot,
    PlayerUpdatePacket,
    TimeSyncPacket,
    Vec2,
    WorldUpdatePacket,
    apply_input,
    decode_packet,
    lerp,
)


def test_vec2_distance():
    assert Vec2(0.0, 0.0).distance(Vec2(3.0, 4.0)) == 5.0
    a, b = Vec2(1.5, -2.0), Vec2(-7.0, 3.25)
    assert a.distance(b) == b.distance(a)


def test_apply_input_without_bits_keeps_position():
    start = Vec2(12.0, -4.0)
    assert apply_input(start, 0, 10) == start


def test_apply_input_directions():
    start = Vec2(0.0, 0.0)
    assert apply_input(start, Button.UP, 10).y < 0
    assert apply_input(start, Button.DOWN, 10).y > 0
    assert apply_input(start, Button.RIGHT, 10).x > 0
    assert apply_input(start, Button.LEFT, 10).x < 0
    assert apply_input(start, Button.SPACE, 10) == start


def test_opposite_inputs_cancel():
    start = Vec2(5.0, 5.0)
    both = Button.UP | Button.DOWN | Button.LEFT | Button.RIGHT
    assert apply_input(start, both, 10) == start
    moved = apply_input(apply_input(start, Button.UP, 10), Button.DOWN, 10)
    assert moved == start


def test_speed_scales_with_radius():
    start = Vec2(0.0, 0.0)
    small = apply_input(start, Button.RIGHT, 10).x
    tiny = apply_input(start, Button.RIGHT, 3).x
    big = apply_input(start, Button.RIGHT, 20).x
    assert tiny == small
    assert big * 2 == pytest.approx(small)


def test_lerp():
    assert lerp(2.0, 6.0, 0.5) == 4.0
    assert lerp(-3.0, 9.0, 0.0) == -3.0
    assert lerp(-3.0, 9.0, 1.0) == 9.0


def test_header_packet_wire_bytes():
    encoded = HeaderPacket(Msg.DISCONNECT).encode()
    assert encoded == b"\x01\x00\x00\x00"
    assert decode_packet(encoded) == HeaderPacket(Msg.DISCONNECT)


def test_time_sync_round_trip():
    packet = TimeSyncPacket(start_time_nanos=1_234_567_890_123, server_time=2.5)
    assert decode_packet(packet.encode()) == packet


def test_player_update_round_trip():
    inputs = tuple(range(INPUT_BUFFER_SIZE))
    packet = PlayerUpdatePacket(InputEntry(42, inputs))
    decoded = decode_packet(packet.encode())
    assert decoded == packet
    assert decoded.entry.inputs == inputs


def test_dot_update_round_trip():
    dots = tuple(Vec2(float(i), float(-i) / 2) for i in range(DOT_COUNT))
    packet = DotUpdatePacket(dots)
    assert decode_packet(packet.encode()).positions == dots


def test_world_update_round_trip():
    players = (
        PlayerSnapshot(5051, Vec2(1.5, -2.25), 12),
        PlayerSnapshot(5052, Vec2(-100.0, 40.0), 10),
    )
    packet = WorldUpdatePacket(time=300.0, players=players)
    decoded = decode_packet(packet.encode())
    assert decoded == packet
    assert decoded.players[0].id == 5051


def test_world_update_rejects_too_many_players():
    players = [PlayerSnapshot(i, Vec2(), 10) for i in range(MAX_PLAYER_COUNT + 1)]
    with pytest.raises(ValueError):
        WorldUpdatePacket(time=0.0, players=players)


def test_dot_update_requires_exact_count():
    with pytest.raises(ValueError):
        DotUpdatePacket((Vec2(),) * (DOT_COUNT - 1))


def test_decode_truncated_packet_rejected():
    encoded = PlayerUpdatePacket(InputEntry(1)).encode()
    with pytest.raises(ValueError):
        decode_packet(encoded[:-1])
    with pytest.raises(ValueError):
        decode_packet(b"\x00")


def test_decode_unknown_type_rejected():
    with pytest.raises(ValueError):
        decode_packet(struct.pack("<i", 99))


def test_input_entry_validation_and_ordering():
    with pytest.raises(ValueError):
        InputEntry(1, (0,) * (INPUT_BUFFER_SIZE + 1))
    with pytest.raises(ValueError):
        InputEntry(1, (256,) + (0,) * (INPUT_BUFFER_SIZE - 1))
    entries = [InputEntry(9), InputEntry(2), InputEntry(5)]
    assert [e.sequence_num for e in sorted(entries)] == [2, 5, 9]


def test_client_info_queue_is_min_heap():
    info = ClientInfo(id=5051)
    for sequence in (30, 10, 20):
        info.push_input(InputEntry(sequence))
    assert info.input_queue[0].sequence_num == 10
    assert len(info.input_queue) == 3


def test_player_defaults():
    player = Player(id=7)
    assert player.radius == 10
    assert player.positions.max_size() == 10
    assert player.positions.empty()