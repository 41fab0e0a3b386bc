import pygame
import pytest

from blobarena.client import Client, encode_input, interpolated_position
from blobarena.shared import (
    DEFAULT_RADIUS,
    DOT_COUNT,
    WORLD_HEIGHT,
    WORLD_WIDTH,
    Button,
    DotUpdatePacket,
    HeaderPacket,
    Msg,
    Player,
    PlayerSnapshot,
    Position,
    TimeSyncPacket,
    Vec2,
    WorldUpdatePacket,
    apply_input,
)

SERVER = ("127.0.0.1", 5050)


@pytest.fixture
def client():
    return Client(7000, 5050)


def test_encode_input_single_and_all():
    assert encode_input(True, False, False, False, False) == Button.UP
    assert encode_input(False, False, False, True, False) == Button.LEFT
    assert encode_input(False, False, False, False, False) == 0
    everything = Button.UP | Button.DOWN | Button.RIGHT | Button.LEFT | Button.SPACE
    assert encode_input(True, True, True, True, True) == everything


def test_interpolated_position_empty():
    assert interpolated_position(Player(), 50.0) == Vec2(0.0, 0.0)


def test_interpolated_position_endpoints():
    player = Player()
    player.positions.push(Position(Vec2(0.0, 0.0), 0.0))
    player.positions.push(Position(Vec2(10.0, 20.0), 100.0))
    assert interpolated_position(player, 0.0) == Vec2(0.0, 0.0)
    assert interpolated_position(player, 100.0) == Vec2(10.0, 20.0)
    middle = interpolated_position(player, 50.0)
    assert 0.0 < middle.x < 10.0 and 0.0 < middle.y < 20.0


def test_interpolated_position_outside_history_uses_latest():
    player = Player()
    player.positions.push(Position(Vec2(1.0, 2.0), 0.0))
    player.positions.push(Position(Vec2(3.0, 4.0), 100.0))
    assert interpolated_position(player, 500.0) == Vec2(3.0, 4.0)


def test_ignores_packets_from_other_senders(client):
    dots = tuple(Vec2(float(i), float(i)) for i in range(DOT_COUNT))
    data = DotUpdatePacket(dots).encode()
    client.receive_message(data, ("127.0.0.1", 9999))
    assert client.dots == [Vec2()] * DOT_COUNT
    client.receive_message(data, SERVER)
    assert client.dots == list(dots)


def test_disconnect_stops_client(client):
    client.running = True
    client.receive_message(HeaderPacket(Msg.DISCONNECT).encode(), SERVER)
    assert client.running is False


def test_time_sync_sets_start(client):
    client.receive_message(TimeSyncPacket(123456789).encode(), SERVER)
    assert client.start_ns == 123456789


def test_world_update_records_other_player(client):
    packet = WorldUpdatePacket(42.0, (PlayerSnapshot(8000, Vec2(5.0, 6.0), 15),))
    client.receive_message(packet.encode(), SERVER)
    player = client.players[8000]
    assert player.radius == 15
    assert player.positions.back() == Position(Vec2(5.0, 6.0), 42.0)


def test_predict_moves_and_counts(client):
    pos = client.predict(int(Button.RIGHT))
    assert pos.x > 0 and pos.y == 0
    assert client.position == pos
    assert client.sequence_number == 1
    assert client.last_sent == 0
    for _ in range(10):
        client.predict(0)
    assert client.last_sent == 10


def test_world_update_reconciles_self(client):
    for _ in range(3):
        client.predict(int(Button.UP))
    packet = WorldUpdatePacket(0.0, (PlayerSnapshot(7000, Vec2(), DEFAULT_RADIUS),))
    client.receive_message(packet.encode(), SERVER)
    once = apply_input(Vec2(), Button.UP, DEFAULT_RADIUS)
    assert client.position == apply_input(once, Button.UP, DEFAULT_RADIUS)
    assert len(client.predicted) == 0
    assert 7000 not in client.players


def test_render_draws_self_and_dots(client):
    client.dots = [Vec2(100.0, 100.0)] * DOT_COUNT
    surface = pygame.Surface((WORLD_WIDTH, WORLD_HEIGHT))
    client.render(surface)
    assert tuple(surface.get_at((WORLD_WIDTH // 2, WORLD_HEIGHT // 2)))[:3] == (230, 41, 55)
    dot_pixel = (WORLD_WIDTH // 2 + 100, WORLD_HEIGHT // 2 + 100)
    assert tuple(surface.get_at(dot_pixel))[:3] == (0, 228, 48)