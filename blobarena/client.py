"""Game client: predicts its own movement, interpolates others and draws the arena."""

from __future__ import annotations

import os
import sys
import threading
import time
from typing import NamedTuple

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame  # noqa: E402

from blobarena.circular_buffer import CircularBuffer  # noqa: E402
from blobarena.shared import (  # noqa: E402
    DEFAULT_RADIUS,
    DOT_COUNT,
    DOT_RADIUS,
    INPUT_BUFFER_SIZE,
    WORLD_HEIGHT,
    WORLD_WIDTH,
    Button,
    DotUpdatePacket,
    HeaderPacket,
    InputEntry,
    Msg,
    Player,
    PlayerSnapshot,
    PlayerUpdatePacket,
    Position,
    TimeSyncPacket,
    Vec2,
    WorldUpdatePacket,
    apply_input,
    decode_packet,
    lerp,
)
from blobarena.udp_socket import Address, UdpSocket  # noqa: E402

CLIENT_HOST = "127.0.0.1"
RECEIVE_TIMEOUT = 0.01
PREDICTION_HISTORY = 20
INTERPOLATION_DELAY_MS = 200
TARGET_FPS = 100
GRID_SPACING = 50

BACKGROUND = (245, 245, 245)
GRID_COLOR = (200, 200, 200)
GREEN = (0, 228, 48)
RED = (230, 41, 55)
BLUE = (0, 121, 241)


class _PredictedInput(NamedTuple):
    sequence_num: int
    input_bits: int


def encode_input(up: bool, down: bool, right: bool, left: bool, space: bool) -> int:
    """Pack the pressed keys into an input byte."""
    bits = Button(0)
    for pressed, button in (
        (up, Button.UP),
        (down, Button.DOWN),
        (right, Button.RIGHT),
        (left, Button.LEFT),
        (space, Button.SPACE),
    ):
        if pressed:
            bits |= button
    return int(bits)


def interpolated_position(player: Player, render_time: float) -> Vec2:
    """Position of ``player`` at ``render_time``, between the bracketing snapshots."""
    history = list(player.positions)
    for before, after in zip(history, history[1:]):
        if before.time <= render_time <= after.time:
            span = after.time - before.time
            t = (render_time - before.time) / span if span else 0.0
            return Vec2(
                lerp(before.position.x, after.position.x, t),
                lerp(before.position.y, after.position.y, t),
            )
    if not history:
        return Vec2(0.0, 0.0)
    print(f"time: {render_time}, latest: {history[-1].time}, last: {history[0].time}")
    return history[-1].position


class Client:
    """A player connected to the server on localhost."""

    def __init__(self, port: int, server_port: int) -> None:
        self.port = port
        self.server_address: Address = UdpSocket.create_address(CLIENT_HOST, server_port)
        self.socket = UdpSocket()
        self.position = Vec2()
        self.radius = DEFAULT_RADIUS
        self.last_sent = 0
        self.predicted: CircularBuffer[_PredictedInput] = CircularBuffer(PREDICTION_HISTORY)
        self.running = False
        self.server_time = 0.0
        self.start_ns = 0
        self.sequence_number = 0
        self.dots: list[Vec2] = [Vec2() for _ in range(DOT_COUNT)]
        self.players: dict[int, Player] = {}
        self._pending_inputs = [0] * INPUT_BUFFER_SIZE
        self._lock = threading.Lock()

    def attach(self) -> None:
        """Bind the socket, start receiving and announce ourselves to the server."""
        try:
            self.socket.create(CLIENT_HOST, self.port)
        except (OSError, ValueError) as exc:
            print(f"Couldn't create socket: {exc}", file=sys.stderr)
            return
        try:
            self.socket.start_receive_thread(RECEIVE_TIMEOUT, self.receive_message)
        except RuntimeError as exc:
            print(f"Failed to start receive thread: {exc}", file=sys.stderr)
            return
        self.running = True
        self._send(HeaderPacket(Msg.CONNECT).encode())

    def run(self) -> None:
        """Open the window and play until it is closed or the server disconnects."""
        if not self.running:
            return
        self._send(HeaderPacket(Msg.CONNECT).encode())
        pygame.init()
        try:
            screen = pygame.display.set_mode((WORLD_WIDTH, WORLD_HEIGHT))
            pygame.display.set_caption("Multiplayer")
            clock = pygame.time.Clock()
            while self.running:
                if any(
                    event.type == pygame.QUIT
                    or (event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE)
                    for event in pygame.event.get()
                ):
                    break
                self.server_time = float((time.monotonic_ns() - self.start_ns) // 1_000_000)
                self.render(screen)
                pygame.display.flip()
                keys = pygame.key.get_pressed()
                self.predict(
                    encode_input(
                        keys[pygame.K_UP],
                        keys[pygame.K_DOWN],
                        keys[pygame.K_RIGHT],
                        keys[pygame.K_LEFT],
                        keys[pygame.K_SPACE],
                    )
                )
                clock.tick(TARGET_FPS)
        finally:
            pygame.quit()
        self._send(HeaderPacket(Msg.DISCONNECT).encode())
        self.socket.close()

    def receive_message(self, data: bytes, sender: Address) -> None:
        """Handle one datagram; packets not from the server are ignored."""
        if (sender[0], sender[1]) != self.server_address:
            return
        try:
            packet = decode_packet(data)
        except ValueError:
            return

        if isinstance(packet, TimeSyncPacket):
            self.start_ns = packet.start_time_nanos
            print(f"Time sync - Server time: {packet.server_time}ms")
        elif packet.type == Msg.DISCONNECT:
            self.running = False
        elif isinstance(packet, WorldUpdatePacket):
            with self._lock:
                for snapshot in packet.players:
                    if snapshot.id == self.port:
                        self._reconcile(snapshot)
                        continue
                    player = self.players.setdefault(snapshot.id, Player(id=snapshot.id))
                    player.positions.push(Position(snapshot.position, packet.time))
                    player.radius = snapshot.radius
        elif isinstance(packet, DotUpdatePacket):
            with self._lock:
                self.dots = list(packet.positions)

    def predict(self, input_bits: int) -> Vec2:
        """Apply one frame of input locally, batch it for the server and return the new position."""
        slot = self.sequence_number % INPUT_BUFFER_SIZE
        self._pending_inputs[slot] = input_bits
        with self._lock:
            self.predicted.push(_PredictedInput(self.sequence_number, input_bits))
            self.position = apply_input(self.position, input_bits, self.radius)
            position = self.position
        if slot == 0:
            entry = InputEntry(self.sequence_number, tuple(self._pending_inputs))
            self._send(PlayerUpdatePacket(entry).encode())
            self.last_sent = self.sequence_number
        self.sequence_number += 1
        return position

    def render(self, surface: pygame.Surface) -> None:
        """Draw the grid, dots and players centred on the world origin."""
        offset_x, offset_y = WORLD_WIDTH / 2, WORLD_HEIGHT / 2
        width, height = surface.get_size()
        surface.fill(BACKGROUND)
        for x in range(int(offset_x) % GRID_SPACING, width, GRID_SPACING):
            pygame.draw.line(surface, GRID_COLOR, (x, 0), (x, height))
        for y in range(int(offset_y) % GRID_SPACING, height, GRID_SPACING):
            pygame.draw.line(surface, GRID_COLOR, (0, y), (width, y))

        def screen(pos: Vec2) -> tuple[float, float]:
            return pos.x + offset_x, pos.y + offset_y

        render_time = self.server_time - INTERPOLATION_DELAY_MS
        with self._lock:
            for dot in self.dots:
                pygame.draw.circle(surface, GREEN, screen(dot), DOT_RADIUS)
            pygame.draw.circle(surface, RED, screen(self.position), self.radius)
            for player_id, player in sorted(self.players.items()):
                position = interpolated_position(player, render_time)
                color = RED if player_id == self.port else BLUE
                pygame.draw.circle(surface, color, screen(position), player.radius)

    def _reconcile(self, snapshot: PlayerSnapshot) -> None:
        predicted_position = self.position
        self.position = snapshot.position
        self.radius = snapshot.radius
        while not self.predicted.empty():
            entry = self.predicted.pop()
            if entry.sequence_num > self.last_sent:
                self.position = apply_input(self.position, entry.input_bits, self.radius)
        if predicted_position != self.position:
            print("Misprediction")

    def _send(self, data: bytes) -> None:
        try:
            self.socket.send_to(data, self.server_address)
        except (OSError, RuntimeError) as exc:
            print(f"Failed to send data: {exc}", file=sys.stderr)