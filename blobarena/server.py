"""Authoritative game server: collects inputs, simulates blobs and broadcasts state."""

from __future__ import annotations

import heapq
import random
import socket
import sys
import threading
import time
from collections.abc import Iterator

from blobarena.shared import (
    DEFAULT_RADIUS,
    DOT_COUNT,
    MAX_PLAYER_COUNT,
    WORLD_HEIGHT,
    WORLD_WIDTH,
    ClientInfo,
    DotUpdatePacket,
    HeaderPacket,
    Msg,
    PlayerSnapshot,
    PlayerUpdatePacket,
    TimeSyncPacket,
    Vec2,
    WorldUpdatePacket,
    apply_input,
    decode_packet,
)
from blobarena.shutdown import Shutdown
from blobarena.udp_socket import Address, UdpSocket

SERVER_HOST = "127.0.0.1"
STEP_SECONDS = 0.1
RECEIVE_TIMEOUT = 0.01
HEARTBEAT_CUTOFF = 10
MAX_INPUTS_PER_FRAME = 10
MAX_QUEUE_SIZE = 100


def _address_key(address: Address) -> tuple[bytes, int]:
    return socket.inet_aton(address[0]), address[1]


class Server:
    """Runs the world simulation and keeps connected clients up to date."""

    def __init__(self, port: int, rng: random.Random | None = None) -> None:
        self.port = port
        self.rng = rng if rng is not None else random.Random()
        self.socket = UdpSocket()
        self.running = False
        self.clients: dict[Address, ClientInfo] = {}
        self.dots: list[Vec2] = [Vec2() for _ in range(DOT_COUNT)]
        self.time = 0.0
        self.start_ns = time.monotonic_ns()
        self._lock = threading.Lock()

    def attach(self) -> None:
        """Bind the socket and start receiving client packets."""
        try:
            self.socket.create(SERVER_HOST, self.port)
        except (OSError, ValueError) as exc:
            print(f"Couldn't create socket: {exc}", file=sys.stderr)
            return
        self.running = True
        try:
            self.socket.start_receive_thread(RECEIVE_TIMEOUT, self.receive_message)
        except RuntimeError as exc:
            print(f"Failed to start receive thread: {exc}", file=sys.stderr)

    def run(self) -> None:
        """Step the world at a fixed rate until stopped or signalled."""
        Shutdown.setup()
        self.create_dots()
        self.start_ns = time.monotonic_ns()
        while self.running and not Shutdown.should_shutdown():
            started = time.monotonic_ns()
            self.time = float((started - self.start_ns) // 1_000_000)
            self.step()
            remaining = STEP_SECONDS - (time.monotonic_ns() - started) / 1e9
            if remaining > 0:
                time.sleep(remaining)

        disconnect = HeaderPacket(Msg.DISCONNECT).encode()
        with self._lock:
            addresses = list(self.clients)
        for address in addresses:
            self._send(disconnect, address)
        self.socket.close()
        print("Shutting down")

    def receive_message(self, data: bytes, sender: Address) -> None:
        """Handle one datagram from ``sender``."""
        try:
            packet = decode_packet(data)
        except ValueError:
            return
        sender = (sender[0], sender[1])
        with self._lock:
            if sender not in self.clients and packet.type == Msg.CONNECT:
                self.clients[sender] = ClientInfo(id=sender[1])
                self._send(HeaderPacket(Msg.CONNECT).encode(), sender)
                self._send(DotUpdatePacket(tuple(self.dots)).encode(), sender)
                self._send(TimeSyncPacket(self.start_ns, self.time).encode(), sender)
                return

            client = self.clients.setdefault(sender, ClientInfo(id=sender[1]))
            client.last_check_in = 0
            if packet.type == Msg.DISCONNECT:
                del self.clients[sender]
                print("Client disconnected")
            elif isinstance(packet, PlayerUpdatePacket):
                client.push_input(packet.entry)

    def step(self) -> None:
        """Advance the simulation by one tick and broadcast the world state."""
        with self._lock:
            expired = []
            for address, client in self._ordered():
                previous = client.last_check_in
                client.last_check_in += 1
                if previous > HEARTBEAT_CUTOFF:
                    expired.append(address)
            disconnect = HeaderPacket(Msg.DISCONNECT).encode()
            for address in expired:
                self._send(disconnect, address)
                del self.clients[address]
                print("Client disconnected")

            snapshots = []
            for _, client in self._ordered():
                self._process_inputs(client)
                snapshots.append(PlayerSnapshot(client.id, client.position, client.radius))
            packet = WorldUpdatePacket(self.time, tuple(snapshots[:MAX_PLAYER_COUNT]))

            self.check_player_collisions()
            self.check_dot_collisions()
            self.broadcast(packet.encode())

    def broadcast(self, data: bytes) -> None:
        """Send ``data`` to every connected client."""
        for address in list(self.clients):
            self._send(data, address)

    def create_dots(self) -> None:
        self.dots = [self.random_position() for _ in range(DOT_COUNT)]

    def random_position(self) -> Vec2:
        low, high = -(WORLD_WIDTH // 2), WORLD_HEIGHT // 2
        return Vec2(float(self.rng.randint(low, high)), float(self.rng.randint(low, high)))

    def check_player_collisions(self) -> None:
        """Let a larger blob swallow any smaller blob within its radius."""
        players = [client for _, client in self._ordered()]
        for eater in players:
            for prey in players:
                if eater.id == prey.id:
                    continue
                if (
                    eater.position.distance(prey.position) < eater.radius
                    and eater.radius > prey.radius
                ):
                    eater.radius += prey.radius
                    prey.radius = DEFAULT_RADIUS
                    prey.position = self.random_position()

    def check_dot_collisions(self) -> None:
        """Grow players that touch dots, respawn those dots and announce them."""
        changed = False
        for _, player in self._ordered():
            ate = True
            while ate:
                ate = False
                for index, dot in enumerate(self.dots):
                    if player.position.distance(dot) <= player.radius:
                        player.radius += 1
                        self.dots[index] = self.random_position()
                        changed = ate = True
                        break
        if changed:
            self.broadcast(DotUpdatePacket(tuple(self.dots)).encode())

    def _ordered(self) -> Iterator[tuple[Address, ClientInfo]]:
        return iter(sorted(self.clients.items(), key=lambda item: _address_key(item[0])))

    @staticmethod
    def _process_inputs(client: ClientInfo) -> None:
        queue = client.input_queue
        processed = 0
        while queue and processed < MAX_INPUTS_PER_FRAME:
            entry = heapq.heappop(queue)
            if entry.sequence_num <= client.last_processed_sequence:
                continue
            for bits in entry.inputs:
                client.position = apply_input(client.position, bits, client.radius)
            client.last_processed_sequence = entry.sequence_num
            processed += 1
        while len(queue) > MAX_QUEUE_SIZE:
            heapq.heappop(queue)

    def _send(self, data: bytes, dest: Address) -> None:
        try:
            self.socket.send_to(data, dest)
        except (OSError, RuntimeError) as exc:
            print(f"Failed to send data: {exc}", file=sys.stderr)