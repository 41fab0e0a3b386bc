"""UDP socket with a background receive thread."""

from __future__ import annotations

import socket
import threading
from collections.abc import Callable

MAX_PACKET_SIZE = 1024

Address = tuple[str, int]
ReceiveCallback = Callable[[bytes, Address], None]


class UdpSocket:
    """A bound IPv4 datagram socket that hands incoming packets to a callback."""

    def __init__(self) -> None:
        self._sock: socket.socket | None = None
        self._receiving = threading.Event()
        self._thread: threading.Thread | None = None
        self._callback: ReceiveCallback | None = None
        self.bound_address: Address | None = None

    def create(self, ip: str | None, port: int) -> None:
        """Open and bind the socket; raise OSError if binding fails."""
        if self._sock is not None:
            self.close()
        address = self.create_address(ip, port)
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind(address)
        except OSError:
            sock.close()
            raise
        self._sock = sock
        self.bound_address = sock.getsockname()

    @staticmethod
    def create_address(ip: str | None, port: int) -> Address:
        """Validate an IPv4 address and port; None or 0.0.0.0 means any interface."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"Invalid port: {port}")
        if ip is None or ip == "0.0.0.0":
            return ("0.0.0.0", port)
        try:
            host = socket.inet_ntoa(socket.inet_aton(ip))
        except OSError:
            raise ValueError(f"Invalid IP address: {ip}") from None
        return (host, port)

    def start_receive_thread(self, timeout: float, callback: ReceiveCallback) -> None:
        """Start delivering received datagrams to ``callback(data, sender)``.

        ``timeout`` is the receive poll interval in seconds.
        """
        if self._sock is None:
            raise RuntimeError("Socket not created, call create() first")
        if self._receiving.is_set():
            raise RuntimeError("Receive thread already running")
        self._callback = callback
        self._sock.settimeout(timeout)
        self._receiving.set()
        self._thread = threading.Thread(
            target=self._receive, args=(self._sock,), name="udp-receive", daemon=True
        )
        self._thread.start()

    def _receive(self, sock: socket.socket) -> None:
        callback = self._callback
        while self._receiving.is_set():
            try:
                data, sender = sock.recvfrom(MAX_PACKET_SIZE)
            except socket.timeout:
                continue
            except OSError:
                break
            if data and callback is not None:
                callback(data, sender)

    def send_to(self, data: bytes, dest: Address) -> int:
        """Send a datagram and return the number of bytes sent."""
        if self._sock is None:
            raise RuntimeError("Socket not created, call create() first")
        return self._sock.sendto(data, dest)

    def close(self) -> None:
        """Stop the receive thread and release the socket."""
        self._receiving.clear()
        sock = self._sock
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        if sock is not None:
            sock.close()
            self._sock = None

    def __enter__(self) -> UdpSocket:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()