"""Process-wide shutdown flag raised by SIGINT or SIGTERM."""

from __future__ import annotations

import signal
import threading
from types import FrameType

_requested = threading.Event()


class Shutdown:
    """Installs signal handlers and reports whether shutdown was requested."""

    @staticmethod
    def signal_handler(signum: int, frame: FrameType | None) -> None:
        if signum in (signal.SIGINT, signal.SIGTERM):
            _requested.set()

    @staticmethod
    def setup() -> None:
        signal.signal(signal.SIGINT, Shutdown.signal_handler)
        signal.signal(signal.SIGTERM, Shutdown.signal_handler)

    @staticmethod
    def should_shutdown() -> bool:
        return _requested.is_set()

    @staticmethod
    def request() -> None:
        _requested.set()

    @staticmethod
    def reset() -> None:
        _requested.clear()