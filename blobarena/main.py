"""Command-line entry point: start a server or a client."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from blobarena.client import Client
from blobarena.server import Server

SERVER_PORT = 5050
PROGRAM = "blobarena"


def main(argv: Sequence[str] | None = None) -> int:
    """Run ``server`` or ``client <port>``; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(f"Usage: {PROGRAM} server|client [client_port]", file=sys.stderr)
        return 1

    if args[0] == "server":
        server = Server(SERVER_PORT)
        server.attach()
        server.run()
    elif args[0] == "client" and len(args) > 1:
        try:
            client_port = int(args[1])
        except ValueError:
            print("Invalid arguments. Use 'server' or 'client [port]'", file=sys.stderr)
            return 1
        client = Client(client_port, SERVER_PORT)
        client.attach()
        client.run()
    else:
        print("Invalid arguments. Use 'server' or 'client [port]'", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())