"""A small multiplayer blob-eating arena over UDP, with a server, a pygame client and the wire protocol between them."""

__version__ = "0.1.0"
__all__ = ["__version__"]