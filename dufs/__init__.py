"""Configuration, listening sockets, access logging and plain HTML listings for a file server."""

__version__ = "0.45.0"