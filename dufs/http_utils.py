"""Helpers for streaming HTTP bodies."""

from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO

DEFAULT_CHUNK_SIZE = 4096


def iter_limited(
    reader: BinaryIO, limit: int, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[bytes]:
    """Yield chunks read from ``reader`` until ``limit`` bytes or EOF is reached."""
    remaining = limit
    while remaining > 0:
        chunk = reader.read(min(chunk_size, remaining))
        if not chunk:
            return
        chunk = chunk[:remaining]
        remaining -= len(chunk)
        yield bytes(chunk)