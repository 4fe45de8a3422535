from __future__ import annotations

import hashlib
from typing import BinaryIO, Optional


def checksum_stream(f: BinaryIO, chunk_size: int, limit: Optional[int] = None) -> bytes:
    """SHA-256 over a readable stream, ``chunk_size`` bytes at a time.

    When ``limit`` is given, at most that many bytes are consumed.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    h = hashlib.sha256()
    remaining = limit
    while remaining is None or remaining > 0:
        want = chunk_size if remaining is None else min(chunk_size, remaining)
        chunk = f.read(want)
        if not chunk:
            break
        h.update(chunk)
        if remaining is not None:
            remaining -= len(chunk)
    return h.digest()


def checksum_file(path: str, chunk_size: int) -> bytes:
    with open(path, "rb") as f:
        return checksum_stream(f, chunk_size)


def digests_equal(a: bytes, b: bytes) -> bool:
    # Length-checked byte comparison; no constant-time guarantee needed here.
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if x != y:
            return False
    return True
