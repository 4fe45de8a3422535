from __future__ import annotations

from typing import Optional


class BeamError(Exception):
    """Base class for beam-specific errors."""


class MalformedBlockError(BeamError):
    """The block's structure cannot be decoded (bad counts, truncated fields)."""


class FileIntegrityError(BeamError):
    def __init__(self, path: str, expected: bytes, actual: bytes):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"file {path} checksum mismatch: expected {expected.hex()}, got {actual.hex()}")


class BlockIntegrityError(BeamError):
    def __init__(self, block_id: int, expected: bytes, actual: bytes, path: Optional[str] = None):
        self.block_id = block_id
        self.expected = expected
        self.actual = actual
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(
            f"block {block_id}{where} checksum mismatch: expected {expected.hex()}, got {actual.hex()}"
        )


# Packing
class CapacityError(BeamError):
    def __init__(self, path: str, size: int, capacity: int):
        self.path = path
        self.size = size
        self.capacity = capacity
        super().__init__(f"file {path} ({size} bytes) exceeds block capacity of {capacity} bytes")


class EmptySourceError(BeamError):
    pass


class SourceChangedError(BeamError):
    pass
