from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .constants import DIGEST_SIZE


@dataclass
class FileDescriptor:
    path: str  # archive path stored in the block
    source: str  # filesystem path the bytes are read from
    size: int
    mtime_ns: int
    mode: int

    @property
    def mtime_sec(self) -> int:
        return self.mtime_ns // 1_000_000_000


@dataclass
class FileRecord:
    path: str
    size: int
    mtime: int
    offset: int
    block_id: int
    mode: int
    checksum: bytes

    def __post_init__(self):
        if len(self.checksum) != DIGEST_SIZE:
            raise ValueError(f"checksum must be {DIGEST_SIZE} bytes, got {len(self.checksum)}")


@dataclass
class BlockEntry:
    descriptor: FileDescriptor
    offset: int


@dataclass
class Block:
    """A container being filled by the packer.

    Entries are appended while the block is open; once sealed the block is
    handed to the encoder and must not change.
    """

    block_id: int
    entries: List[BlockEntry] = field(default_factory=list)
    size: int = 0
    sealed: bool = False

    def fits(self, size: int, capacity: int) -> bool:
        return self.size + size <= capacity

    def append(self, descriptor: FileDescriptor) -> BlockEntry:
        if self.sealed:
            raise RuntimeError(f"Block {self.block_id} is sealed")
        entry = BlockEntry(descriptor=descriptor, offset=self.size)
        self.entries.append(entry)
        self.size += descriptor.size
        return entry

    def seal(self) -> "Block":
        self.sealed = True
        return self
