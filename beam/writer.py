from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, List

from .constants import DEFAULT_BUFFER_SIZE, block_filename
from .errors import SourceChangedError
from .hashutil import checksum_file
from .models import Block, FileRecord
from .records import pack_block_header, pack_file_record


class _HashingWriter:
    """Writes through to ``f`` while hashing everything written."""

    def __init__(self, f: BinaryIO):
        self.f = f
        self.h = hashlib.sha256()

    def write(self, data: bytes) -> None:
        self.f.write(data)
        self.h.update(data)

    def digest(self) -> bytes:
        return self.h.digest()


def build_records(block: Block, buffer_size: int = DEFAULT_BUFFER_SIZE) -> List[FileRecord]:
    """First pass: hash every source file and build its metadata record."""
    records = []
    for entry in block.entries:
        d = entry.descriptor
        records.append(
            FileRecord(
                path=d.path,
                size=d.size,
                mtime=d.mtime_sec,
                offset=entry.offset,
                block_id=block.block_id,
                mode=d.mode,
                checksum=checksum_file(d.source, buffer_size),
            )
        )
    return records


def _copy_payload(out: _HashingWriter, source: str, expected: int, buffer_size: int) -> None:
    copied = 0
    with open(source, "rb") as src:
        while True:
            chunk = src.read(buffer_size)
            if not chunk:
                break
            copied += len(chunk)
            if copied > expected:
                break
            out.write(chunk)
    if copied != expected:
        raise SourceChangedError(f"Source changed size while packing: {source} (expected {expected} bytes)")


def encode_block(block: Block, f: BinaryIO, *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> List[FileRecord]:
    """Serialize ``block`` to ``f`` in the canonical layout.

    Each source file is read twice: once to compute its digest for the
    metadata section, and again to copy its bytes into the payload section.
    The footer is the SHA-256 of every byte written before it.

    Returns:
        The records written to the metadata section.
    """
    block.seal()
    records = build_records(block, buffer_size)
    out = _HashingWriter(f)
    out.write(pack_block_header(block.block_id, len(records)))
    for rec in records:
        out.write(pack_file_record(rec))
    for entry in block.entries:
        _copy_payload(out, entry.descriptor.source, entry.descriptor.size, buffer_size)
    f.write(out.digest())
    return records


def write_block(block: Block, out_dir: str, *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> Path:
    path = Path(out_dir) / block_filename(block.block_id)
    with open(path, "wb") as f:
        encode_block(block, f, buffer_size=buffer_size)
    return path
