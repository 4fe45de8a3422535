from __future__ import annotations

import io
import os
from typing import BinaryIO, List, Tuple

from .constants import (
    BLOCK_HDR_STRUCT,
    MIN_RECORD_SIZE,
    PATH_LEN_STRUCT,
    RECORD_TAIL_STRUCT,
)
from .errors import MalformedBlockError
from .models import FileRecord


def _stream_name(f: BinaryIO) -> str:
    return str(getattr(f, "name", "<stream>"))


def read_exact(f: BinaryIO, n: int, what: str = "field") -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise MalformedBlockError(f"Unexpected EOF reading {what} in {_stream_name(f)}")
    return b


def remaining_bytes(f: BinaryIO) -> int:
    pos = f.tell()
    end = f.seek(0, io.SEEK_END)
    f.seek(pos)
    return end - pos


def pack_block_header(block_id: int, file_count: int) -> bytes:
    return BLOCK_HDR_STRUCT.pack(block_id, file_count)


def pack_file_record(rec: FileRecord) -> bytes:
    path_bytes = os.fsencode(rec.path)
    return (
        PATH_LEN_STRUCT.pack(len(path_bytes))
        + path_bytes
        + RECORD_TAIL_STRUCT.pack(rec.size, rec.mtime, rec.offset, rec.mode, rec.checksum)
    )


def read_block_header(f: BinaryIO) -> Tuple[int, int]:
    raw = read_exact(f, BLOCK_HDR_STRUCT.size, "block header")
    block_id, file_count = BLOCK_HDR_STRUCT.unpack(raw)
    if file_count < 0:
        raise MalformedBlockError(f"Negative file count {file_count} in {_stream_name(f)}")
    if file_count * MIN_RECORD_SIZE > remaining_bytes(f):
        raise MalformedBlockError(
            f"File count {file_count} cannot fit in remaining block data of {_stream_name(f)}"
        )
    return block_id, file_count


def read_file_record(f: BinaryIO, block_id: int) -> FileRecord:
    (path_len,) = PATH_LEN_STRUCT.unpack(read_exact(f, PATH_LEN_STRUCT.size, "path length"))
    if path_len < 0 or path_len > remaining_bytes(f):
        raise MalformedBlockError(f"Invalid path length {path_len} in {_stream_name(f)}")
    path = os.fsdecode(read_exact(f, path_len, "path"))
    size, mtime, offset, mode, checksum = RECORD_TAIL_STRUCT.unpack(
        read_exact(f, RECORD_TAIL_STRUCT.size, "file record")
    )
    if size < 0 or offset < 0:
        raise MalformedBlockError(f"Negative size or offset for {path!r} in {_stream_name(f)}")
    return FileRecord(
        path=path,
        size=size,
        mtime=mtime,
        offset=offset,
        block_id=block_id,
        mode=mode,
        checksum=checksum,
    )


def decode_block(f: BinaryIO) -> Tuple[int, List[FileRecord]]:
    """Read the block header and every file record.

    The stream is left positioned at the first payload byte; the payload and
    footer are not consumed.

    Returns:
        (block_id, records) in encoded order.
    """
    block_id, file_count = read_block_header(f)
    records = [read_file_record(f, block_id) for _ in range(file_count)]
    return block_id, records
