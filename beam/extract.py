from __future__ import annotations

import hashlib
import os
from typing import BinaryIO, Iterable, List

from .constants import DEFAULT_BUFFER_SIZE
from .errors import FileIntegrityError, MalformedBlockError
from .hashutil import digests_equal
from .models import FileRecord


def extract_file(f: BinaryIO, out_dir: str, record: FileRecord, *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> str:
    """Copy ``record.size`` bytes from the current position of ``f`` to disk.

    The destination is ``out_dir`` joined with the stored path, used as-is.
    The digest of the bytes written is compared with ``record.checksum``; on
    mismatch the partially verified file is left in place and
    FileIntegrityError is raised. On success the modification time is restored.
    """
    dst = os.path.join(out_dir, record.path)
    os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
    mode = record.mode & 0o7777
    h = hashlib.sha256()
    remaining = record.size
    fd = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as wf:
        while remaining > 0:
            chunk = f.read(min(buffer_size, remaining))
            if not chunk:
                raise MalformedBlockError(
                    f"Unexpected EOF in payload of {record.path} ({remaining} of {record.size} bytes missing)"
                )
            wf.write(chunk)
            h.update(chunk)
            remaining -= len(chunk)
    # open() honours the umask; apply the stored bits exactly.
    os.chmod(dst, mode)
    actual = h.digest()
    if not digests_equal(record.checksum, actual):
        raise FileIntegrityError(record.path, record.checksum, actual)
    os.utime(dst, (record.mtime, record.mtime))
    return dst


def extract_records(
    f: BinaryIO,
    out_dir: str,
    records: Iterable[FileRecord],
    *,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> List[str]:
    """Extract records in order from a stream positioned at the payload start.

    Records must be in encoded order: the stream cursor is advanced by each
    file and never seeks. The first failure aborts the remaining records.
    """
    written = []
    for rec in records:
        written.append(extract_file(f, out_dir, rec, buffer_size=buffer_size))
    return written
