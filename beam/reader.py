from __future__ import annotations

from typing import BinaryIO, List, Optional

from .constants import DEFAULT_BUFFER_SIZE
from .errors import BeamError
from .extract import extract_records
from .models import FileRecord
from .records import decode_block


class BlockReader:
    """Opens a persisted block and decodes its metadata section.

    After ``open()`` the underlying file is positioned at the start of the
    payload, ready for ``extract_all``.
    """

    def __init__(self, path: str, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.path = path
        self.buffer_size = buffer_size
        self.f: Optional[BinaryIO] = None
        self.block_id: int = 0
        self.records: List[FileRecord] = []
        self._extracted = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.path, "rb")
        try:
            self.block_id, self.records = decode_block(self.f)
        except (BeamError, OSError, ValueError) as exc:
            # Ensure file handle is closed on failure to avoid leaks
            self.close()
            raise exc

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def list(self) -> List[FileRecord]:
        return self.records

    def extract_all(self, out_dir: str) -> List[str]:
        if self.f is None:
            raise RuntimeError("Block not open")
        if self._extracted:
            raise RuntimeError("Block payload already consumed")
        self._extracted = True
        return extract_records(self.f, out_dir, self.records, buffer_size=self.buffer_size)
