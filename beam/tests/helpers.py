from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Dict, Tuple

from beam.records import decode_block


# path -> (mode, data)
SAMPLE_FILES: Dict[str, Tuple[int, bytes]] = {
    "docs/a.txt": (0o644, b"hello world\n" * 50),
    "docs/notes/b.bin": (0o600, bytes(range(256)) * 12),
    "docs/notes/empty.txt": (0o640, b""),
    "notes.md": (0o755, b"# Title\nSome content\n"),
    "z/deep/er/c.dat": (0o444, b"\x00\x01" * 700),
}

SAMPLE_MTIME = int(time.time()) - 86400


def build_sample_tree(root: Path) -> Dict[str, Tuple[int, bytes]]:
    for rel, (mode, data) in SAMPLE_FILES.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        os.chmod(p, mode)
        # Fractional part is dropped by the block format.
        os.utime(p, (SAMPLE_MTIME + 0.5, SAMPLE_MTIME + 0.5))
    return SAMPLE_FILES


def flip_byte(path: Path, offset: int, xor_val: int = 0xFF) -> None:
    if offset < 0:
        raise ValueError("Offset must be non-negative")
    with open(path, "r+b") as f:
        f.seek(offset)
        b = f.read(1)
        if not b:
            raise ValueError("Offset beyond end of file")
        f.seek(offset)
        f.write(bytes([b[0] ^ (xor_val & 0xFF)]))


def payload_start(block_path: Path) -> int:
    with open(block_path, "rb") as f:
        decode_block(f)
        return f.tell()
