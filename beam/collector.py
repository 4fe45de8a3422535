from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from typing import Iterator, List

from .models import FileDescriptor


def _walk_lexical(root: str) -> Iterator[os.DirEntry]:
    """Yield regular files under ``root`` depth-first in lexical name order.

    Directories and files are interleaved by name, so ``a/x`` comes before
    ``b`` and ``b`` before ``c/y``. A symlink to a regular file is
    collected and read through. Any other symlink, including one to a
    directory, is skipped with a notice on stderr.
    """
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_lexical(entry.path)
        elif entry.is_file():
            yield entry
        elif entry.is_symlink():
            print(f"Skipping symlink {entry.path}, target is not a regular file", file=sys.stderr)


def collect_files(source_dir: str, capacity: int) -> List[FileDescriptor]:
    """Describe every regular file under ``source_dir`` that fits in a block.

    Stored paths are relative to ``source_dir`` with forward slashes. Files
    larger than ``capacity`` are skipped with a notice on stderr; this is not
    an error.
    """
    root = os.fspath(source_dir)
    if not os.path.isdir(root):
        raise NotADirectoryError(f"Source is not a directory: {root}")
    out: List[FileDescriptor] = []
    for entry in _walk_lexical(root):
        st = entry.stat()
        if st.st_size > capacity:
            print(f"Skipping file {entry.path}, size exceeds block size", file=sys.stderr)
            continue
        rel = Path(os.path.relpath(entry.path, root)).as_posix()
        out.append(
            FileDescriptor(
                path=rel,
                source=entry.path,
                size=st.st_size,
                mtime_ns=st.st_mtime_ns,
                mode=stat.S_IMODE(st.st_mode),
            )
        )
    return out
