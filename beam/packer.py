from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .blocks import pack as pack_blocks
from .collector import collect_files
from .constants import BLOCK_EXT
from .errors import EmptySourceError
from .models import Block, FileRecord
from .options import PackerOptions
from .reader import BlockReader
from .validator import Validator
from .writer import write_block


def iter_block_files(source: str) -> List[str]:
    """Resolve a block file or a directory of blocks to a list of block paths.

    Directories are scanned non-recursively for files with the block
    extension, in sorted name order. A file path is returned as-is.
    """
    if os.path.isdir(source):
        names = sorted(os.listdir(source))
        return [
            os.path.join(source, fn)
            for fn in names
            if fn.endswith(BLOCK_EXT) and os.path.isfile(os.path.join(source, fn))
        ]
    if not os.path.exists(source):
        raise FileNotFoundError(f"No such block file or directory: {source}")
    return [source]


class Packer:
    """Pack a directory tree into blocks and reverse the process.

    All settings come from the ``PackerOptions`` given at construction.
    """

    def __init__(self, options: Optional[PackerOptions] = None):
        self.options = options or PackerOptions()
        self.validator = Validator(self.options.buffer_size)

    def pack(
        self,
        source_dir: str,
        dest_dir: str,
        on_block: Optional[Callable[[Path, Block], None]] = None,
    ) -> List[Path]:
        """Pack every eligible file under ``source_dir`` into ``dest_dir``.

        Returns:
            Paths of the written block files, in block ID order.

        Raises:
            EmptySourceError: No file under ``source_dir`` fits in a block.
        """
        descriptors = collect_files(source_dir, self.options.capacity)
        if not descriptors:
            raise EmptySourceError(f"No files found to pack in {source_dir}")
        os.makedirs(dest_dir, exist_ok=True)
        written: List[Path] = []
        for block in pack_blocks(descriptors, self.options.capacity):
            path = write_block(block, dest_dir, buffer_size=self.options.buffer_size)
            written.append(path)
            if on_block is not None:
                on_block(path, block)
        return written

    def unpack(
        self,
        source: str,
        dest_dir: str,
        on_block: Optional[Callable[[str, List[FileRecord]], None]] = None,
    ) -> List[str]:
        """Extract a block file, or every block in a directory, into ``dest_dir``."""
        blocks = iter_block_files(source)
        os.makedirs(dest_dir, exist_ok=True)
        for path in blocks:
            records = self.unpack_block(path, dest_dir)
            if on_block is not None:
                on_block(path, records)
        return blocks

    def unpack_block(self, block_path: str, dest_dir: str) -> List[FileRecord]:
        if self.options.verify_integrity:
            self.validator.validate_block(block_path)
        with BlockReader(block_path, buffer_size=self.options.buffer_size) as r:
            r.extract_all(dest_dir)
            return r.list()

    def verify(self, source: str) -> List[str]:
        """Validate the footer digest of a block file or a directory of blocks."""
        blocks = iter_block_files(source)
        for path in blocks:
            self.validator.validate_block(path)
        return blocks

    def list_block(self, block_path: str) -> Tuple[int, List[FileRecord]]:
        with BlockReader(block_path, buffer_size=self.options.buffer_size) as r:
            return r.block_id, r.list()
