from __future__ import annotations

import os
import struct

from .constants import BLOCK_ID_SIZE, DEFAULT_BUFFER_SIZE, DIGEST_SIZE, MIN_BLOCK_SIZE
from .errors import BlockIntegrityError, MalformedBlockError
from .hashutil import checksum_stream, digests_equal


class Validator:
    """SHA-256 integrity check for whole block files.

    The block footer is the only authority for block integrity: validating a
    block always re-hashes every byte before the footer.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.buffer_size = buffer_size

    def validate_block(self, path: str) -> int:
        """Check a block file against its footer digest.

        Returns:
            The block ID read from the header.

        Raises:
            MalformedBlockError: The file is too short to hold a header and footer.
            BlockIntegrityError: The recomputed digest differs from the footer.
        """
        with open(path, "rb") as f:
            head = f.read(BLOCK_ID_SIZE)
            size = os.fstat(f.fileno()).st_size
            if len(head) != BLOCK_ID_SIZE or size < MIN_BLOCK_SIZE:
                raise MalformedBlockError(f"Block file too short ({size} bytes): {path}")
            (block_id,) = struct.unpack("<i", head)
            f.seek(size - DIGEST_SIZE)
            stored = f.read(DIGEST_SIZE)
            if len(stored) != DIGEST_SIZE:
                raise MalformedBlockError(f"Unexpected EOF reading block footer: {path}")
            f.seek(0)
            actual = checksum_stream(f, self.buffer_size, limit=size - DIGEST_SIZE)
        if not digests_equal(stored, actual):
            raise BlockIntegrityError(block_id, stored, actual, path=path)
        return block_id
