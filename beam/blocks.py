from __future__ import annotations

from typing import Iterable, List

from .errors import CapacityError
from .models import Block, FileDescriptor


def pack(descriptors: Iterable[FileDescriptor], capacity: int) -> List[Block]:
    """Assign descriptors to blocks of at most ``capacity`` payload bytes.

    Descriptors are stable-sorted by size, largest first, then placed into a
    single open block. When the next file does not fit, the open block is
    sealed and a new one (next ID) is opened; sealed blocks are never
    revisited. This is sequential (next-fit) placement over a descending
    sort, not a multi-bin first-fit scan.

    Raises:
        ValueError: ``capacity`` is not positive.
        CapacityError: A descriptor is larger than ``capacity``. Checked for
            every input before any block is produced.
    """
    if capacity <= 0:
        raise ValueError("capacity must be positive")
    ordered = sorted(descriptors, key=lambda d: d.size, reverse=True)
    for d in ordered:
        if d.size > capacity:
            raise CapacityError(d.path, d.size, capacity)
    if not ordered:
        return []

    blocks: List[Block] = []
    current = Block(block_id=1)
    for d in ordered:
        if not current.fits(d.size, capacity):
            blocks.append(current.seal())
            current = Block(block_id=current.block_id + 1)
        current.append(d)
    blocks.append(current.seal())
    return blocks
