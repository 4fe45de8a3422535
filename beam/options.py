from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import DEFAULT_BUFFER_SIZE, DEFAULT_CAPACITY, OPTIONS_FILENAME
from .sizeutil import parse_size


@dataclass
class PackerOptions:
    """Settings shared by packing, unpacking and verification.

    Attributes:
        capacity: Maximum payload bytes per block (metadata overhead not counted).
        buffer_size: Chunk size used for hashing and copying.
        verify_integrity: Validate the block footer before extracting.
    """

    capacity: int = DEFAULT_CAPACITY
    buffer_size: int = DEFAULT_BUFFER_SIZE
    verify_integrity: bool = True

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")

    def replace(self, **changes: Any) -> "PackerOptions":
        data = asdict(self)
        data.update({k: v for k, v in changes.items() if v is not None})
        return PackerOptions(**data)


def options_path(base_dir: Optional[Path] = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / OPTIONS_FILENAME


def load_options(path: Optional[Path] = None) -> PackerOptions:
    """Read options from a JSON file; missing keys keep their defaults.

    Sizes may be integers or strings with units ("60MiB").
    """
    path = path or options_path()
    if not path.exists():
        raise FileNotFoundError(f"Options file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        data: Dict[str, Any] = json.load(fh)

    unknown = set(data) - {"capacity", "buffer_size", "verify_integrity"}
    if unknown:
        raise ValueError(f"Unknown option(s) in {path}: {', '.join(sorted(unknown))}")
    if "verify_integrity" in data and not isinstance(data["verify_integrity"], bool):
        raise ValueError(f"verify_integrity must be true or false in {path}")
    for key in ("capacity", "buffer_size"):
        if key in data:
            data[key] = parse_size(data[key])
    return PackerOptions(**data)


def save_options(options: PackerOptions, path: Optional[Path] = None) -> Path:
    path = path or options_path()
    with path.open("w", encoding="utf-8") as fh:
        json.dump(asdict(options), fh, indent=2)
        fh.write("\n")
    return path
