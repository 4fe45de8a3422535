from __future__ import annotations

import re

_UNITS = {
    "": 1,
    "B": 1,
    "KB": 1000,
    "MB": 1000 ** 2,
    "GB": 1000 ** 3,
    "TB": 1000 ** 4,
    "KIB": 1024,
    "MIB": 1024 ** 2,
    "GIB": 1024 ** 3,
    "TIB": 1024 ** 4,
}

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([A-Za-z]*)\s*$")


def parse_size(value) -> int:
    """Parse a byte count such as ``4096``, ``"25MB"`` or ``"60 MiB"``.

    Decimal units (KB, MB, ...) are powers of 1000, binary units (KiB,
    MiB, ...) powers of 1024. A bare number is bytes.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Size must not be negative: {value}")
        return value
    m = _SIZE_RE.match(str(value))
    if not m:
        raise ValueError(f"Invalid size: {value!r}")
    unit = m.group(2).upper()
    if unit not in _UNITS:
        raise ValueError(f"Unknown size unit {m.group(2)!r} in {value!r}")
    return int(m.group(1)) * _UNITS[unit]


def format_mib(n: int) -> str:
    return f"{n / (1024.0 * 1024.0):.2f} MiB"
