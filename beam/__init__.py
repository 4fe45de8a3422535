"""
Beam: pack many small files into fixed-capacity, self-verifying blocks.

Features:

- Size-descending, single-open-block placement under a hard payload capacity.
- Byte-exact little-endian block layout: header, file records, raw payload,
  SHA-256 footer over everything before it.
- Two-level integrity: a SHA-256 per file (checked on extraction) and per
  block (checked by ``verify`` and, by default, before extraction).
- Extraction restores file bytes, permission bits and modification times.
- YAML-driven fixture trees for experiments (``beam generate``).
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "blocks",
    "writer",
    "reader",
    "validator",
    "packer",
]

# Importable programmatic API is available via beam.packer.Packer and the CLI
# functions in beam.cli (cmd_pack/cmd_unpack/cmd_verify) which take normal parameters.
