from __future__ import annotations

import argparse
import os
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from beam.errors import (
    BeamError,
    BlockIntegrityError,
    FileIntegrityError,
    MalformedBlockError,
)
from beam.fixtures import generate
from beam.models import Block, FileRecord
from beam.options import PackerOptions, load_options
from beam.packer import Packer, iter_block_files
from beam.sizeutil import format_mib, parse_size


def _tree_size(path: str) -> int:
    """Total size of regular files under ``path`` (or of ``path`` itself)."""
    if os.path.isfile(path):
        return os.path.getsize(path)
    total = 0
    for root, _dirs, files in os.walk(path):
        for fn in files:
            full = os.path.join(root, fn)
            if os.path.isfile(full) and not os.path.islink(full):
                total += os.path.getsize(full)
    return total


def _rate(nbytes: int, dt: float) -> str:
    dt = max(0.000001, dt)
    return f"{nbytes / (1024.0 * 1024.0) / dt:.2f} MiB/s"


def _build_options(
    config: Optional[str] = None,
    *,
    capacity: Optional[str] = None,
    buffer_size: Optional[str] = None,
    verify_integrity: Optional[bool] = None,
) -> PackerOptions:
    """Options from an optional JSON file, overridden by command-line values."""
    base = load_options(Path(config)) if config else PackerOptions()
    return base.replace(
        capacity=parse_size(capacity) if capacity is not None else None,
        buffer_size=parse_size(buffer_size) if buffer_size is not None else None,
        verify_integrity=verify_integrity,
    )


def cmd_pack(source: str, dest: str, *, options: Optional[PackerOptions] = None, quiet: bool = False) -> bool:
    """Pack every file under ``source`` into block files in ``dest``.

    Args:
        source: Directory tree to pack.
        dest: Output directory for block-<N>.beam files (created if missing).
        options: Capacity and buffer settings.
        quiet: Only print the final summary.
    """
    packer = Packer(options)

    def _on_block(path: Path, block: Block) -> None:
        if not quiet:
            print(f"   packing: {path.name} ({len(block.entries)} files, {format_mib(block.size)})")

    t0 = time.time()
    written = packer.pack(source, dest, on_block=_on_block)
    dt = time.time() - t0
    total = sum(os.path.getsize(p) for p in written)
    print(
        f"Done: {len(written)} block(s) in {dest}; {format_mib(total)} in {dt:.1f}s; {_rate(total, dt)}"
    )
    return True


def cmd_unpack(source: str, dest: str, *, options: Optional[PackerOptions] = None, quiet: bool = False) -> bool:
    """Extract a block file, or every block in a directory, into ``dest``."""
    packer = Packer(options)
    n_files = 0
    n_bytes = 0

    def _on_block(path: str, records: List[FileRecord]) -> None:
        nonlocal n_files, n_bytes
        n_files += len(records)
        n_bytes += sum(r.size for r in records)
        if not quiet:
            print(f" unpacking: {os.path.basename(path)} ({len(records)} files)")

    t0 = time.time()
    blocks = packer.unpack(source, dest, on_block=_on_block)
    dt = time.time() - t0
    verified = "verified" if packer.options.verify_integrity else "not verified"
    print(
        f"Done: extracted {n_files} files from {len(blocks)} block(s) ({format_mib(n_bytes)}) "
        f"in {dt:.1f}s; {_rate(n_bytes, dt)}; blocks {verified}"
    )
    return True


def cmd_verify(source: str, *, options: Optional[PackerOptions] = None) -> bool:
    """Verify footer digests; prints "OK" or "FAIL" per block.

    Returns:
        True when every block verified, False otherwise.
    """
    packer = Packer(options)
    blocks = iter_block_files(source)
    if not blocks:
        print(f"Warning: no block files found in {source}", file=sys.stderr)
        return True
    ok = True
    for path in blocks:
        name = os.path.basename(path)
        try:
            packer.verify(path)
        except (BlockIntegrityError, MalformedBlockError) as exc:
            ok = False
            print(f"FAIL {name}")
            print(f"  {exc}")
            continue
        print(f"OK   {name}")
    return ok


def cmd_list(block: str, *, options: Optional[PackerOptions] = None) -> bool:
    """List the file records of a block without extracting."""
    block_id, records = Packer(options).list_block(block)
    print(f"Block {block_id}: {len(records)} files, {format_mib(sum(r.size for r in records))}")
    for r in records:
        when = datetime.fromtimestamp(r.mtime, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        print(f"{r.mode & 0o7777:04o}\t{r.size}\t{when}\t{r.offset}\t{r.path}")
    return True


def cmd_generate(specs: List[str], *, dist: str = "dist") -> bool:
    """Create fixture trees from YAML directory specs."""
    for spec in specs:
        root = generate(spec, dist)
        print(f"Created {root} from {spec} ({format_mib(_tree_size(str(root)))})")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="beam",
        description="Pack many small files into fixed-capacity .beam blocks",
        epilog="Every block carries per-file and per-block SHA-256 checksums.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", help="JSON options file (capacity, buffer_size, verify_integrity)")
        p.add_argument("--buffer-size", help="Hash/copy buffer size, e.g. 32KiB")

    ap_pack = sub.add_parser("pack", help="Pack a directory into blocks")
    ap_pack.add_argument("source", help="Directory to pack")
    ap_pack.add_argument("dest", help="Output directory for block files")
    ap_pack.add_argument("--capacity", help="Payload bytes per block, e.g. 60MiB (default 60MiB)")
    ap_pack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    _common(ap_pack)

    ap_unpack = sub.add_parser("unpack", help="Extract files from a block or a directory of blocks")
    ap_unpack.add_argument("source", help="Block file or directory of blocks")
    ap_unpack.add_argument("dest", help="Output directory")
    ap_unpack.add_argument(
        "--no-verify",
        dest="verify_integrity",
        action="store_false",
        default=None,
        help="Skip block checksum verification before extracting (per-file checksums are still checked)",
    )
    ap_unpack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    _common(ap_unpack)

    ap_verify = sub.add_parser("verify", help="Verify block integrity without extracting")
    ap_verify.add_argument("source", help="Block file or directory of blocks")
    _common(ap_verify)

    ap_list = sub.add_parser("list", help="List block contents")
    ap_list.add_argument("block", help="Block file")

    ap_gen = sub.add_parser("generate", help="Create fixture trees from YAML specs")
    ap_gen.add_argument("specs", nargs="+", help="YAML directory spec files")
    ap_gen.add_argument("--dist", default="dist", help="Directory to create trees in (default: dist)")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "pack":
            opts = _build_options(args.config, capacity=args.capacity, buffer_size=args.buffer_size)
            cmd_pack(args.source, args.dest, options=opts, quiet=args.quiet)
        elif args.cmd == "unpack":
            opts = _build_options(args.config, buffer_size=args.buffer_size, verify_integrity=args.verify_integrity)
            cmd_unpack(args.source, args.dest, options=opts, quiet=args.quiet)
        elif args.cmd == "verify":
            opts = _build_options(args.config, buffer_size=args.buffer_size)
            ok = cmd_verify(args.source, options=opts)
            sys.exit(0 if ok else 1)
        elif args.cmd == "list":
            cmd_list(args.block)
        elif args.cmd == "generate":
            cmd_generate(args.specs, dist=args.dist)
        else:
            raise RuntimeError("Unknown command")
    except (BlockIntegrityError, FileIntegrityError) as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Hint: the block is corrupted; run 'beam verify' to check the remaining blocks.", file=sys.stderr)
        sys.exit(2)
    except (BeamError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
