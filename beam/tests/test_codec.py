from __future__ import annotations

import hashlib
import io
import os
import struct
import tempfile
import unittest
from pathlib import Path

from beam.blocks import pack
from beam.collector import collect_files
from beam.errors import MalformedBlockError, SourceChangedError
from beam.models import Block, FileDescriptor, FileRecord
from beam.records import decode_block
from beam.writer import encode_block, write_block


MTIME = 1_600_000_000


def _write_tree(root: Path, files):
    for rel, data in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        os.chmod(p, 0o644)
        os.utime(p, (MTIME, MTIME))


def _encode(blocks):
    out = []
    for b in blocks:
        buf = io.BytesIO()
        encode_block(b, buf, buffer_size=7)
        out.append(buf.getvalue())
    return out


class EncodeTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.files = {
            "a.txt": b"hello world\n" * 10,
            "sub/b.bin": os.urandom(300),
            "sub/deeper/c": b"xyz",
            "empty": b"",
        }
        _write_tree(self.root, self.files)

    def test_single_file_layout_is_byte_exact(self):
        data = b"payload bytes"
        p = self.root / "one.dat"
        p.write_bytes(data)
        os.chmod(p, 0o600)
        os.utime(p, (MTIME + 0.9, MTIME + 0.9))
        d = FileDescriptor(path="one.dat", source=str(p), size=len(data), mtime_ns=(MTIME * 10**9) + 900_000_000, mode=0o600)
        block = Block(block_id=3)
        block.append(d)
        buf = io.BytesIO()
        encode_block(block, buf)
        digest = hashlib.sha256(data).digest()
        body = (
            struct.pack("<ii", 3, 1)
            + struct.pack("<i", len(b"one.dat"))
            + b"one.dat"
            + struct.pack("<qqqI", len(data), MTIME, 0, 0o600)
            + digest
            + data
        )
        self.assertEqual(buf.getvalue(), body + hashlib.sha256(body).digest())
        self.assertTrue(block.sealed)

    def test_footer_covers_everything_before_it(self):
        blocks = pack(collect_files(str(self.root), 10_000), 10_000)
        (raw,) = _encode(blocks)
        self.assertEqual(raw[-32:], hashlib.sha256(raw[:-32]).digest())
        block_id, count = struct.unpack("<ii", raw[:8])
        self.assertEqual((block_id, count), (1, len(self.files)))

    def test_decode_returns_records_and_leaves_stream_at_payload(self):
        blocks = pack(collect_files(str(self.root), 10_000), 10_000)
        (raw,) = _encode(blocks)
        f = io.BytesIO(raw)
        block_id, records = decode_block(f)
        self.assertEqual(block_id, 1)
        # Size-descending order from the packer.
        self.assertEqual([r.path for r in records], ["sub/b.bin", "a.txt", "sub/deeper/c", "empty"])
        for r in records:
            self.assertEqual(r.block_id, 1)
            self.assertEqual(r.mtime, MTIME)
            self.assertEqual(r.mode, 0o644)
            self.assertEqual(r.checksum, hashlib.sha256(self.files[r.path]).digest())
        payload = f.read()[:-32]
        self.assertEqual(payload, b"".join(self.files[r.path] for r in records))
        self.assertEqual(records[0].offset, 0)
        for prev, cur in zip(records, records[1:]):
            self.assertEqual(cur.offset, prev.offset + prev.size)

    def test_encoding_is_deterministic(self):
        first = _encode(pack(collect_files(str(self.root), 400), 400))
        second = _encode(pack(collect_files(str(self.root), 400), 400))
        self.assertEqual(len(first), 2)
        self.assertEqual(first, second)

    def test_write_block_uses_block_filename(self):
        blocks = pack(collect_files(str(self.root), 10_000), 10_000)
        tmp_out = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_out.cleanup)
        path = write_block(blocks[0], tmp_out.name)
        self.assertEqual(path.name, "block-1.beam")
        self.assertEqual(path.read_bytes(), _encode(pack(collect_files(str(self.root), 10_000), 10_000))[0])

    def test_source_growing_between_passes_is_rejected(self):
        p = self.root / "a.txt"
        block = Block(block_id=1)
        block.append(FileDescriptor(path="a.txt", source=str(p), size=5, mtime_ns=0, mode=0o644))
        with self.assertRaises(SourceChangedError):
            encode_block(block, io.BytesIO())

    def test_source_shrinking_between_passes_is_rejected(self):
        p = self.root / "sub" / "deeper" / "c"
        block = Block(block_id=1)
        block.append(FileDescriptor(path="c", source=str(p), size=10, mtime_ns=0, mode=0o644))
        with self.assertRaises(SourceChangedError):
            encode_block(block, io.BytesIO())

    def test_missing_source_propagates_os_error(self):
        block = Block(block_id=1)
        block.append(FileDescriptor(path="gone", source=str(self.root / "gone"), size=1, mtime_ns=0, mode=0o644))
        with self.assertRaises(FileNotFoundError):
            encode_block(block, io.BytesIO())


class DecodeMalformedTests(unittest.TestCase):
    def assertMalformed(self, raw: bytes):
        with self.assertRaises(MalformedBlockError):
            decode_block(io.BytesIO(raw))

    def test_empty_stream(self):
        self.assertMalformed(b"")

    def test_truncated_header(self):
        self.assertMalformed(struct.pack("<i", 1) + b"\x00")

    def test_negative_file_count(self):
        self.assertMalformed(struct.pack("<ii", 1, -1) + b"\x00" * 200)

    def test_file_count_exceeding_stream(self):
        self.assertMalformed(struct.pack("<ii", 1, 1000) + b"\x00" * 100)

    def test_negative_path_length(self):
        self.assertMalformed(struct.pack("<ii", 1, 1) + struct.pack("<i", -5) + b"\x00" * 80)

    def test_path_length_beyond_stream(self):
        self.assertMalformed(struct.pack("<ii", 1, 1) + struct.pack("<i", 1_000_000) + b"\x00" * 60)

    def test_truncated_record_tail(self):
        raw = struct.pack("<ii", 1, 1) + struct.pack("<i", 40) + b"a" * 40 + b"\x00" * 20
        self.assertMalformed(raw)

    def test_zero_files_is_valid(self):
        f = io.BytesIO(struct.pack("<ii", 9, 0) + b"\x00" * 32)
        self.assertEqual(decode_block(f), (9, []))
        self.assertEqual(f.tell(), 8)


class FileRecordTests(unittest.TestCase):
    def test_checksum_must_be_32_bytes(self):
        with self.assertRaises(ValueError):
            FileRecord(path="a", size=0, mtime=0, offset=0, block_id=1, mode=0, checksum=b"\x00" * 31)


if __name__ == "__main__":
    unittest.main()
