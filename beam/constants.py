import struct


# Block file naming: block-<N>.beam
BLOCK_EXT = ".beam"
BLOCK_PREFIX = "block-"

DIGEST_SIZE = 32  # SHA-256

DEFAULT_CAPACITY = 60 * 1024 * 1024  # 60 MiB of payload per block
DEFAULT_BUFFER_SIZE = 32 * 1024  # 32 KiB hashing/copy buffer

OPTIONS_FILENAME = ".beam.json"


# On-disk layout (little endian):
#  - block header: block_id i32, file_count i32
#  - per record: path_len i32, path[path_len], size i64, mtime i64,
#    offset i64, mode u32, checksum[32]
#  - payload bytes, record order, no padding
#  - footer: sha256 over everything before it
BLOCK_HDR_STRUCT = struct.Struct("<ii")
PATH_LEN_STRUCT = struct.Struct("<i")
RECORD_TAIL_STRUCT = struct.Struct("<qqqI32s")

# Smallest possible record (empty path); used to reject impossible file counts.
MIN_RECORD_SIZE = PATH_LEN_STRUCT.size + RECORD_TAIL_STRUCT.size

BLOCK_ID_SIZE = struct.calcsize("<i")
MIN_BLOCK_SIZE = BLOCK_ID_SIZE + DIGEST_SIZE


def block_filename(block_id: int) -> str:
    return f"{BLOCK_PREFIX}{block_id}{BLOCK_EXT}"
