"""
Binary persistence for VectorIndex.

File layout (little-endian):

    bytes[4]  magic            b"RAGX"
    uint16    format version   1
    int32     chunk_count
    int32     embedding_dim D
    repeat chunk_count times:
        uint32 + UTF-8 bytes   doc_id
        int32                  order
        uint32 + UTF-8 bytes   text
        int32                  D (repeated per chunk)
        float32[D]             embedding (already normalized)

Indices built by the old Unity editor tool have no magic/version and
use .NET BinaryWriter strings (7-bit varint length prefix). They can be
read and written with legacy=True. The default reader never guesses:
a file without the magic is reported as CorruptIndex.

Loading always re-normalizes, so a hand-edited file still yields unit
vectors.

Usage:
    from agent_rag.indexing.persistence import save_index, load_index

    save_index(index, "indices/coach_knowledge.ragx")
    index = load_index("indices/coach_knowledge.ragx")
"""

import io
import os
import struct
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np

from agent_rag.exceptions import CorruptIndex, DimensionMismatch
from agent_rag.indexing.index import VectorIndex
from agent_rag.models.document import Chunk

MAGIC = b"RAGX"
FORMAT_VERSION = 1

IndexSource = Union[str, os.PathLike, BinaryIO, bytes]
IndexTarget = Union[str, os.PathLike, BinaryIO]

_INT32 = struct.Struct("<i")
_UINT32 = struct.Struct("<I")
_UINT16 = struct.Struct("<H")
_FLOAT32 = np.dtype("<f4")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def dumps_index(index: VectorIndex, legacy: bool = False) -> bytes:
    """Serialize an index to bytes."""
    out = io.BytesIO()
    _write(index, out, legacy)
    return out.getvalue()


def loads_index(data: bytes, legacy: bool = False) -> VectorIndex:
    """
    Deserialize an index from bytes.

    Raises:
        CorruptIndex: Bad magic, unknown version, truncated or trailing data.
        DimensionMismatch: A chunk's stored dimension differs from the header's.
    """
    reader = _Reader(bytes(data))
    if legacy:
        read_string = reader.read_dotnet_string
    else:
        magic = reader.read(len(MAGIC))
        if magic != MAGIC:
            raise CorruptIndex(
                f"Not an index file (magic {magic!r}, expected {MAGIC!r}); "
                "pass legacy=True for indices built by the old editor tool"
            )
        version = reader.read_struct(_UINT16)
        if version != FORMAT_VERSION:
            raise CorruptIndex(f"Unsupported index format version {version}")
        read_string = reader.read_prefixed_string

    count = reader.read_struct(_INT32)
    dim = reader.read_struct(_INT32)
    if count < 0:
        raise CorruptIndex(f"Negative chunk count {count}")
    if dim <= 0:
        raise CorruptIndex(f"Invalid embedding dimension {dim}")

    chunks: list[Chunk] = []
    for i in range(count):
        doc_id = read_string()
        order = reader.read_struct(_INT32)
        text = read_string()
        chunk_dim = reader.read_struct(_INT32)
        if chunk_dim != dim:
            raise DimensionMismatch(dim, chunk_dim, where=f"stored chunk {i}")
        embedding = reader.read_floats(chunk_dim)
        if order < 0:
            raise CorruptIndex(f"Negative order {order} for stored chunk {i}")
        chunks.append(Chunk(doc_id=doc_id, order=order, text=text, embedding=embedding))

    if not reader.at_end():
        raise CorruptIndex(f"{reader.remaining()} unexpected trailing bytes")

    return VectorIndex(chunks, dim)


def save_index(index: VectorIndex, target: IndexTarget, legacy: bool = False) -> None:
    """
    Write an index to a path or a writable binary stream.

    Paths are written atomically: <path>.tmp first, then os.replace().
    """
    if hasattr(target, "write"):
        _write(index, target, legacy)
        return

    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("wb") as f:
        _write(index, f, legacy)
    os.replace(tmp_path, path)


def load_index(source: IndexSource, legacy: bool = False) -> VectorIndex:
    """
    Read an index from a path, a readable binary stream, or raw bytes.

    Raises:
        CorruptIndex: The data is not a well-formed index.
        DimensionMismatch: A chunk's stored dimension differs from the header's.
        FileNotFoundError: The path does not exist.
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    elif hasattr(source, "read"):
        data = source.read()
    else:
        data = Path(source).read_bytes()
    return loads_index(data, legacy=legacy)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def _write(index: VectorIndex, out: BinaryIO, legacy: bool) -> None:
    dim = index.embedding_dim
    write_string = _write_dotnet_string if legacy else _write_prefixed_string

    if not legacy:
        out.write(MAGIC)
        out.write(_UINT16.pack(FORMAT_VERSION))
    out.write(_INT32.pack(len(index)))
    out.write(_INT32.pack(dim))

    for chunk, row in zip(index.chunks, index.matrix):
        write_string(out, chunk.doc_id or "")
        out.write(_INT32.pack(chunk.order))
        write_string(out, chunk.text or "")
        out.write(_INT32.pack(dim))
        out.write(np.asarray(row, dtype=_FLOAT32).tobytes())


def _write_prefixed_string(out: BinaryIO, value: str) -> None:
    encoded = value.encode("utf-8")
    out.write(_UINT32.pack(len(encoded)))
    out.write(encoded)


def _write_dotnet_string(out: BinaryIO, value: str) -> None:
    encoded = value.encode("utf-8")
    length = len(encoded)
    prefix = bytearray()
    while length >= 0x80:
        prefix.append((length & 0x7F) | 0x80)
        length >>= 7
    prefix.append(length)
    out.write(bytes(prefix))
    out.write(encoded)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

class _Reader:
    """Cursor over an in-memory buffer; every short read is a CorruptIndex."""

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos == len(self._data)

    def read(self, n: int) -> bytes:
        if n < 0 or self.remaining() < n:
            raise CorruptIndex(
                f"Truncated index: needed {n} bytes at offset {self._pos}, "
                f"{self.remaining()} left"
            )
        chunk = self._data[self._pos:self._pos + n]
        self._pos += n
        return chunk

    def read_struct(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self.read(fmt.size))[0]

    def read_floats(self, n: int) -> list[float]:
        raw = self.read(n * _FLOAT32.itemsize)
        return np.frombuffer(raw, dtype=_FLOAT32).astype(np.float32).tolist()

    def read_prefixed_string(self) -> str:
        length = self.read_struct(_UINT32)
        return self._decode(self.read(length))

    def read_dotnet_string(self) -> str:
        length = 0
        shift = 0
        while True:
            if shift > 28:
                raise CorruptIndex(f"Bad string length prefix at offset {self._pos}")
            byte = self.read(1)[0]
            length |= (byte & 0x7F) << shift
            if not byte & 0x80:
                break
            shift += 7
        return self._decode(self.read(length))

    def _decode(self, raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptIndex(f"Invalid UTF-8 in string before offset {self._pos}: {e}") from e
