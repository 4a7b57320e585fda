from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Optional

from .archive import Archive
from .codec import compress
from .constants import CONTAINER_MAGIC, FOOTER_MAGIC, MAX_LEVEL
from .errors import ContainerError


_HEADER_STRUCT = struct.Struct("<11sIB")
# magic[11], entry_count u32, compression_level u8
_U32 = struct.Struct("<I")
_SIZES_STRUCT = struct.Struct("<II")
# original_size u32, compressed_size u32
_TRAILER_STRUCT = struct.Struct("<II7s")
# total_original u32, total_compressed u32, footer magic[7]

_U32_MAX = 0xFFFFFFFF


@dataclass
class RawEntry:
    path: str
    original_size: int
    compressed_size: int
    data: bytes


@dataclass
class Trailer:
    total_original: int
    total_compressed: int


@dataclass
class Container:
    compression_level: int
    entries: List[RawEntry]
    trailer: Optional[Trailer]


def _check_u32(value: int, what: str, path: str = "") -> None:
    if value > _U32_MAX:
        suffix = f" for {path}" if path else ""
        raise ContainerError(f"{what} {value} does not fit in 32 bits{suffix}", field=what)


def encode_archive(archive: Archive) -> bytes:
    """Serialize ``archive`` with entries in path order, trailer included."""
    level = archive.compression_level
    entries = archive.sorted_entries()
    _check_u32(len(entries), "entry_count")
    out = bytearray(_HEADER_STRUCT.pack(CONTAINER_MAGIC, len(entries), level))
    total_original = 0
    total_compressed = 0
    for e in entries:
        payload = e.payload if e.payload is not None else compress(e.content, level)
        path_raw = e.path.encode("utf-8")
        _check_u32(len(path_raw), "path_len", e.path)
        _check_u32(e.original_size, "original_size", e.path)
        _check_u32(len(payload), "compressed_size", e.path)
        out += _U32.pack(len(path_raw))
        out += path_raw
        out += _SIZES_STRUCT.pack(e.original_size, len(payload))
        out += payload
        total_original += e.original_size
        total_compressed += len(payload)
    # Trailer totals wrap like the fixed-width fields they are
    out += _TRAILER_STRUCT.pack(total_original & _U32_MAX, total_compressed & _U32_MAX, FOOTER_MAGIC)
    return bytes(out)


def decode_container(data: bytes) -> Container:
    """Parse container bytes without decompressing any payload.

    Raises:
        ContainerError: bad magic, truncated header, or any entry field that
            would read past the end of ``data``.
    """
    data = bytes(data)
    n = len(data)
    magic_len = len(CONTAINER_MAGIC)
    if n < magic_len or data[:magic_len] != CONTAINER_MAGIC:
        raise ContainerError("not a valid archive: bad magic", field="magic", offset=0)
    if n < _HEADER_STRUCT.size:
        raise ContainerError("corrupted archive header", field="header", offset=magic_len)
    _magic, count, level = _HEADER_STRUCT.unpack_from(data, 0)
    if level > MAX_LEVEL:
        raise ContainerError(f"invalid compression level {level}", field="header", offset=_HEADER_STRUCT.size - 1)
    pos = _HEADER_STRUCT.size
    entries: List[RawEntry] = []
    for idx in range(count):
        if pos + _U32.size > n:
            raise ContainerError("corrupted archive entry: truncated path length", field="path_len", offset=pos, entry=idx)
        (path_len,) = _U32.unpack_from(data, pos)
        pos += _U32.size
        if pos + path_len > n:
            raise ContainerError(
                f"corrupted archive path: {path_len} bytes declared", field="path", offset=pos, entry=idx
            )
        path = data[pos : pos + path_len].decode("utf-8", errors="replace")
        pos += path_len
        if pos + _SIZES_STRUCT.size > n:
            raise ContainerError("corrupted archive content lengths", field="sizes", offset=pos, entry=idx)
        original_size, compressed_size = _SIZES_STRUCT.unpack_from(data, pos)
        pos += _SIZES_STRUCT.size
        if pos + compressed_size > n:
            raise ContainerError(
                f"corrupted archive content: {compressed_size} bytes declared for {path}",
                field="data",
                offset=pos,
                entry=idx,
            )
        entries.append(
            RawEntry(
                path=path,
                original_size=original_size,
                compressed_size=compressed_size,
                data=data[pos : pos + compressed_size],
            )
        )
        pos += compressed_size

    trailer = None
    if n - pos >= _TRAILER_STRUCT.size:
        tot_o, tot_c, footer = _TRAILER_STRUCT.unpack_from(data, pos)
        if footer == FOOTER_MAGIC:
            trailer = Trailer(total_original=tot_o, total_compressed=tot_c)
    return Container(compression_level=level, entries=entries, trailer=trailer)
