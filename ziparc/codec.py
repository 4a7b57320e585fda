from __future__ import annotations

"""
Byte-run codec used for every entry payload.

Encoding
- Literal bytes are copied as-is, except 0xFF.
- A run record is three bytes: 0xFF || length (1..255) || value.
- Every 0xFF in the input travels inside a run record (a lone one becomes
  FF 01 FF), so a decoder never has to guess whether 0xFF starts a record.

The compression level only chooses the shortest run worth encoding; the
output is always decodable by ``decompress`` without knowing the level.
"""

from typing import Optional

from .constants import (
    DEFAULT_LEVEL,
    LEVEL_MIN_RUN,
    MAX_LEVEL,
    MAX_RUN,
    MIN_LEVEL,
    RUN_MARKER,
)
from .errors import CorruptPayloadError


def _min_run_for(level: int) -> Optional[int]:
    if not isinstance(level, int) or not (MIN_LEVEL <= level <= MAX_LEVEL):
        raise ValueError(f"compression level must be {MIN_LEVEL}..{MAX_LEVEL}, got {level!r}")
    return LEVEL_MIN_RUN[level]


def compress(data: bytes, level: int = DEFAULT_LEVEL) -> bytes:
    min_run = _min_run_for(level)
    out = bytearray()
    n = len(data)
    i = 0
    while i < n:
        b = data[i]
        j = i + 1
        while j < n and data[j] == b and j - i < MAX_RUN:
            j += 1
        run = j - i
        if b == RUN_MARKER or (min_run is not None and run >= min_run):
            out += bytes((RUN_MARKER, run, b))
        else:
            out += data[i:j]
        i = j
    return bytes(out)


def decompress(data: bytes) -> bytes:
    out = bytearray()
    n = len(data)
    i = 0
    while i < n:
        b = data[i]
        if b != RUN_MARKER:
            out.append(b)
            i += 1
            continue
        if i + 2 >= n:
            raise CorruptPayloadError(f"truncated run record at payload offset {i}")
        count = data[i + 1]
        if count == 0:
            raise CorruptPayloadError(f"zero-length run record at payload offset {i}")
        out += bytes((data[i + 2],)) * count
        i += 3
    return bytes(out)


class RunCodec:
    def __init__(self, level: int = DEFAULT_LEVEL):
        _min_run_for(level)
        self.level = level

    def compress(self, data: bytes) -> bytes:
        return compress(data, self.level)

    def decompress(self, data: bytes) -> bytes:
        return decompress(data)
