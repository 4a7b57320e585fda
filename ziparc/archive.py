from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .codec import compress
from .constants import DEFAULT_LEVEL, DIR_SUFFIX, SYMLINK_SUFFIX


@dataclass
class ArchiveEntry:
    path: str
    content: bytes
    original_size: int
    compressed_size: int
    payload: Optional[bytes] = field(default=None, repr=False, compare=False)

    @property
    def is_dir(self) -> bool:
        return self.path.endswith(DIR_SUFFIX)

    @property
    def is_symlink(self) -> bool:
        return self.path.endswith(SYMLINK_SUFFIX)

    @property
    def kind(self) -> str:
        if self.is_dir:
            return "dir"
        if self.is_symlink:
            return "symlink"
        return "file"


class Archive:
    """In-memory archive: unique paths mapped to entries, one compression level."""

    def __init__(self, compression_level: int = DEFAULT_LEVEL):
        self.compression_level = compression_level
        self.entries: Dict[str, ArchiveEntry] = {}

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    def get(self, path: str) -> Optional[ArchiveEntry]:
        return self.entries.get(path)

    def add(self, path: str, content: bytes) -> ArchiveEntry:
        """Insert or replace ``path``, compressing at the archive level."""
        content = bytes(content)
        payload = compress(content, self.compression_level)
        e = ArchiveEntry(
            path=path,
            content=content,
            original_size=len(content),
            compressed_size=len(payload),
            payload=payload,
        )
        self.entries[path] = e
        return e

    def put(self, entry: ArchiveEntry) -> None:
        self.entries[entry.path] = entry

    def recompress(self, level: int) -> None:
        """Re-encode every entry at ``level`` (used when merging into a loaded archive)."""
        self.compression_level = level
        for path, e in list(self.entries.items()):
            self.add(path, e.content)

    def sorted_entries(self) -> List[ArchiveEntry]:
        return [self.entries[p] for p in sorted(self.entries)]

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self.sorted_entries())
