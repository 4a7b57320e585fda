from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .archive import Archive, ArchiveEntry
from .codec import decompress
from .container import Container, Trailer, decode_container
from .errors import ArchiveNotFoundError, CorruptPayloadError, NotAFileError
from .store import FileNode, Store


_DATE_PLACEHOLDER = "1980-01-01 00:00"


def fold_checksum(data: bytes) -> int:
    """32-bit wrapping byte sum shown in the verbose listing's CRC column."""
    return sum(data) & 0xFFFFFFFF


def method_name(original_size: int, compressed_size: int) -> str:
    if compressed_size == original_size:
        return "Stored"
    ratio = compressed_size / original_size if original_size else 1.0
    if ratio > 0.8:
        return "Fast"
    if ratio > 0.6:
        return "Normal"
    return "Maximum"


def _saved_percent(original_size: int, compressed_size: int) -> float:
    if original_size <= 0:
        return 0.0
    return (original_size - compressed_size) / original_size * 100.0


@dataclass
class EntryCheck:
    path: str
    expected: int
    actual: int
    exempt: bool = False

    @property
    def ok(self) -> bool:
        return self.exempt or self.expected == self.actual


@dataclass
class IntegrityReport:
    archive_name: str = ""
    checks: List[EntryCheck] = field(default_factory=list)

    @property
    def failures(self) -> List[EntryCheck]:
        return [c for c in self.checks if not c.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def render(self) -> str:
        lines = []
        if self.archive_name:
            lines.append(f"Archive: {self.archive_name}")
        lines.append("testing archive integrity...")
        for c in self.checks:
            if c.ok:
                lines.append(f"  testing: {c.path} ... OK")
            else:
                lines.append(
                    f"  testing: {c.path} ... ERROR (size mismatch: expected {c.expected}, got {c.actual})"
                )
        total = len(self.checks)
        if self.ok:
            lines.append(f"archive integrity test passed: {total} files verified")
        else:
            lines.append(f"archive integrity test failed: {len(self.failures)} errors in {total} files")
        return "\n".join(lines)


class ArchiveReader:
    """Decoded view of a container: every payload is decompressed up front."""

    def __init__(self, data: bytes, name: str = ""):
        self.name = name
        self.container: Container = decode_container(data)
        self.archive = Archive(self.container.compression_level)
        for raw in self.container.entries:
            try:
                content = decompress(raw.data)
            except CorruptPayloadError as exc:
                raise CorruptPayloadError(f"{raw.path}: {exc}") from exc
            self.archive.put(
                ArchiveEntry(
                    path=raw.path,
                    content=content,
                    original_size=raw.original_size,
                    compressed_size=raw.compressed_size,
                    payload=raw.data,
                )
            )

    @property
    def compression_level(self) -> int:
        return self.archive.compression_level

    @property
    def trailer(self) -> Optional[Trailer]:
        return self.container.trailer

    @property
    def entries(self) -> Dict[str, ArchiveEntry]:
        return self.archive.entries

    def list(self) -> List[ArchiveEntry]:
        return self.archive.sorted_entries()

    def test(self) -> IntegrityReport:
        """Check every entry's decompressed length against its recorded size.

        The scan never stops early; directory markers carry no payload and are
        exempt.
        """
        report = IntegrityReport(archive_name=self.name)
        for e in self.list():
            report.checks.append(
                EntryCheck(path=e.path, expected=e.original_size, actual=len(e.content), exempt=e.is_dir)
            )
        return report

    def render_listing(self, *, verbose: bool = False, select: Optional[Callable[[str], bool]] = None) -> str:
        lines = [f"Archive: {self.name}"] if self.name else []
        if verbose:
            lines.append(" Length   Method    Size  Cmpr    Date   Time   CRC-32   Name")
            lines.append("--------  ------  ------- ---- ---------- ----- --------  ----")
        else:
            lines.append("  Length      Date    Time    Name")
            lines.append("---------  ---------- -----   ----")

        total_original = 0
        total_compressed = 0
        shown = 0
        for e in self.list():
            if select is not None and not select(e.path):
                continue
            shown += 1
            total_original += e.original_size
            total_compressed += e.compressed_size
            if verbose:
                ratio = int(_saved_percent(e.original_size, e.compressed_size))
                lines.append(
                    f"{e.original_size:>8}  {method_name(e.original_size, e.compressed_size):>6} "
                    f"{e.compressed_size:>8} {ratio:>3}% {_DATE_PLACEHOLDER} "
                    f"{fold_checksum(e.content):>8x}  {e.path}"
                )
            else:
                lines.append(f"{e.original_size:>9}  {_DATE_PLACEHOLDER}   {e.path}")

        if verbose:
            lines.append("--------          ------- ---                            -------")
            pct = _saved_percent(total_original, total_compressed)
            lines.append(
                f"{total_original:>8}          {total_compressed:>7} {pct:>3.0f}%"
                f"                            {shown} files"
            )
        else:
            lines.append("---------                     -------")
            lines.append(f"{total_original:>9}                     {shown} files")
        return "\n".join(lines)


def read_archive(store: Store, name: str) -> ArchiveReader:
    """Load ``name`` from ``store`` (symlinks followed) and decode it."""
    node = store.resolve_following_symlinks(name, physical=False)
    if node is None:
        raise ArchiveNotFoundError(f"cannot find archive '{name}'")
    if not isinstance(node, FileNode):
        raise NotAFileError(f"'{name}' is not a file")
    return ArchiveReader(node.content, name=name)
