from __future__ import annotations

from typing import List, Optional, Tuple

from .archive import ArchiveEntry
from .constants import (
    CONTAINER_EXT,
    ENCRYPTION_UNSUPPORTED,
    EXTRACTED_SUFFIX,
    POLICY_FRESHEN,
    POLICY_NEVER,
    POLICY_PROMPT,
    POLICY_UPDATE,
    SYMLINK_SUFFIX,
)
from .errors import EncryptionNotSupported
from .options import ExtractionOptions
from .pathutil import basename, join, norm_path, parent, split_parts
from .pattern import ExtractFilter
from .reader import ArchiveReader
from .store import DirNode, Store, SymlinkNode


def default_destination(archive_name: str) -> str:
    """Archive basename minus '.zip', or '<basename>_extracted' when there is no such extension."""
    base = basename(archive_name)
    if base.endswith(CONTAINER_EXT) and len(base) > len(CONTAINER_EXT):
        return base[: -len(CONTAINER_EXT)]
    return base + EXTRACTED_SUFFIX


def _compression_note(e: ArchiveEntry) -> str:
    if e.compressed_size == e.original_size:
        return " (stored)"
    pct = (1.0 - e.compressed_size / e.original_size) * 100.0 if e.original_size else 0.0
    return f" ({e.compressed_size} -> {e.original_size} bytes, {pct:.1f}% compression)"


class Extractor:
    """Materializes archive entries under a destination in the store."""

    def __init__(self, store: Store, options: Optional[ExtractionOptions] = None):
        self.store = store
        self.options = options or ExtractionOptions()
        if self.options.password:
            raise EncryptionNotSupported(ENCRYPTION_UNSUPPORTED)
        self.filter = ExtractFilter(
            file_patterns=self.options.file_patterns,
            include=self.options.include_patterns,
            exclude=self.options.exclude_patterns,
            case_insensitive=self.options.case_insensitive,
        )
        self.extracted = 0
        self.updated = 0
        self.skipped = 0

    def _target_for(self, e: ArchiveEntry) -> Optional[str]:
        """Destination-relative target, or None if the entry path is unsafe."""
        try:
            rel = norm_path(e.path)
        except ValueError:
            return None
        if e.is_symlink:
            rel = rel[: -len(SYMLINK_SUFFIX)].rstrip("/")
        if self.options.junk_paths:
            rel = basename(rel)
        return rel or None

    def _crosses_symlink(self, dest: str, rel: str, *, include_last: bool) -> bool:
        """True when a directory between ``dest`` and the target is a symlink.

        Directory markers also check the target itself, since makedirs follows links.
        """
        parts = split_parts(rel)
        if not include_last:
            parts = parts[:-1]
        current = dest
        for part in parts:
            current = join(current, part)
            if isinstance(self.store.resolve(current), SymlinkNode):
                return True
        return False

    def _resolve_conflict(self, e: ArchiveEntry, target: str, lines: List[str]) -> Optional[str]:
        """Verb to report when proceeding over an existing target, None to skip."""
        opts = self.options
        if opts.policy == POLICY_NEVER:
            if opts.verbose:
                lines.append(f"  skipping: {e.path} (file exists)")
            return None
        if opts.policy == POLICY_PROMPT:
            # No terminal to ask; answer as a user declining would
            if not opts.quiet:
                lines.append(f"  replace {target}? [y]es, [n]o: n")
                lines.append(f"  skipping: {e.path}")
            return None
        if opts.policy in (POLICY_FRESHEN, POLICY_UPDATE):
            return "updating"
        return "replacing"

    def extract(self, reader: ArchiveReader, destination: Optional[str] = None) -> str:
        """Extract every selected entry of ``reader`` and return the report.

        Store failures (StoreError) propagate and abort the run; anything
        already written stays written.
        """
        opts = self.options
        dest = destination or opts.destination or default_destination(reader.name)
        lines: List[str] = []
        if not opts.quiet:
            lines.append(f"Archive: {reader.name}")
        self.extracted = self.updated = self.skipped = 0

        self.store.makedirs(dest)

        for e in reader.list():
            if not self.filter.accepts(e.path):
                continue
            if e.is_dir and opts.junk_paths:
                continue
            rel = self._target_for(e)
            if rel is None or self._crosses_symlink(dest, rel, include_last=e.is_dir):
                if not opts.quiet:
                    lines.append(f"  skipping: {e.path} (unsafe path)")
                self.skipped += 1
                continue
            target = join(dest, rel)

            existing = self.store.resolve(target)
            if e.is_dir and isinstance(self.store.resolve_following_symlinks(target), DirNode):
                existing = None
            verb = None
            if existing is not None:
                verb = self._resolve_conflict(e, target, lines)
                if verb is None:
                    self.skipped += 1
                    continue

            if e.is_dir:
                if existing is not None:
                    self.store.delete(target)
                self.store.makedirs(target)
                if opts.verbose:
                    lines.append(f"  creating: {target}")
                continue

            up = parent(target)
            if up:
                self.store.makedirs(up)
            if e.is_symlink:
                link_target = e.content.decode("utf-8", errors="replace")
                if existing is not None:
                    self.store.delete(target)
                self.store.create_symlink(target, link_target)
                if opts.verbose:
                    lines.append(f"  linking: {target} -> {link_target}")
            else:
                self.store.create_file(target, e.content)
                if opts.verbose:
                    lines.append(f"  {verb or 'inflating'}: {target}{_compression_note(e)}")
            self.extracted += 1
            if verb == "updating":
                self.updated += 1

        if not opts.quiet:
            lines.append(self._summary(dest))
        return "\n".join(lines)

    def _summary(self, dest: str) -> str:
        parts: List[str] = []
        if self.extracted:
            parts.append(f"{self.extracted} files extracted")
        if self.updated:
            parts.append(f"{self.updated} files updated")
        if self.skipped:
            parts.append(f"{self.skipped} files skipped")
        if not parts:
            return "  no files processed"
        return f"  {', '.join(parts)} to {dest}"

    def counts(self) -> Tuple[int, int, int]:
        return self.extracted, self.updated, self.skipped
