from __future__ import annotations

from typing import List, Optional, Sequence, Set

from .archive import Archive
from .constants import CONTAINER_EXT, DIR_SUFFIX, ENCRYPTION_UNSUPPORTED, SYMLINK_SUFFIX, level_description
from .container import encode_archive
from .errors import (
    EncryptionNotSupported,
    IntegrityError,
    NotAFileError,
    NothingToDoError,
    PolicyViolation,
    SourceNotFoundError,
    StoreError,
    StructuralError,
)
from .options import BuildOptions
from .pathutil import basename, join, stored_path
from .pattern import BuildFilter
from .reader import ArchiveReader
from .store import DirNode, FileNode, Node, Store, SymlinkNode


def archive_file_name(name: str) -> str:
    return name if name.endswith(CONTAINER_EXT) else name + CONTAINER_EXT


class ArchiveBuilder:
    """Collects store nodes into an Archive and writes the container back to the store."""

    def __init__(self, store: Store, options: Optional[BuildOptions] = None):
        self.store = store
        self.options = options or BuildOptions()
        if self.options.encrypt:
            raise EncryptionNotSupported(ENCRYPTION_UNSUPPORTED)
        self.filter = BuildFilter(
            include=self.options.include_patterns,
            exclude=self.options.exclude_patterns,
            exclude_suffixes=self.options.exclude_suffixes,
        )
        self.archive_name = ""
        self.archived: Set[str] = set()
        self._lines: List[str] = []

    def build(self, archive_name: str, sources: Sequence[str]) -> str:
        """Create (or, in update mode, merge into) ``archive_name``.

        Returns:
            The textual report; empty when quiet.

        Raises:
            NothingToDoError: no sources given, or nothing qualified outside update mode.
            SourceNotFoundError: a source path does not exist.
            PolicyViolation: a directory was given without ``recursive``.
            StoreError: the container could not be written.
            IntegrityError: test mode found a mismatch in the written container.
        """
        opts = self.options
        if not sources:
            raise NothingToDoError("nothing to do! (try: zip -r archive.zip /path/to/files)")
        self.archive_name = archive_file_name(archive_name)
        self.archived = set()
        self._lines = []

        archive = Archive(opts.compression_level)
        existing_count = 0
        if opts.update:
            loaded = self._load_existing()
            if loaded is not None:
                archive = loaded
                existing_count = len(archive)
                if archive.compression_level != opts.compression_level:
                    archive.recompress(opts.compression_level)

        for src in sources:
            self._collect(src, archive, top=True)

        if not len(archive) and not opts.update:
            raise NothingToDoError("no files found to compress")

        data = encode_archive(archive)
        self.store.create_file(self.archive_name, data)

        report: List[str] = []
        if not opts.quiet:
            action = "updated" if opts.update and existing_count else "created"
            report.append(
                f"  {action} archive '{self.archive_name}' with {level_description(opts.compression_level)} "
                f"({len(archive)} files, {len(data)} bytes)"
            )
            report.extend(self._lines)

        if opts.test_integrity:
            result = ArchiveReader(data, name=self.archive_name).test()
            if not result.ok:
                raise IntegrityError(result.render())
            if not opts.quiet:
                report.append(result.render())

        if opts.move_files:
            warnings: List[str] = []
            for src in sources:
                self._move(src, warnings, top=True)
            if not opts.quiet:
                report.extend(warnings)

        return "\n".join(report)

    # collection

    def _load_existing(self) -> Optional[Archive]:
        node = self.store.resolve_following_symlinks(self.archive_name, physical=False)
        if node is None:
            return None
        if not isinstance(node, FileNode):
            raise NotAFileError(f"'{self.archive_name}' is not a file")
        try:
            return ArchiveReader(node.content, name=self.archive_name).archive
        except StructuralError as exc:
            raise StructuralError(f"existing archive is corrupted or not a zip file: {exc}") from exc

    def _lookup(self, path: str, top: bool) -> Optional[Node]:
        # Named sources are dereferenced; links found while recursing are kept as links
        if top:
            node = self.store.resolve_following_symlinks(path, physical=False)
            if node is not None:
                return node
        return self.store.resolve(path)

    def _note(self, line: str) -> None:
        if self.options.verbose:
            self._lines.append(line)

    def _collect(self, path: str, archive: Archive, *, top: bool) -> None:
        opts = self.options
        node = self._lookup(path, top)
        if node is None:
            raise SourceNotFoundError(f"cannot access '{path}': No such file or directory")
        arc = basename(path) if opts.junk_paths else stored_path(path)

        if isinstance(node, FileNode):
            if stored_path(path) == stored_path(self.archive_name):
                return
            self._add_file(path, arc, node.content, archive)
        elif isinstance(node, DirNode):
            if not opts.recursive:
                raise PolicyViolation(f"'{path}' is a directory (use -r to include directories)")
            if not opts.junk_paths and arc:
                marker = arc + DIR_SUFFIX
                if self.filter.accepts(marker):
                    archive.add(marker, b"")
                    self._note(f"  adding: {marker}")
            for child in node.child_names():
                self._collect(join(path, child), archive, top=False)
        elif isinstance(node, SymlinkNode):
            if self.filter.accepts(arc):
                archive.add(arc + SYMLINK_SUFFIX, node.target.encode("utf-8"))
                self.archived.add(path)
                self._note(f"  adding: {arc} -> {node.target}")
            else:
                self._note(f"  excluding: {arc}")

    def _add_file(self, path: str, arc: str, content: bytes, archive: Archive) -> None:
        if not self.filter.accepts(arc):
            self._note(f"  excluding: {arc}")
            return
        prior = archive.get(arc)
        if self.options.update and prior is not None and prior.content == content:
            self.archived.add(path)
            self._note(f"  skipping: {arc} (unchanged)")
            return
        archive.add(arc, content)
        self.archived.add(path)
        action = "updating" if prior is not None else "adding"
        self._note(f"  {action}: {arc} ({len(content)} bytes)")

    # move mode

    def _delete(self, path: str, warnings: List[str]) -> None:
        try:
            self.store.delete(path)
        except StoreError as exc:
            warnings.append(f"zip: warning: failed to delete '{path}': {exc}")

    def _move(self, path: str, warnings: List[str], *, top: bool = False) -> None:
        node = self._lookup(path, top)
        if node is None:
            return
        if isinstance(node, DirNode):
            if not self.options.recursive:
                raise PolicyViolation(f"'{path}' is a directory (use -r to delete directories)")
            for child in node.child_names():
                self._move(join(path, child), warnings)
            if not stored_path(path):
                return
            after = self.store.resolve(path)
            if isinstance(after, DirNode) and not after.child_names():
                self._delete(path, warnings)
        elif path in self.archived:
            self._delete(path, warnings)
