from __future__ import annotations

"""
Hierarchical stores the archive engine reads from and writes into.

Paths are '/'-separated. ``resolve`` looks a node up without dereferencing the
final component (lstat semantics); ``resolve_following_symlinks`` either
dereferences everything (``physical=False``) or nothing at all
(``physical=True``). Mutations raise StoreError when a precondition fails:
missing parent, a directory in the way, or an occupied symlink path.
"""

import os
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Union

from .errors import StoreError
from .pathutil import basename, join, parent, split_parts


_MAX_SYMLINK_HOPS = 16


@dataclass
class FileNode:
    name: str
    content: bytes
    kind: ClassVar[str] = "file"


@dataclass
class SymlinkNode:
    name: str
    target: str
    kind: ClassVar[str] = "symlink"


@dataclass
class DirNode:
    name: str
    children: Dict[str, "Node"] = field(default_factory=dict)
    kind: ClassVar[str] = "dir"

    def child_names(self) -> List[str]:
        return sorted(self.children)


Node = Union[FileNode, DirNode, SymlinkNode]


class Store:
    """Contract consumed by the builder (read side) and extractor (write side)."""

    def resolve(self, path: str) -> Optional[Node]:
        raise NotImplementedError

    def resolve_following_symlinks(self, path: str, physical: bool = False) -> Optional[Node]:
        raise NotImplementedError

    def create_file(self, path: str, data: bytes) -> None:
        raise NotImplementedError

    def create_dir(self, path: str) -> None:
        raise NotImplementedError

    def create_symlink(self, path: str, target: str) -> None:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError

    # helpers shared by every store

    def list_dir(self, path: str) -> List[str]:
        node = self.resolve_following_symlinks(path, physical=False)
        if not isinstance(node, DirNode):
            raise StoreError(f"Directory not found: {path}")
        return node.child_names()

    def makedirs(self, path: str) -> None:
        """Create ``path`` and any missing parents; existing directories are kept."""
        current = "/" if path.startswith("/") else ""
        for part in split_parts(path):
            current = join(current, part)
            node = self.resolve_following_symlinks(current, physical=False)
            if node is None:
                self.create_dir(current)
            elif not isinstance(node, DirNode):
                raise StoreError(f"cannot create directory '{current}': not a directory")


class MemoryStore(Store):
    """Virtual tree held in memory; relative paths are taken from the root."""

    def __init__(self):
        self.root = DirNode(name="/")

    def _lookup(self, path: str, *, follow_last: bool, follow_mid: bool = True) -> Optional[Node]:
        pending = split_parts(path)
        stack: List[DirNode] = [self.root]
        hops = 0
        while pending:
            comp = pending.pop(0)
            if comp == "..":
                if len(stack) > 1:
                    stack.pop()
                continue
            child = stack[-1].children.get(comp)
            if child is None:
                return None
            is_last = not pending
            if isinstance(child, SymlinkNode) and follow_mid and (follow_last or not is_last):
                hops += 1
                if hops > _MAX_SYMLINK_HOPS:
                    return None
                if child.target.startswith("/"):
                    stack = [self.root]
                pending = split_parts(child.target) + pending
                continue
            if is_last:
                return child
            if not isinstance(child, DirNode):
                return None
            stack.append(child)
        return stack[-1]

    def resolve(self, path: str) -> Optional[Node]:
        return self._lookup(path, follow_last=False)

    def resolve_following_symlinks(self, path: str, physical: bool = False) -> Optional[Node]:
        if physical:
            return self._lookup(path, follow_last=False, follow_mid=False)
        return self._lookup(path, follow_last=True)

    def _parent_dir(self, path: str) -> tuple[DirNode, str]:
        name = basename(path)
        if name in ("", ".", ".."):
            raise StoreError(f"invalid path: '{path}'")
        node = self.resolve_following_symlinks(parent(path), physical=False)
        if not isinstance(node, DirNode):
            raise StoreError(f"Parent directory not found: {path}")
        return node, name

    def create_file(self, path: str, data: bytes) -> None:
        d, name = self._parent_dir(path)
        existing = d.children.get(name)
        if isinstance(existing, DirNode):
            raise StoreError(f"Is a directory: {path}")
        d.children[name] = FileNode(name=name, content=bytes(data))

    def create_dir(self, path: str) -> None:
        d, name = self._parent_dir(path)
        existing = d.children.get(name)
        if existing is not None:
            if isinstance(self.resolve_following_symlinks(path), DirNode):
                return
            raise StoreError(f"File exists: {path}")
        d.children[name] = DirNode(name=name)

    def create_symlink(self, path: str, target: str) -> None:
        d, name = self._parent_dir(path)
        if name in d.children:
            raise StoreError(f"File exists: {path}")
        d.children[name] = SymlinkNode(name=name, target=target)

    def delete(self, path: str) -> None:
        d, name = self._parent_dir(path)
        node = d.children.get(name)
        if node is None:
            raise StoreError(f"Node not found: {path}")
        if isinstance(node, DirNode) and node.children:
            raise StoreError(f"Directory not empty: {path}")
        del d.children[name]


class LocalDirNode(DirNode):
    """Directory on disk; children are listed on demand."""

    def __init__(self, name: str, fs_path: str):
        super().__init__(name=name)
        self.fs_path = fs_path

    def child_names(self) -> List[str]:
        try:
            return sorted(os.listdir(self.fs_path))
        except OSError as exc:
            raise StoreError(f"cannot list '{self.fs_path}': {exc}") from exc


class LocalStore(Store):
    """Store backed by the real filesystem; relative paths start at ``root``."""

    def __init__(self, root: str = "."):
        self.root = os.path.abspath(root)

    def _fs(self, path: str) -> str:
        if os.path.isabs(path):
            return os.path.normpath(path)
        return os.path.normpath(os.path.join(self.root, path))

    def _node_at(self, fs_path: str, name: str, *, follow: bool) -> Optional[Node]:
        if not follow and os.path.islink(fs_path):
            return SymlinkNode(name=name, target=os.readlink(fs_path))
        if os.path.isdir(fs_path):
            return LocalDirNode(name=name, fs_path=fs_path)
        if os.path.isfile(fs_path):
            try:
                with open(fs_path, "rb") as fh:
                    return FileNode(name=name, content=fh.read())
            except OSError as exc:
                raise StoreError(f"cannot read '{fs_path}': {exc}") from exc
        return None

    def resolve(self, path: str) -> Optional[Node]:
        return self._node_at(self._fs(path), basename(path), follow=False)

    def resolve_following_symlinks(self, path: str, physical: bool = False) -> Optional[Node]:
        fs_path = self._fs(path)
        if physical:
            probe = "/" if path.startswith("/") else self.root
            parts = split_parts(path)
            for part in parts[:-1]:
                probe = os.path.join(probe, part)
                if os.path.islink(probe):
                    return None
            return self._node_at(fs_path, basename(path), follow=False)
        return self._node_at(fs_path, basename(path), follow=True)

    def _require_parent(self, fs_path: str, path: str) -> None:
        if not os.path.isdir(os.path.dirname(fs_path)):
            raise StoreError(f"Parent directory not found: {path}")

    def create_file(self, path: str, data: bytes) -> None:
        fs_path = self._fs(path)
        self._require_parent(fs_path, path)
        try:
            if os.path.islink(fs_path):
                os.unlink(fs_path)
            elif os.path.isdir(fs_path):
                raise StoreError(f"Is a directory: {path}")
            with open(fs_path, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise StoreError(f"cannot write '{path}': {exc}") from exc

    def create_dir(self, path: str) -> None:
        fs_path = self._fs(path)
        if os.path.isdir(fs_path):
            return
        if os.path.lexists(fs_path):
            raise StoreError(f"File exists: {path}")
        self._require_parent(fs_path, path)
        try:
            os.mkdir(fs_path)
        except OSError as exc:
            raise StoreError(f"cannot create directory '{path}': {exc}") from exc

    def create_symlink(self, path: str, target: str) -> None:
        fs_path = self._fs(path)
        if os.path.lexists(fs_path):
            raise StoreError(f"File exists: {path}")
        self._require_parent(fs_path, path)
        try:
            os.symlink(target, fs_path)
        except (OSError, NotImplementedError) as exc:
            raise StoreError(f"cannot create symlink '{path}': {exc}") from exc

    def delete(self, path: str) -> None:
        fs_path = self._fs(path)
        if not os.path.lexists(fs_path):
            raise StoreError(f"Node not found: {path}")
        try:
            if os.path.isdir(fs_path) and not os.path.islink(fs_path):
                os.rmdir(fs_path)
            else:
                os.unlink(fs_path)
        except OSError as exc:
            raise StoreError(f"cannot delete '{path}': {exc}") from exc
