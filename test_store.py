from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from ziparc.errors import StoreError
from ziparc.store import DirNode, FileNode, LocalStore, MemoryStore, SymlinkNode


def _symlinks_available() -> bool:
    return hasattr(os, "symlink") and os.name != "nt"


class MemoryStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.store.makedirs("a/b/c")
        self.store.create_file("a/b/c/data.txt", b"payload")
        self.store.create_file("a/top.txt", b"top")

    def test_resolve_kinds(self):
        self.assertIsInstance(self.store.resolve("a/b"), DirNode)
        node = self.store.resolve("a/b/c/data.txt")
        self.assertIsInstance(node, FileNode)
        self.assertEqual(node.kind, "file")
        self.assertEqual(node.content, b"payload")
        self.assertIsNone(self.store.resolve("a/missing"))
        self.assertIsInstance(self.store.resolve(""), DirNode)

    def test_list_dir_sorted(self):
        self.store.create_file("a/alpha", b"")
        self.assertEqual(self.store.list_dir("a"), ["alpha", "b", "top.txt"])
        with self.assertRaises(StoreError):
            self.store.list_dir("a/top.txt")

    def test_create_file_requires_parent(self):
        with self.assertRaises(StoreError):
            self.store.create_file("nowhere/x.txt", b"x")

    def test_create_file_replaces_file_not_dir(self):
        self.store.create_file("a/top.txt", b"new")
        self.assertEqual(self.store.resolve("a/top.txt").content, b"new")
        with self.assertRaises(StoreError):
            self.store.create_file("a/b", b"x")

    def test_create_dir_is_idempotent(self):
        self.store.create_dir("a/b")
        self.assertIsInstance(self.store.resolve("a/b/c"), DirNode)
        with self.assertRaises(StoreError):
            self.store.create_dir("a/top.txt")

    def test_makedirs_through_file_fails(self):
        with self.assertRaises(StoreError):
            self.store.makedirs("a/top.txt/deeper")

    def test_symlink_resolution(self):
        self.store.create_symlink("link", "a/b")
        self.assertIsInstance(self.store.resolve("link"), SymlinkNode)
        self.assertEqual(self.store.resolve("link").target, "a/b")
        self.assertIsInstance(self.store.resolve_following_symlinks("link"), DirNode)
        self.assertIsInstance(self.store.resolve("link/c"), DirNode)
        self.assertIsNone(self.store.resolve_following_symlinks("link/c", physical=True))
        self.assertIsInstance(self.store.resolve_following_symlinks("link", physical=True), SymlinkNode)

    def test_relative_symlink_and_loops(self):
        self.store.create_symlink("a/b/up", "../top.txt")
        self.assertEqual(self.store.resolve_following_symlinks("a/b/up").content, b"top")
        self.store.create_symlink("loop1", "loop2")
        self.store.create_symlink("loop2", "loop1")
        self.assertIsNone(self.store.resolve_following_symlinks("loop1"))

    def test_create_symlink_refuses_existing(self):
        with self.assertRaises(StoreError):
            self.store.create_symlink("a/top.txt", "elsewhere")

    def test_delete(self):
        with self.assertRaises(StoreError):
            self.store.delete("a/b")
        self.store.delete("a/b/c/data.txt")
        self.store.delete("a/b/c")
        self.assertIsNone(self.store.resolve("a/b/c"))
        with self.assertRaises(StoreError):
            self.store.delete("a/b/c")

    def test_absolute_paths_share_root(self):
        self.store.makedirs("/out/dir")
        self.store.create_file("/out/dir/f", b"1")
        self.assertEqual(self.store.resolve("out/dir/f").content, b"1")


class LocalStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.root = Path(self.tmp.name)
        (self.root / "docs").mkdir()
        (self.root / "docs" / "a.txt").write_bytes(b"alpha")
        self.store = LocalStore(str(self.root))

    def test_resolve(self):
        node = self.store.resolve("docs/a.txt")
        self.assertIsInstance(node, FileNode)
        self.assertEqual(node.content, b"alpha")
        self.assertIsInstance(self.store.resolve("docs"), DirNode)
        self.assertEqual(self.store.resolve("docs").child_names(), ["a.txt"])
        self.assertIsNone(self.store.resolve("nope"))

    def test_absolute_path(self):
        node = self.store.resolve(str(self.root / "docs" / "a.txt"))
        self.assertEqual(node.content, b"alpha")

    def test_create_and_delete(self):
        self.store.makedirs("out/nested")
        self.store.create_file("out/nested/b.bin", b"\x00\x01")
        self.assertEqual((self.root / "out" / "nested" / "b.bin").read_bytes(), b"\x00\x01")
        with self.assertRaises(StoreError):
            self.store.delete("out/nested")
        self.store.delete("out/nested/b.bin")
        self.store.delete("out/nested")
        self.assertFalse((self.root / "out" / "nested").exists())

    def test_create_file_requires_parent(self):
        with self.assertRaises(StoreError):
            self.store.create_file("missing/x", b"x")

    def test_create_file_over_directory(self):
        with self.assertRaises(StoreError):
            self.store.create_file("docs", b"x")

    @unittest.skipUnless(_symlinks_available(), "symlinks not supported")
    def test_symlinks(self):
        self.store.create_symlink("docs/link", "a.txt")
        self.assertTrue(os.path.islink(self.root / "docs" / "link"))
        node = self.store.resolve("docs/link")
        self.assertIsInstance(node, SymlinkNode)
        self.assertEqual(node.target, "a.txt")
        self.assertEqual(self.store.resolve_following_symlinks("docs/link").content, b"alpha")
        with self.assertRaises(StoreError):
            self.store.create_symlink("docs/link", "other")
        self.store.delete("docs/link")
        self.assertFalse(os.path.lexists(self.root / "docs" / "link"))

    @unittest.skipUnless(_symlinks_available(), "symlinks not supported")
    def test_physical_lookup_stops_at_symlinked_dir(self):
        os.symlink("docs", self.root / "alias")
        self.assertIsInstance(self.store.resolve_following_symlinks("alias/a.txt"), FileNode)
        self.assertIsNone(self.store.resolve_following_symlinks("alias/a.txt", physical=True))


if __name__ == "__main__":
    unittest.main()
