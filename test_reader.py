from __future__ import annotations

import struct
import unittest

from ziparc.archive import Archive
from ziparc.constants import CONTAINER_MAGIC
from ziparc.container import encode_archive
from ziparc.errors import ArchiveNotFoundError, CorruptPayloadError, NotAFileError
from ziparc.reader import ArchiveReader, fold_checksum, method_name, read_archive
from ziparc.store import MemoryStore


def _raw_container(level: int, entries) -> bytes:
    """Hand-built container: entries are (path, original_size, payload) triples."""
    out = bytearray(CONTAINER_MAGIC + struct.pack("<IB", len(entries), level))
    for path, original_size, payload in entries:
        raw = path.encode("utf-8")
        out += struct.pack("<I", len(raw)) + raw
        out += struct.pack("<II", original_size, len(payload)) + payload
    return bytes(out)


class ListingTests(unittest.TestCase):
    def setUp(self):
        arc = Archive(6)
        arc.add("docs/", b"")
        arc.add("docs/a.txt", b"a" * 100)
        arc.add("docs/b.txt", b"hello world")
        arc.add("notes.md", b"# notes\n")
        self.arc = arc
        self.reader = ArchiveReader(encode_archive(arc), name="sample.zip")

    def _total_line(self, text: str) -> str:
        return text.splitlines()[-1]

    def test_totals_match_entries(self):
        text = self.reader.render_listing()
        total = sum(e.original_size for e in self.arc.entries.values())
        fields = self._total_line(text).split()
        self.assertEqual(int(fields[0]), total)
        self.assertEqual(fields[1:], ["4", "files"])
        self.assertTrue(text.startswith("Archive: sample.zip"))

    def test_verbose_listing(self):
        text = self.reader.render_listing(verbose=True)
        self.assertIn("CRC-32", text)
        row = [line for line in text.splitlines() if line.endswith("docs/a.txt")][0]
        self.assertIn("Maximum", row)
        self.assertIn(f"{fold_checksum(b'a' * 100):x}", row)
        fields = self._total_line(text).split()
        self.assertEqual(int(fields[0]), sum(e.original_size for e in self.arc))
        self.assertEqual(int(fields[1]), sum(e.compressed_size for e in self.arc))

    def test_listing_selection_limits_totals(self):
        text = self.reader.render_listing(select=lambda p: p.endswith(".txt"))
        fields = self._total_line(text).split()
        self.assertEqual(int(fields[0]), 111)
        self.assertEqual(fields[1], "2")
        self.assertNotIn("notes.md", text)

    def test_method_names(self):
        self.assertEqual(method_name(10, 10), "Stored")
        self.assertEqual(method_name(100, 90), "Fast")
        self.assertEqual(method_name(100, 70), "Normal")
        self.assertEqual(method_name(100, 3), "Maximum")

    def test_fold_checksum_wraps(self):
        self.assertEqual(fold_checksum(b""), 0)
        self.assertEqual(fold_checksum(b"\x01\x02"), 3)


class IntegrityTests(unittest.TestCase):
    def test_clean_archive_passes(self):
        arc = Archive(9)
        arc.add("a/", b"")
        arc.add("a/b", b"b" * 50)
        report = ArchiveReader(encode_archive(arc), name="ok.zip").test()
        self.assertTrue(report.ok)
        self.assertIn("archive integrity test passed: 2 files verified", report.render())

    def test_mismatch_reported_without_stopping(self):
        data = _raw_container(
            0,
            [
                ("a.txt", 5, b"abc"),
                ("b.txt", 3, b"xyz"),
                ("dir/", 9, b""),
                ("z.txt", 4, b"\xff\x04z"),
            ],
        )
        report = ArchiveReader(data, name="bad.zip").test()
        self.assertFalse(report.ok)
        self.assertEqual(len(report.checks), 4)
        self.assertEqual([c.path for c in report.failures], ["a.txt"])
        text = report.render()
        self.assertIn("testing: a.txt ... ERROR (size mismatch: expected 5, got 3)", text)
        self.assertIn("testing: b.txt ... OK", text)
        self.assertIn("testing: dir/ ... OK", text)
        self.assertIn("testing: z.txt ... OK", text)
        self.assertIn("archive integrity test failed: 1 errors in 4 files", text)

    def test_corrupt_payload_names_entry(self):
        data = _raw_container(6, [("bad.bin", 10, b"\xff\x0a")])
        with self.assertRaises(CorruptPayloadError) as cm:
            ArchiveReader(data)
        self.assertIn("bad.bin", str(cm.exception))


class ReadArchiveTests(unittest.TestCase):
    def test_missing_archive(self):
        with self.assertRaises(ArchiveNotFoundError):
            read_archive(MemoryStore(), "nope.zip")

    def test_directory_is_not_an_archive(self):
        store = MemoryStore()
        store.create_dir("folder.zip")
        with self.assertRaises(NotAFileError):
            read_archive(store, "folder.zip")

    def test_reads_through_symlink(self):
        store = MemoryStore()
        arc = Archive(6)
        arc.add("x", b"1")
        store.create_file("real.zip", encode_archive(arc))
        store.create_symlink("alias.zip", "real.zip")
        reader = read_archive(store, "alias.zip")
        self.assertEqual(reader.name, "alias.zip")
        self.assertEqual(reader.entries["x"].content, b"1")


if __name__ == "__main__":
    unittest.main()
