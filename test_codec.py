from __future__ import annotations

import os
import random
import unittest

from ziparc.codec import RunCodec, compress, decompress
from ziparc.errors import CorruptPayloadError


def _samples():
    rng = random.Random(1234)
    yield b""
    yield b"\xff"
    yield b"\xff" * 300
    yield b"hello world"
    yield b"a" * 1000 + b"b" * 3 + b"\xff\x00\xff"
    yield bytes(rng.randrange(256) for _ in range(2048))
    yield bytes(rng.choice(b"\x00\x00\x00\xffab") for _ in range(4096))
    yield os.urandom(512)


class RunCodecTests(unittest.TestCase):
    def test_roundtrip_every_level(self):
        for level in range(10):
            for data in _samples():
                with self.subTest(level=level, size=len(data)):
                    self.assertEqual(decompress(compress(data, level)), data)

    def test_lone_marker_byte_is_escaped(self):
        self.assertEqual(compress(b"\xff", 0), b"\xff\x01\xff")
        self.assertEqual(compress(b"a\xffb", 9), b"a\xff\x01\xffb")

    def test_level_sets_minimum_run(self):
        data = b"x" * 5
        # level 6 wants runs of 6+, level 9 encodes runs of 4+
        self.assertEqual(compress(data, 6), data)
        self.assertEqual(compress(data, 9), b"\xff\x05x")
        self.assertEqual(compress(b"x" * 10, 0), b"x" * 10)

    def test_runs_are_capped(self):
        out = compress(b"z" * 300, 9)
        self.assertEqual(out, b"\xff\xffz\xff\x2dz")

    def test_higher_levels_never_grow_runs(self):
        data = b"q" * 40 + b"abc" * 10 + b"r" * 7
        sizes = [len(compress(data, level)) for level in range(1, 10)]
        self.assertEqual(sizes, sorted(sizes, reverse=True))

    def test_truncated_record(self):
        with self.assertRaises(CorruptPayloadError):
            decompress(b"ab\xff\x05")

    def test_zero_length_record(self):
        with self.assertRaises(CorruptPayloadError):
            decompress(b"\xff\x00a")

    def test_invalid_level(self):
        with self.assertRaises(ValueError):
            compress(b"abc", 10)
        with self.assertRaises(ValueError):
            RunCodec(-1)

    def test_codec_object(self):
        codec = RunCodec(9)
        blob = codec.compress(b"\x00" * 64)
        self.assertEqual(len(blob), 3)
        self.assertEqual(codec.decompress(blob), b"\x00" * 64)


if __name__ == "__main__":
    unittest.main()
