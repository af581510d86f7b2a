#!/usr/bin/env python3

import unittest

from genalyzer.sequence.buffer import SequenceBuffer


class TestSequenceBuffer(unittest.TestCase):
    """Test raw editing and bounds checks."""

    def test_length_and_string(self):
        buffer = SequenceBuffer("ACGTN")
        self.assertEqual(len(buffer), 5)
        self.assertEqual(str(buffer), "ACGTN")
        self.assertEqual(len(SequenceBuffer()), 0)

    def test_out_of_range_raises(self):
        buffer = SequenceBuffer("ACGTN")
        with self.assertRaises(IndexError):
            buffer.set_base_at(5, "A")
        with self.assertRaises(IndexError):
            buffer.set_base_at(-1, "A")
        with self.assertRaises(IndexError):
            buffer.remove_base(10)
        with self.assertRaises(IndexError):
            buffer.insert_base(6, "A")
        self.assertEqual(str(buffer), "ACGTN")

    def test_set_base_at(self):
        buffer = SequenceBuffer("ACGT")
        buffer.set_base_at(3, "A")
        self.assertEqual(str(buffer), "ACGA")

    def test_insert_uppercases_and_appends_at_end(self):
        buffer = SequenceBuffer("AC")
        buffer.insert_base(1, "g")
        buffer.insert_base(3, "t")
        self.assertEqual(str(buffer), "AGCT")

    def test_uppercase_in_place(self):
        buffer = SequenceBuffer("acgn")
        self.assertIs(buffer.uppercase(), buffer)
        self.assertEqual(str(buffer), "ACGN")

    def test_remove_bases_clips_at_end(self):
        buffer = SequenceBuffer("ACGTACGT")
        self.assertEqual(buffer.remove_bases(6, 5), 2)
        self.assertEqual(str(buffer), "ACGTAC")
        self.assertEqual(buffer.remove_bases(0, 0), 0)
        buffer.remove_base(0)
        self.assertEqual(str(buffer), "CGTAC")


if __name__ == "__main__":
    unittest.main()
