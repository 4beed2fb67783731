"""Tests for FieldContent and Message records."""

import unittest

from mail_downloader.models import FieldContent, Message, field_file_name


class TestFieldContent(unittest.TestCase):

    def test_contains_searches_concatenated_lines(self):
        content = FieldContent(("To: team@uk", "eep.io\r\n"))
        self.assertTrue(content.contains("ukeep"))
        self.assertFalse(content.contains("UKEEP"))

    def test_from_bytes_keeps_line_endings(self):
        content = FieldContent.from_bytes(b"a\r\nb\nc")
        self.assertEqual(content.lines, ("a\r\n", "b\n", "c"))
        self.assertEqual(content.to_bytes(), b"a\r\nb\nc")

    def test_lists_are_stored_as_tuples(self):
        content = FieldContent.from_lines(["x\n", "y\n"])
        self.assertEqual(content.lines, ("x\n", "y\n"))
        self.assertEqual(hash(content), hash(FieldContent(("x\n", "y\n"))))


class TestMessage(unittest.TestCase):

    def test_message_number_must_be_positive(self):
        empty = FieldContent()
        with self.assertRaises(ValueError):
            Message(0, empty, empty, empty, empty)

    def test_field_file_name(self):
        self.assertEqual(field_file_name(42, "subject"), "42_subject.txt")


if __name__ == '__main__':
    unittest.main()
