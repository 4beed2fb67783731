"""Tests for command line parsing, settings validation and exit status."""

import unittest
from unittest.mock import patch

from mail_downloader import cli
from mail_downloader.config import Settings
from mail_downloader.errors import MailConnectionError, SelectFailure

REQUIRED = ["-H", "imap.example.com", "-u", "user", "-p", "secret"]


class TestSettings(unittest.TestCase):
    """Test Settings defaults and validation."""

    def make(self, **kwargs) -> Settings:
        values = dict(host="imap.example.com", username="user", password="secret", folder="Archive", port=993)
        values.update(kwargs)
        return Settings(**values)

    def test_output_defaults_to_folder(self):
        settings = self.make()
        self.assertEqual(settings.output, "Archive")
        self.assertEqual(settings.start, 0)
        self.assertIsNone(settings.marker)
        self.assertTrue(settings.cache_headers)

    def test_empty_marker_means_no_filter(self):
        self.assertIsNone(self.make(marker="").marker)

    def test_missing_required_values(self):
        for name in ("host", "username", "password", "folder"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    self.make(**{name: ""})

    def test_invalid_numbers(self):
        for kwargs in ({"start": -1}, {"queue_size": -5}, {"port": 0}, {"port": 70000}):
            with self.subTest(**kwargs):
                with self.assertRaises(ValueError):
                    self.make(**kwargs)


class TestArgumentParsing(unittest.TestCase):
    """Test the argparse surface."""

    def test_short_flags(self):
        args = cli.build_parser().parse_args(
            REQUIRED + ["-f", "Sent", "-o", "backup", "-s", "10", "-m", "ukeep"]
        )
        settings = cli.settings_from_args(args)

        self.assertEqual(settings.host, "imap.example.com")
        self.assertEqual(settings.folder, "Sent")
        self.assertEqual(settings.output, "backup")
        self.assertEqual(settings.start, 10)
        self.assertEqual(settings.marker, "ukeep")

    def test_long_flags(self):
        args = cli.build_parser().parse_args(REQUIRED + [
            "--folder", "INBOX", "--queue-size", "8", "--refetch-headers",
            "--manifest", "index.csv", "--port", "1993", "--log-level", "debug",
        ])
        settings = cli.settings_from_args(args)

        self.assertEqual(settings.output, "INBOX")
        self.assertEqual(settings.queue_size, 8)
        self.assertFalse(settings.cache_headers)
        self.assertEqual(settings.manifest, "index.csv")
        self.assertEqual(settings.port, 1993)
        self.assertEqual(args.log_level, "DEBUG")

    def test_non_numeric_start_is_usage_error(self):
        with self.assertRaises(SystemExit) as ctx:
            cli.build_parser().parse_args(REQUIRED + ["-s", "ten"])
        self.assertEqual(ctx.exception.code, 2)


@patch('mail_downloader.cli.configure_logging')
class TestMain(unittest.TestCase):
    """Test exit status of the entry point."""

    @patch('mail_downloader.cli.download')
    def test_successful_run_exits_zero(self, mock_download, _logging):
        self.assertEqual(cli.main(REQUIRED + ["-f", "INBOX"]), 0)

        settings = mock_download.call_args[0][0]
        self.assertEqual(settings.folder, "INBOX")
        self.assertEqual(settings.output, "INBOX")

    @patch('mail_downloader.cli.download')
    def test_invalid_configuration_exits_one(self, mock_download, _logging):
        with self.assertLogs(level='ERROR'):
            self.assertEqual(cli.main(["-H", "", "-u", "user", "-p", "secret"]), 1)
        mock_download.assert_not_called()

    @patch('mail_downloader.cli.download')
    def test_fatal_errors_exit_one(self, mock_download, _logging):
        for error in (MailConnectionError("login failed"), SelectFailure("no such folder")):
            with self.subTest(error=error):
                mock_download.side_effect = error
                with self.assertLogs(level='ERROR') as logs:
                    self.assertEqual(cli.main(REQUIRED), 1)
                self.assertIn("Download aborted", logs.output[0])


if __name__ == '__main__':
    unittest.main()
