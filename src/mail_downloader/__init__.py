"""Download the messages of an IMAP folder into per-field text files."""

import sys

from . import cli


def main() -> None:
    """Main entry point for the package."""
    sys.exit(cli.main())

__all__ = ['main', 'cli']
