"""Command line entry point for the mail downloader."""

import argparse
import logging
from typing import List, Optional

from . import config
from .config import Settings
from .errors import MailDownloaderError
from .pipeline import download

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; defaults come from the environment."""
    parser = argparse.ArgumentParser(
        prog="mail-downloader",
        description="Download every message of an IMAP folder into per-field text files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-H", "--host", default=config.IMAP_SERVER, metavar="HOST_NAME",
                        help="IMAP server hostname (env: IMAP_SERVER)")
    parser.add_argument("-u", "--username", default=config.EMAIL_ADDRESS, metavar="USERNAME",
                        help="Account login (env: EMAIL_ADDRESS)")
    parser.add_argument("-p", "--password", default=config.EMAIL_PASSWORD, metavar="PASSWORD",
                        help="Account password (env: EMAIL_PASSWORD)")
    parser.add_argument("-f", "--folder", default=config.MAIL_FOLDER, metavar="EMAIL_FOLDER_NAME",
                        help="Selects email folder (env: MAIL_FOLDER, default: %(default)s)")
    parser.add_argument("-o", "--output", default=None, metavar="OUTPUT_FOLDER_NAME",
                        help="Output directory (defaults to the folder name)")
    parser.add_argument("-s", "--start", type=int, default=0, metavar="N",
                        help="Skip the first N messages of the folder")
    parser.add_argument("-m", "--marker", default=config.MAIL_MARKER, metavar="TEXT",
                        help="Only keep messages whose From or To contains TEXT (env: MAIL_MARKER)")
    parser.add_argument("--port", type=int, default=config.IMAP_PORT,
                        help="IMAP over SSL port (env: IMAP_PORT, default: %(default)s)")
    parser.add_argument("--queue-size", type=int, default=0, metavar="N",
                        help="Maximum messages waiting to be written; 0 is unbounded")
    parser.add_argument("--refetch-headers", action="store_true",
                        help="Fetch From and To again when materializing instead of reusing the filter's results")
    parser.add_argument("--manifest", default=None, metavar="PATH",
                        help="Write a CSV index of saved messages to PATH")
    parser.add_argument("--log-level", default=config.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper, help="Logging level (env: LOG_LEVEL, default: %(default)s)")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Build validated Settings from parsed arguments.

    Raises:
        ValueError: If a required value is missing or out of range
    """
    return Settings(
        host=args.host,
        username=args.username,
        password=args.password,
        folder=args.folder,
        output=args.output,
        start=args.start,
        marker=args.marker,
        port=args.port,
        queue_size=args.queue_size,
        cache_headers=not args.refetch_headers,
        manifest=args.manifest,
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the downloader and return the process exit status.

    Returns 0 when the run completes, even if some messages were dropped,
    and 1 on a configuration, connection or folder selection error.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = settings_from_args(args)
    except ValueError as e:
        logging.error(f"Invalid configuration: {e!s}")
        return 1

    try:
        download(settings)
    except MailDownloaderError as e:
        logging.error(f"Download aborted: {e!s}")
        return 1

    return 0
