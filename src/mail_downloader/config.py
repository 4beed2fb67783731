"""Configuration module for the mail downloader.

This module loads default values from environment variables (and a .env
file) and defines the Settings record the pipeline runs from. Command line
flags override the environment defaults.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file for configuration
# This allows secure credential storage outside the codebase
load_dotenv()

# Defaults read once at startup
IMAP_SERVER = os.getenv("IMAP_SERVER")
IMAP_PORT = int(os.getenv("IMAP_PORT", "993"))  # IMAP over SSL
EMAIL_ADDRESS = os.getenv("EMAIL_ADDRESS")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
MAIL_FOLDER = os.getenv("MAIL_FOLDER", "INBOX")
MAIL_MARKER = os.getenv("MAIL_MARKER") or None
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass
class Settings:
    """Validated parameters of one download run.

    Attributes:
        host: IMAP server hostname
        username: Account login
        password: Account password or app-specific password
        folder: Folder to download from
        output: Output directory (defaults to the folder name)
        start: Number of leading messages to skip (default: 0)
        marker: Substring a sender or recipient must contain (optional)
        port: IMAP over SSL port (default: 993)
        queue_size: Bound on messages waiting to be written; 0 is unbounded
        cache_headers: Reuse sender/recipient fetched by the filter (default: True)
        manifest: Path of a CSV index of saved messages (optional)
    """
    host: Optional[str]
    username: Optional[str]
    password: Optional[str]
    folder: str = MAIL_FOLDER
    output: Optional[str] = None
    start: int = 0
    marker: Optional[str] = None
    port: int = IMAP_PORT
    queue_size: int = 0
    cache_headers: bool = True
    manifest: Optional[str] = None

    def __post_init__(self) -> None:
        """Fill in derived defaults and validate after object creation."""
        if not self.output:
            self.output = self.folder
        if not self.marker:
            self.marker = None
        self.validate()

    def validate(self) -> None:
        """Validate required values and numeric ranges.

        Raises:
            ValueError: If a required value is missing or a number is out of range
        """
        for name in ("host", "username", "password", "folder"):
            if not getattr(self, name):
                raise ValueError(f"Missing required setting: {name}")

        if self.start < 0:
            raise ValueError(f"start must be non-negative, got: {self.start}")
        if self.queue_size < 0:
            raise ValueError(f"queue_size must be non-negative, got: {self.queue_size}")
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be between 1 and 65535, got: {self.port}")
