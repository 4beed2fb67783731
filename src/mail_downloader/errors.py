"""Exceptions raised by the mail downloader.

Connection and selection errors are fatal for a run. Fetch and write errors
are scoped to a single message: the pipeline logs them and moves on to the
next message.
"""

from pathlib import Path
from typing import Dict, Mapping, Optional, Union


class MailDownloaderError(Exception):
    """Base class for every error raised by this package."""

    pass


class MailConnectionError(MailDownloaderError):
    """Raised when the IMAP connection or authentication fails.

    This includes network connectivity issues, invalid credentials,
    server unavailability, or SSL/TLS handshake failures.
    """

    pass


class SelectFailure(MailDownloaderError):
    """Raised when the requested folder cannot be selected.

    The folder may not exist, or the server may have rejected the
    selection. Aborts the run.
    """

    pass


class FetchFailure(MailDownloaderError):
    """Raised when a single field fetch for one message fails.

    Covers transport errors, non-OK server replies and responses that
    carry no message data.
    """

    def __init__(self, message_number: int, query: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {query} for message {message_number}: {reason}")
        self.message_number = message_number
        self.query = query
        self.reason = reason


class MaterializeFailure(MailDownloaderError):
    """Raised when one or more of the four fields of a message could not be fetched.

    Attributes:
        message_number: Number of the message that was dropped
        fields: Mapping of field name to whether its fetch succeeded
        failures: The FetchFailure raised for each failed field
    """

    def __init__(
        self,
        message_number: int,
        fields: Mapping[str, bool],
        failures: Optional[Mapping[str, FetchFailure]] = None,
    ) -> None:
        self.message_number = message_number
        self.fields: Dict[str, bool] = dict(fields)
        self.failures: Dict[str, FetchFailure] = dict(failures or {})
        super().__init__(f"Message {message_number} incomplete: {self.summary()}")

    def summary(self) -> str:
        """Return a 'from=True, to=False, ...' description of each field fetch."""
        return ", ".join(f"{name}={ok}" for name, ok in self.fields.items())


class WriteFailure(MailDownloaderError):
    """Raised when a saved message cannot be written to disk."""

    def __init__(self, message_number: int, path: Union[str, Path], cause: OSError) -> None:
        super().__init__(f"Failed to write {path} for message {message_number}: {cause!s}")
        self.message_number = message_number
        self.path = Path(path)
        self.cause = cause


class SaverClosedError(MailDownloaderError):
    """Raised when a message is handed to a saver that has already been closed."""

    pass
