"""IMAP session used by the download pipeline.

This module contains the MailSession class which owns the single
authenticated IMAP connection of a run. Every IMAP command goes through
the session's lock, so at most one command is in flight at any instant.
"""

import imaplib
import logging
import threading
from typing import Any, List, Optional

from .errors import FetchFailure, MailConnectionError, SelectFailure
from .models import FieldContent

IMAP_SSL_PORT = 993

# Errors imaplib raises for protocol problems, plus socket and SSL errors
IMAP_ERRORS = (imaplib.IMAP4.error, OSError)

# imaplib encodes command arguments as ASCII and raises UnicodeEncodeError otherwise
IMAP_ARGUMENT_ERRORS = IMAP_ERRORS + (UnicodeError,)


def quote_mailbox(folder: str) -> str:
    """Quote a folder name for use in an IMAP command, unless already quoted."""
    if len(folder) >= 2 and folder.startswith('"') and folder.endswith('"'):
        return folder
    escaped = folder.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _literal_payload(data: List[Any]) -> Optional[bytes]:
    """Return the message data literal from an imaplib FETCH response.

    imaplib returns a list whose message data items are (envelope, literal)
    tuples; plain bytes items are closing parentheses or unsolicited
    responses and are ignored.
    """
    for item in data or []:
        if isinstance(item, tuple) and len(item) >= 2 and isinstance(item[1], bytes):
            return item[1]
    return None


class MailSession:
    """The single shared IMAP connection of a download run.

    Attributes:
        folder: Name of the currently selected folder, or None
    """

    def __init__(self, connection: imaplib.IMAP4) -> None:
        self._connection = connection
        self._lock = threading.Lock()
        self.folder: Optional[str] = None

    @classmethod
    def connect(cls, host: str, username: str, password: str, port: int = IMAP_SSL_PORT) -> "MailSession":
        """Open the run's IMAP connection over SSL and log in.

        Args:
            host: IMAP server hostname
            username: Account login
            password: Account password or app-specific password
            port: IMAP over SSL port

        Returns:
            Logged-in session; no folder is selected yet

        Raises:
            MailConnectionError: If the server is unreachable or the login is
                                 refused (including credentials imaplib
                                 cannot encode as ASCII)
        """
        connection = None
        try:
            logging.info(f"Connecting to IMAP server: {host}:{port}")
            connection = imaplib.IMAP4_SSL(host, port)
            logging.info("IMAP SSL connection established")

            connection.login(username, password)
            logging.info("IMAP login successful")
        except IMAP_ARGUMENT_ERRORS as e:
            logging.error(f"IMAP connection/login failed: {e!s}")
            if connection is not None:
                try:
                    connection.shutdown()
                except OSError:
                    pass
            raise MailConnectionError(f"Failed to connect to IMAP server {host}: {e!s}") from e

        session = cls(connection)
        session.log_capabilities()
        return session

    def log_capabilities(self) -> None:
        """Log server capabilities at debug level."""
        with self._lock:
            try:
                typ, capability_data = self._connection.capability()
            except IMAP_ERRORS as e:
                logging.debug(f"Capability query failed: {e}")
                return

        if typ != 'OK' or not capability_data:
            logging.debug(f"Failed to query capabilities: {typ}")
            return

        for capability in capability_data[0].decode('utf-8', 'replace').split():
            logging.debug(f"capability {capability}")

    def select(self, folder: str) -> int:
        """Select a folder read-only and return its message count.

        Raises:
            SelectFailure: If the folder does not exist or the server rejects the selection
        """
        quoted_folder = quote_mailbox(folder)
        logging.info(f"Selecting folder: {quoted_folder}")

        with self._lock:
            try:
                typ, data = self._connection.select(quoted_folder, readonly=True)
            except IMAP_ARGUMENT_ERRORS as e:
                raise SelectFailure(f"Failed to select folder '{folder}': {e!s}") from e

        if typ != 'OK':
            raise SelectFailure(f"Failed to select folder '{folder}': {data}")

        try:
            message_count = int(data[0])
        except (IndexError, TypeError, ValueError) as e:
            raise SelectFailure(f"Unexpected select response for folder '{folder}': {data}") from e

        self.folder = folder
        logging.info(f"Selected folder {quoted_folder} with {message_count} messages")
        return message_count

    def fetch(self, message_number: int, query: str) -> FieldContent:
        """Fetch one data item for one message.

        Args:
            message_number: 1-based sequence number in the selected folder
            query: FETCH data item, e.g. 'BODY.PEEK[HEADER.FIELDS (FROM)]'

        Returns:
            The returned literal split into lines

        Raises:
            FetchFailure: On any transport or protocol error, a non-OK reply,
                          or a reply without message data
        """
        with self._lock:
            try:
                typ, data = self._connection.fetch(str(message_number), f"({query})")
            except IMAP_ERRORS as e:
                raise FetchFailure(message_number, query, str(e)) from e

        if typ != 'OK':
            raise FetchFailure(message_number, query, f"server replied {typ}: {data}")

        payload = _literal_payload(data)
        if payload is None:
            raise FetchFailure(message_number, query, "response carried no message data")

        logging.debug(f"Fetched {query} for message {message_number} ({len(payload)} bytes)")
        return FieldContent.from_bytes(payload)

    def logout(self) -> None:
        """Safely close the IMAP connection. Errors are logged, not raised."""
        with self._lock:
            try:
                # Only call close() if a folder is selected
                if getattr(self._connection, 'state', None) == 'SELECTED':
                    self._connection.close()
                self._connection.logout()
                logging.info("IMAP connection closed")
            except IMAP_ERRORS as e:
                logging.warning(f"Error closing IMAP connection: {e!s}")
        self.folder = None

    def __enter__(self) -> "MailSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.logout()
