"""Lazy per-message access to a selected folder.

A MessageProvider is bound to one message number and fetches each field
only when asked. Providers hold no state besides the session and the
number, so calling an accessor twice performs two round trips.
CachedMessageProvider is the opt-in variant that keeps successful results.
"""

import itertools
import logging
from typing import Dict, Iterable, Iterator

from .errors import FetchFailure, MaterializeFailure
from .models import FIELD_NAMES, FieldContent, Message
from .session import MailSession

logger = logging.getLogger(__name__)

# FETCH data item for each field; PEEK keeps the \Seen flag untouched
FIELD_QUERIES = {
    "from": "BODY.PEEK[HEADER.FIELDS (FROM)]",
    "to": "BODY.PEEK[HEADER.FIELDS (TO)]",
    "subject": "BODY.PEEK[HEADER.FIELDS (SUBJECT)]",
    "body": "BODY.PEEK[TEXT]",
}


class MessageProvider:
    """On-demand field accessors for one message of the selected folder.

    Attributes:
        session: The run's shared IMAP session
        number: 1-based message sequence number
    """

    def __init__(self, session: MailSession, number: int) -> None:
        self.session = session
        self.number = number

    def __repr__(self) -> str:
        return f"{type(self).__name__}(number={self.number})"

    def fetch_field(self, field: str) -> FieldContent:
        """Fetch one field by name ('from', 'to', 'subject' or 'body').

        Raises:
            FetchFailure: If the remote fetch fails
        """
        return self.session.fetch(self.number, FIELD_QUERIES[field])

    def sender(self) -> FieldContent:
        return self.fetch_field("from")

    def recipient(self) -> FieldContent:
        return self.fetch_field("to")

    def subject(self) -> FieldContent:
        return self.fetch_field("subject")

    def body(self) -> FieldContent:
        return self.fetch_field("body")

    def materialize(self) -> Message:
        """Fetch all four fields and build a Message.

        Every field is attempted even after an earlier one fails, so the
        failure reports the status of all four.

        Raises:
            MaterializeFailure: If any field fetch failed
        """
        contents: Dict[str, FieldContent] = {}
        failures: Dict[str, FetchFailure] = {}

        for field in FIELD_NAMES:
            try:
                contents[field] = self.fetch_field(field)
            except FetchFailure as e:
                logger.debug(f"Message {self.number}: {e}")
                failures[field] = e

        if failures:
            status = {field: field in contents for field in FIELD_NAMES}
            raise MaterializeFailure(self.number, status, failures)

        return Message(
            number=self.number,
            sender=contents["from"],
            recipient=contents["to"],
            subject=contents["subject"],
            body=contents["body"],
        )


class CachedMessageProvider(MessageProvider):
    """MessageProvider that fetches each field at most once successfully.

    Failed fetches are not cached; asking again retries the round trip.
    """

    def __init__(self, session: MailSession, number: int) -> None:
        super().__init__(session, number)
        self._cache: Dict[str, FieldContent] = {}

    @classmethod
    def wrap(cls, provider: MessageProvider) -> "CachedMessageProvider":
        if isinstance(provider, cls):
            return provider
        return cls(provider.session, provider.number)

    def fetch_field(self, field: str) -> FieldContent:
        if field not in self._cache:
            self._cache[field] = super().fetch_field(field)
        return self._cache[field]

    def cached_fields(self) -> Dict[str, FieldContent]:
        return dict(self._cache)


def folder_sequence(session: MailSession, message_count: int) -> Iterator[MessageProvider]:
    """Yield one provider per message number, 1 through message_count.

    Advancing the sequence performs no network I/O.
    """
    for number in range(1, message_count + 1):
        yield MessageProvider(session, number)


def skip(providers: Iterable[MessageProvider], count: int) -> Iterator[MessageProvider]:
    """Discard the first `count` providers uninspected.

    Raises:
        ValueError: If count is negative
    """
    if count < 0:
        raise ValueError(f"Skip count must be non-negative, got: {count}")
    return itertools.islice(providers, count, None)
