"""Download pipeline: select, skip, filter, materialize, save.

The fetch loop runs on the calling thread and owns every IMAP command;
the MessageSaver thread only writes files. Per-message errors are logged
once and never abort the run.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from .config import Settings
from .errors import MaterializeFailure
from .filters import Predicate, accept_all, build_filter
from .manifest import write_manifest
from .models import Message
from .provider import CachedMessageProvider, MessageProvider, folder_sequence, skip
from .saver import MessageSaver
from .session import MailSession

logger = logging.getLogger(__name__)


@dataclass
class RunStats:
    """Counters for one run.

    Attributes:
        total: Messages in the selected folder
        skipped: Messages skipped by the start offset
        candidates: Messages offered to the filter
        excluded: Messages rejected by the filter
        dropped: Messages that failed to materialize
        queued: Messages handed to the saver
        saved: Messages written to disk
        write_failures: Messages that hit a write error
    """
    total: int = 0
    skipped: int = 0
    candidates: int = 0
    excluded: int = 0
    dropped: int = 0
    queued: int = 0
    saved: int = 0
    write_failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def materialize(provider: MessageProvider) -> Optional[Message]:
    """Fetch all fields of `provider`; log and return None if any fetch fails."""
    try:
        return provider.materialize()
    except MaterializeFailure as e:
        logger.error(f"Message {e.message_number} dropped: FetchFailure ({e.summary()})")
        return None


class Downloader:
    """Walks one folder and hands every kept message to a saver.

    Attributes:
        session: The run's IMAP session
        saver: Sink for completed messages
        start: Number of leading messages to skip
        predicate: Inclusion test applied before materializing
        cache_headers: Whether sender/recipient fetched by the filter are reused
    """

    def __init__(
        self,
        session: MailSession,
        saver: MessageSaver,
        start: int = 0,
        predicate: Predicate = accept_all,
        cache_headers: bool = True,
    ) -> None:
        if start < 0:
            raise ValueError(f"start must be non-negative, got: {start}")
        self.session = session
        self.saver = saver
        self.start = start
        self.predicate = predicate
        self.cache_headers = cache_headers

    def run(self, folder: str) -> RunStats:
        """Select `folder` and download every kept message of it.

        Raises:
            SelectFailure: If the folder cannot be selected
        """
        return self.walk(self.session.select(folder))

    def walk(self, message_count: int) -> RunStats:
        """Download the kept messages of the already selected folder."""
        stats = RunStats()
        stats.total = message_count
        stats.skipped = min(self.start, stats.total)
        if self.start:
            logger.info(f"Skipping first {stats.skipped} of {stats.total} messages")

        for provider in skip(folder_sequence(self.session, stats.total), self.start):
            stats.candidates += 1
            logger.debug(f"Loading message {provider.number}")

            if self.cache_headers:
                provider = CachedMessageProvider.wrap(provider)

            if not self.predicate(provider):
                stats.excluded += 1
                continue

            message = materialize(provider)
            if message is None:
                stats.dropped += 1
                continue

            self.saver.save(message)
            stats.queued += 1

        return stats


def download(settings: Settings) -> RunStats:
    """Run a complete download as described by `settings`.

    Connects, downloads the folder, waits for the saver to drain, logs out
    and optionally writes the manifest.

    Raises:
        MailConnectionError: If connection or login fails
        SelectFailure: If the folder cannot be selected
    """
    session = MailSession.connect(settings.host, settings.username, settings.password, settings.port)
    try:
        # No output folder is created unless the select succeeds
        message_count = session.select(settings.folder)
        with MessageSaver(settings.output, max_queue=settings.queue_size) as saver:
            downloader = Downloader(
                session,
                saver,
                start=settings.start,
                predicate=build_filter(settings.marker),
                cache_headers=settings.cache_headers,
            )
            stats = downloader.walk(message_count)
    finally:
        session.logout()

    stats.saved = saver.saved_count
    stats.write_failures = saver.failed_count

    if settings.manifest:
        write_manifest(saver.saved_numbers, settings.manifest)

    logger.info(
        f"Finished {settings.folder}: {stats.saved} saved, {stats.excluded} excluded, "
        f"{stats.dropped} dropped, {stats.write_failures} write failures, "
        f"{stats.skipped} skipped of {stats.total}"
    )
    return stats
