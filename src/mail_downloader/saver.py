"""Background writer for fetched messages.

MessageSaver hands completed messages to a dedicated worker thread over a
queue so that disk writes never hold up the fetch loop. The worker is the
only writer to the output folder and processes messages in FIFO order.
"""

import logging
import queue
import threading
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Set, Union

from .errors import SaverClosedError, WriteFailure
from .models import Message, field_file_name

logger = logging.getLogger(__name__)

# Queued after the last message to tell the worker to stop
_STOP = object()


class SaverState(Enum):
    """Lifecycle of the saver worker. States only ever move forward."""
    IDLE = 0
    RUNNING = 1
    DRAINING = 2
    STOPPED = 3


class MessageSaver:
    """Writes each message's four fields to `{number}_{field}.txt` files.

    `save()` returns as soon as the message is queued. Call `close()` (or
    leave the `with` block) at the end of the run to wait until every
    queued message has been written.

    Attributes:
        output_folder: Directory the files are written to
        saved_numbers: Numbers of messages written successfully, in write order
        failed_numbers: Numbers of messages that hit a write error
    """

    def __init__(self, output_folder: Union[str, Path], max_queue: int = 0) -> None:
        """Start the worker thread.

        Args:
            output_folder: Directory to write to, created if absent
            max_queue: Maximum number of queued messages; 0 means unbounded.
                       With a bound, save() blocks while the queue is full.
        """
        self.output_folder = Path(output_folder)
        self.saved_numbers: List[int] = []
        self.failed_numbers: List[int] = []

        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=max_queue)
        self._submitted: Set[int] = set()
        self._closed = False
        self._directory_ready = False
        self._state = SaverState.IDLE
        self._state_lock = threading.Lock()

        self._worker = threading.Thread(target=self._run, name="message-saver", daemon=True)
        self._worker.start()

    @property
    def state(self) -> SaverState:
        with self._state_lock:
            return self._state

    @property
    def saved_count(self) -> int:
        return len(self.saved_numbers)

    @property
    def failed_count(self) -> int:
        return len(self.failed_numbers)

    def save(self, message: Message) -> None:
        """Queue a message for writing and return without waiting for the write.

        Raises:
            SaverClosedError: If the saver has been closed
            ValueError: If a message with the same number was already queued
        """
        if self._closed:
            raise SaverClosedError(f"Cannot save message {message.number}: saver is closed")
        if message.number in self._submitted:
            raise ValueError(f"Message {message.number} was already queued for saving")

        self._submitted.add(message.number)
        logger.debug(f"Saving message {message.number}")
        self._queue.put(message)

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting messages and wait until the queue is drained."""
        if not self._closed:
            self._closed = True
            self._advance(SaverState.DRAINING)
            logger.debug(f"Draining {self._queue.qsize()} queued messages")
            self._queue.put(_STOP)
        self._worker.join(timeout)

    def __enter__(self) -> "MessageSaver":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _advance(self, state: SaverState) -> None:
        with self._state_lock:
            if state.value > self._state.value:
                self._state = state

    def _run(self) -> None:
        self._ensure_directory()
        self._advance(SaverState.RUNNING)

        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    break
                self._write(item)
            finally:
                self._queue.task_done()

        self._advance(SaverState.STOPPED)
        logger.debug(f"Saver stopped: {self.saved_count} saved, {self.failed_count} failed")

    def _ensure_directory(self) -> Optional[OSError]:
        """Create the output folder if needed; return the error if that fails."""
        if self._directory_ready:
            return None
        try:
            self.output_folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.debug(f"Cannot create output folder {self.output_folder}: {e!s}")
            return e
        self._directory_ready = True
        return None

    def _fail(self, message: Message, path: Path, cause: OSError) -> None:
        failure = WriteFailure(message.number, path, cause)
        logger.error(f"Message {message.number} not saved: WriteFailure ({failure})")
        self.failed_numbers.append(message.number)

    def _write(self, message: Message) -> None:
        directory_error = self._ensure_directory()
        if directory_error is not None:
            self._fail(message, self.output_folder, directory_error)
            return

        created: List[Path] = []
        for field, content in message.fields():
            path = self.output_folder / field_file_name(message.number, field)
            try:
                with open(path, "wb") as handle:
                    created.append(path)
                    handle.write(content.to_bytes())
            except OSError as e:
                self._discard(created)
                self._fail(message, path, e)
                return

        self.saved_numbers.append(message.number)
        logger.debug(f"Saved message {message.number} to {self.output_folder}")

    def _discard(self, paths: List[Path]) -> None:
        """Remove the files of a partially written message."""
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove partial file {path}: {e!s}")
