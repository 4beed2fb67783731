"""Records passed between the download pipeline stages."""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

# Field names in the order they are fetched and written
FIELD_NAMES = ("from", "to", "subject", "body")

# Wire bytes are decoded so that encoding them again restores the exact bytes
WIRE_ENCODING = "utf-8"
WIRE_ERRORS = "surrogateescape"


def field_file_name(message_number: int, field: str) -> str:
    """Return the file name a message field is saved under, e.g. '12_subject.txt'."""
    return f"{message_number}_{field}.txt"


@dataclass(frozen=True)
class FieldContent:
    """Raw lines returned by one fetch of one message field.

    Attributes:
        lines: The payload split into lines, line endings included
    """
    lines: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))

    @classmethod
    def from_bytes(cls, payload: bytes) -> "FieldContent":
        text = payload.decode(WIRE_ENCODING, WIRE_ERRORS)
        return cls(tuple(text.splitlines(keepends=True)))

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "FieldContent":
        return cls(tuple(lines))

    def text(self) -> str:
        return "".join(self.lines)

    def contains(self, marker: str) -> bool:
        """Case-sensitive substring test over the concatenated lines."""
        return marker in self.text()

    def to_bytes(self) -> bytes:
        """Concatenate the lines, with no delimiters added, back into raw bytes."""
        return self.text().encode(WIRE_ENCODING, WIRE_ERRORS)


@dataclass(frozen=True)
class Message:
    """A fully fetched message, ready to be saved.

    Only built once all four field fetches have succeeded, so a Message
    always carries exactly four fields.

    Attributes:
        number: 1-based message sequence number within the selected folder
        sender: The From header field
        recipient: The To header field
        subject: The Subject header field
        body: The message body text
    """
    number: int
    sender: FieldContent
    recipient: FieldContent
    subject: FieldContent
    body: FieldContent

    def __post_init__(self) -> None:
        """Validate the message number after object creation."""
        if self.number < 1:
            raise ValueError(f"Message number must be 1 or greater, got: {self.number}")

    def fields(self) -> List[Tuple[str, FieldContent]]:
        """Return (field name, content) pairs in FIELD_NAMES order."""
        return list(zip(FIELD_NAMES, (self.sender, self.recipient, self.subject, self.body)))

    def file_names(self) -> List[str]:
        return [field_file_name(self.number, name) for name in FIELD_NAMES]
