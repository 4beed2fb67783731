"""Inclusion predicates applied to message providers before materializing."""

import logging
from typing import Callable, Optional

from .errors import FetchFailure
from .provider import MessageProvider

logger = logging.getLogger(__name__)

Predicate = Callable[[MessageProvider], bool]


def accept_all(provider: MessageProvider) -> bool:
    return True


def marker_filter(marker: str) -> Predicate:
    """Build a predicate keeping messages whose sender or recipient contains `marker`.

    The sender is fetched first; the recipient is only fetched when the
    sender does not match. The match is a case-sensitive substring test.
    A fetch error excludes the message, so at most two round trips are
    spent on a message that is filtered out.

    Args:
        marker: Non-empty text to look for, e.g. an organization's domain

    Returns:
        Predicate over MessageProvider

    Raises:
        ValueError: If marker is empty
    """
    if not marker:
        raise ValueError("Filter marker cannot be empty")

    def predicate(provider: MessageProvider) -> bool:
        try:
            if provider.sender().contains(marker):
                return True
            return provider.recipient().contains(marker)
        except FetchFailure as e:
            logger.warning(f"Message {provider.number} excluded: FetchFailure ({e.reason})")
            return False

    return predicate


def build_filter(marker: Optional[str]) -> Predicate:
    """Return the marker filter, or a pass-through predicate when no marker is set."""
    if marker:
        return marker_filter(marker)
    return accept_all
