"""ReferenceFeed: Read-only interface to an external price feed.

The oracle uses a reference feed only to cross-check its own ledger, never
to admit observations. Adapter output is not trusted: the oracle applies
validate_reference() to whatever the adapter returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .errors import InvalidReference, StaleReference


class ReferenceFeed(ABC):
    """Abstract base class for external reference feeds.

    Subclasses must implement fetch_reference().
    """

    @abstractmethod
    def fetch_reference(self) -> tuple[int, int]:
        """Fetch the latest reference price.

        :returns: Tuple of (price, observed_at).
        :raises ReferenceFeedError: If the feed cannot be read.
        """
        pass


def validate_reference(price: int, observed_at: int, heartbeat: int, now: int) -> int:
    """Reject stale or non-positive reference prices.

    :param price: Reference price.
    :param observed_at: Time the reference was observed by its feed.
    :param heartbeat: Maximum accepted age in seconds.
    :param now: Current time.
    :returns: The price, unchanged.
    :raises StaleReference: If observed_at < now - heartbeat.
    :raises InvalidReference: If price <= 0.
    """
    if observed_at < now - heartbeat:
        raise StaleReference(observed_at, now, heartbeat)
    if price <= 0:
        raise InvalidReference(price)
    return price
