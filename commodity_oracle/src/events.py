"""Change notifications emitted by the ledger and the config store.

Writes enqueue their event while still holding the write lock, so the queue
holds events in commit order. Delivery happens after the lock is released,
under a separate delivery lock, so a listener may call back into the oracle.
A write made from inside a listener is delivered after the current event
finishes. A listener that raises is logged and skipped; the write it reports
on is already committed.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceUpdated:
    """Emitted after a round is appended to the ledger.

    :ivar round_id: Round id assigned to the observation.
    :ivar price: Accepted price.
    :ivar timestamp: Acceptance time of the observation.
    :ivar category: Commodity identifier of the ledger.
    """

    round_id: int
    price: int
    timestamp: int
    category: str


@dataclass(frozen=True)
class ConfigUpdated:
    """Emitted after a new config is installed.

    :ivar update_interval: New minimum spacing between rounds.
    :ivar deviation_threshold: New deviation threshold.
    :ivar heartbeat: New staleness deadline.
    :ivar timestamp: Time the config was installed.
    """

    update_interval: int
    deviation_threshold: int
    heartbeat: int
    timestamp: int


OracleEvent = Union[PriceUpdated, ConfigUpdated]
Listener = Callable[[OracleEvent], None]


class EventEmitter:
    """Fan-out of oracle events to registered listeners.

    Writers call :meth:`enqueue` under their write lock and :meth:`flush`
    after releasing it.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._pending: deque[OracleEvent] = deque()
        self._delivery_lock = threading.Lock()
        self._local = threading.local()

    def subscribe(self, listener: Listener) -> None:
        """Register a listener for all subsequent events.

        :param listener: Callable receiving each event.
        """
        self._listeners.append(listener)

    def enqueue(self, event: OracleEvent) -> None:
        """Queue an event for delivery by the next flush()."""
        self._pending.append(event)

    def flush(self) -> None:
        """Deliver queued events to every listener, oldest first.

        A flush from inside a listener returns at once; the outer flush
        drains whatever the listener queued.
        """
        if getattr(self._local, "delivering", False):
            return
        with self._delivery_lock:
            self._local.delivering = True
            try:
                while self._pending:
                    self._deliver(self._pending.popleft())
            finally:
                self._local.delivering = False

    def _deliver(self, event: OracleEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.warning(
                    f"Listener {listener!r} raised {exc!r} on {event}; ignoring"
                )
