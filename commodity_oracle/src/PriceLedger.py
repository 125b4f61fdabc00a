"""PriceLedger: Append-only, round-indexed store of accepted price observations.

Rounds are numbered densely from 1. An append runs every admission check
and the store mutation under one write lock:

    1. Caller must be the writer (Unauthorized)
    2. Writes must not be suspended (Suspended)
    3. Price must be an integer (InvalidPrice) within the configured
       bounds (OutOfBounds)
    4. update_interval must have elapsed since the last round (TooSoon)

Readers take no lock. History is an append-only list of frozen observations,
and the ledger head (next round id, last update time) is a frozen value
swapped in one assignment after the new observation is stored. A reader
loads the head once and only looks at rounds below its round id, so it
never sees a round without its head or the reverse.

.. code-block:: python

    >>> ledger.append(writer, 500, request_time=1_700_003_601)
    1
    >>> ledger.latest().price
    500
    >>> [obs.round_id for obs in ledger.range(1, 1)]
    [1]
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from .AccessGate import AccessGate
from .errors import (
    InvalidPrice,
    InvalidRange,
    InvalidRound,
    NotFound,
    OutOfBounds,
    TooSoon,
)
from .events import EventEmitter, PriceUpdated
from .OracleConfig import ConfigStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceObservation:
    """A single accepted price observation.

    :ivar round_id: Round id assigned by the ledger.
    :ivar price: Accepted price.
    :ivar timestamp: Acceptance time.
    :ivar valid: Always True for observations produced by append().
    """

    round_id: int
    price: int
    timestamp: int
    valid: bool = True


@dataclass(frozen=True)
class LedgerState:
    """Point-in-time view of the ledger head.

    :ivar category: Commodity identifier.
    :ivar current_round_id: Next round id to be assigned.
    :ivar last_update_time: Timestamp of the last accepted observation, or
        the creation time if none was accepted.
    :ivar writer_identity: Address allowed to append.
    """

    category: str
    current_round_id: int
    last_update_time: int
    writer_identity: str


@dataclass(frozen=True)
class _Head:
    current_round_id: int
    last_update_time: int


class PriceLedger:
    """Round-indexed price history for one commodity.

    :ivar category: Commodity identifier, fixed at creation.
    :ivar gate: Access gate checked on every append.
    :ivar config_store: Source of bounds and update interval.
    :ivar events: Emitter receiving PriceUpdated notifications.
    """

    def __init__(
        self,
        category: str,
        gate: AccessGate,
        config_store: ConfigStore,
        created_at: int,
        events: EventEmitter | None = None,
        lock: threading.Lock | None = None,
    ) -> None:
        """Initialize an empty ledger.

        :param category: Commodity identifier (e.g., "xau/usd").
        :param gate: Access gate shared with the config store.
        :param config_store: Config store providing admission parameters.
        :param created_at: Creation time, used as the initial last update time.
        :param events: Optional event emitter.
        :param lock: Write lock shared with the config store.
        :raises ValueError: If category is empty.
        """
        if not category:
            raise ValueError("category must not be empty")
        self.category = category
        self.gate = gate
        self.config_store = config_store
        self.events = events or EventEmitter()
        self._lock = lock or threading.Lock()
        self._history: list[PriceObservation] = []
        self._head = _Head(current_round_id=1, last_update_time=created_at)

    def __len__(self) -> int:
        """Return the number of accepted observations."""
        return self._head.current_round_id - 1

    @property
    def writer_identity(self) -> str:
        """Address allowed to append."""
        return self.gate.writer_identity

    def append(self, caller: str | None, price: int, request_time: int) -> int:
        """Admit a new observation.

        :param caller: Caller address.
        :param price: Observed price.
        :param request_time: Time of the observation.
        :returns: Round id assigned to the observation.
        :raises Unauthorized: If the caller is not the writer.
        :raises Suspended: If writes are paused.
        :raises InvalidPrice: If the price is not an integer.
        :raises OutOfBounds: If the price is outside the configured bounds.
        :raises TooSoon: If update_interval has not elapsed.
        """
        with self._lock:
            self.gate.check_writer(caller)

            if isinstance(price, bool) or not isinstance(price, int):
                raise InvalidPrice(price)

            config = self.config_store.get()
            if not config.in_bounds(price):
                logger.debug(
                    f"{self.category}: rejected price {price} outside "
                    f"[{config.min_answer}, {config.max_answer}]"
                )
                raise OutOfBounds(price, config.min_answer, config.max_answer)

            head = self._head
            next_allowed = head.last_update_time + config.update_interval
            if request_time < next_allowed:
                logger.debug(
                    f"{self.category}: rejected update at {request_time}, "
                    f"next allowed at {next_allowed}"
                )
                raise TooSoon(request_time, next_allowed)

            round_id = head.current_round_id
            self._history.append(
                PriceObservation(round_id=round_id, price=price, timestamp=request_time)
            )
            self._head = _Head(
                current_round_id=round_id + 1, last_update_time=request_time
            )

            logger.info(
                f"{self.category}: Round {round_id} accepted "
                f"(price={price}, timestamp={request_time})"
            )
            self.events.enqueue(
                PriceUpdated(
                    round_id=round_id,
                    price=price,
                    timestamp=request_time,
                    category=self.category,
                )
            )

        self.events.flush()
        return round_id

    def latest(self) -> PriceObservation:
        """Return the most recent observation.

        :raises NotFound: If no observation was ever accepted.
        """
        head = self._head
        if head.current_round_id == 1:
            raise NotFound()
        return self._history[head.current_round_id - 2]

    def at(self, round_id: int) -> PriceObservation:
        """Return the observation of a given round.

        :param round_id: Round id, 1-based.
        :raises InvalidRound: If the round was not recorded.
        """
        head = self._head
        if round_id <= 0 or round_id >= head.current_round_id:
            raise InvalidRound(round_id, head.current_round_id)
        return self._history[round_id - 1]

    def range(self, start: int, end: int) -> list[PriceObservation]:
        """Return observations for rounds start..end inclusive, ascending.

        :param start: First round id.
        :param end: Last round id.
        :raises InvalidRange: Unless 0 < start <= end < current_round_id.
        """
        head = self._head
        if start <= 0 or end < start or end >= head.current_round_id:
            raise InvalidRange(start, end, head.current_round_id)
        return self._history[start - 1 : end]

    def current_round_id(self) -> int:
        """Return the next round id to be assigned."""
        return self._head.current_round_id

    def last_update_time(self) -> int:
        """Return the timestamp of the last accepted observation."""
        return self._head.last_update_time

    def state(self) -> LedgerState:
        """Return a consistent snapshot of the ledger head."""
        head = self._head
        return LedgerState(
            category=self.category,
            current_round_id=head.current_round_id,
            last_update_time=head.last_update_time,
            writer_identity=self.writer_identity,
        )
