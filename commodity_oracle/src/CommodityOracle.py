"""CommodityOracle: Service facade over a single commodity price feed.

Wires the access gate, config store, price ledger, staleness monitor and
reference feed together behind one write lock, and exposes the operations
consumed by the aggregator layer.

Lifecycle:
    - ``CommodityOracle()`` allocates an empty, uninitialized service
    - ``initialize()`` fixes category, writer, reference feed and initial
      config; it may run exactly once
    - every other operation raises NotInitialized until then

.. code-block:: python

    >>> oracle = CommodityOracle()
    >>> oracle.initialize("xau/usd", feed, config, writer, now=1_700_000_000)
    >>> oracle.append(writer, 500, now=1_700_003_601)
    1
    >>> oracle.is_stale(now=1_700_003_601 + 86_401)
    True
"""

from __future__ import annotations

import logging
import threading
import time

from .AccessGate import AccessGate, normalize_identity
from .errors import AlreadyInitialized, InvalidInitialization, NotInitialized
from .events import EventEmitter, Listener
from .OracleConfig import ConfigStore, OracleConfig
from .PriceLedger import LedgerState, PriceLedger, PriceObservation
from .ReferenceFeed import ReferenceFeed, validate_reference
from .StalenessMonitor import StalenessMonitor

logger = logging.getLogger(__name__)


def _now(now: int | None) -> int:
    return int(time.time()) if now is None else now


class CommodityOracle:
    """Round-indexed price oracle for one commodity.

    :ivar events: Emitter delivering PriceUpdated and ConfigUpdated events.
    """

    def __init__(self) -> None:
        self.events = EventEmitter()
        self._init_lock = threading.Lock()
        self._initialized = False
        self._gate: AccessGate | None = None
        self._config_store: ConfigStore | None = None
        self._ledger: PriceLedger | None = None
        self._monitor: StalenessMonitor | None = None
        self._feed: ReferenceFeed | None = None

    def initialize(
        self,
        category: str,
        feed_ref: ReferenceFeed,
        config: OracleConfig,
        writer_identity: str,
        admin_identity: str | None = None,
        now: int | None = None,
    ) -> None:
        """Initialize the oracle. May be called exactly once.

        :param category: Commodity identifier (e.g., "xau/usd").
        :param feed_ref: External reference feed used for cross-checks.
        :param config: Initial validation parameters.
        :param writer_identity: Address of the only authorized writer.
        :param admin_identity: Optional address allowed to pause and unpause.
        :param now: Creation time (default: current time).
        :raises AlreadyInitialized: On a second call.
        :raises InvalidInitialization: If category is empty, feed_ref or
            config is missing, or writer_identity is null, zero or malformed.
        :raises InvalidConfig: If the initial config is invalid.
        """
        with self._init_lock:
            if self._initialized:
                raise AlreadyInitialized()
            if not category:
                raise InvalidInitialization("category must not be empty")
            if feed_ref is None:
                raise InvalidInitialization("feed_ref must not be None")
            if normalize_identity(writer_identity) is None:
                raise InvalidInitialization(
                    f"writer_identity is null or malformed: {writer_identity!r}"
                )
            if not isinstance(config, OracleConfig):
                raise InvalidInitialization(f"config must be an OracleConfig, got {config!r}")
            config.validate()

            created_at = _now(now)
            gate = AccessGate(writer_identity, admin_identity)
            write_lock = threading.Lock()
            config_store = ConfigStore(config, gate, events=self.events, lock=write_lock)
            ledger = PriceLedger(
                category,
                gate,
                config_store,
                created_at=created_at,
                events=self.events,
                lock=write_lock,
            )

            self._gate = gate
            self._config_store = config_store
            self._ledger = ledger
            self._monitor = StalenessMonitor(ledger, config_store)
            self._feed = feed_ref
            self._initialized = True

        logger.info(
            f"Oracle initialized: category={category}, writer={gate.writer_identity}, "
            f"created_at={created_at}"
        )

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitialized()

    @property
    def ledger(self) -> PriceLedger:
        """The underlying price ledger."""
        self._require_initialized()
        assert self._ledger is not None
        return self._ledger

    @property
    def gate(self) -> AccessGate:
        """The underlying access gate."""
        self._require_initialized()
        assert self._gate is not None
        return self._gate

    @property
    def config_store(self) -> ConfigStore:
        """The underlying config store."""
        self._require_initialized()
        assert self._config_store is not None
        return self._config_store

    @property
    def monitor(self) -> StalenessMonitor:
        """The underlying staleness monitor."""
        self._require_initialized()
        assert self._monitor is not None
        return self._monitor

    def subscribe(self, listener: Listener) -> None:
        """Register a listener for PriceUpdated and ConfigUpdated events."""
        self.events.subscribe(listener)

    # Writes

    def append(self, caller: str | None, price: int, now: int | None = None) -> int:
        """Append a price observation as ``caller``.

        :returns: Assigned round id.
        :raises Unauthorized, Suspended, OutOfBounds, TooSoon: See PriceLedger.append.
        """
        return self.ledger.append(caller, price, _now(now))

    def replace_config(
        self, caller: str | None, config: OracleConfig, now: int | None = None
    ) -> None:
        """Replace the validation parameters as ``caller``.

        :raises Unauthorized, Suspended, InvalidConfig: See ConfigStore.replace.
        """
        self.config_store.replace(caller, config, now=_now(now))

    def pause(self, caller: str | None) -> None:
        """Suspend writes. Only the administrator may call this."""
        self.gate.pause(caller)

    def unpause(self, caller: str | None) -> None:
        """Resume writes. Only the administrator may call this."""
        self.gate.unpause(caller)

    # Reads

    def latest(self) -> PriceObservation:
        """Return the most recent observation (NotFound if none)."""
        return self.ledger.latest()

    def at(self, round_id: int) -> PriceObservation:
        """Return the observation of a round (InvalidRound if unknown)."""
        return self.ledger.at(round_id)

    def range(self, start: int, end: int) -> list[PriceObservation]:
        """Return rounds start..end inclusive (InvalidRange if out of window)."""
        return self.ledger.range(start, end)

    def current_round_id(self) -> int:
        """Return the next round id to be assigned."""
        return self.ledger.current_round_id()

    def state(self) -> LedgerState:
        """Return a snapshot of the ledger head."""
        return self.ledger.state()

    def get_config(self) -> OracleConfig:
        """Return the current config."""
        return self.config_store.get()

    def is_stale(self, now: int | None = None) -> bool:
        """Check whether the feed missed its heartbeat."""
        return self.monitor.is_stale(_now(now))

    def time_since_update(self, now: int | None = None) -> int:
        """Return seconds since the last accepted observation."""
        return self.monitor.time_since_update(_now(now))

    def fetch_reference_price(self, now: int | None = None) -> int:
        """Fetch and validate the external reference price.

        The adapter is called outside the write lock and its failures never
        touch ledger state.

        :param now: Current time (default: current time).
        :returns: Validated reference price.
        :raises StaleReference: If the reference is older than the heartbeat.
        :raises InvalidReference: If the reference price is not positive.
        :raises ReferenceFeedError: If the adapter cannot be read.
        """
        self._require_initialized()
        assert self._feed is not None
        price, observed_at = self._feed.fetch_reference()
        heartbeat = self.config_store.get().heartbeat
        return validate_reference(price, observed_at, heartbeat, _now(now))
