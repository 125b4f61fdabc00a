"""OracleConfig and ConfigStore: Validation parameters for price admission.

The config is an immutable value. Replacing it swaps the reference held by
the store, so readers always see one complete config and never a mix of old
and new fields.

.. code-block:: python

    >>> config = OracleConfig(
    ...     min_answer=10, max_answer=1000, update_interval=3600,
    ...     heartbeat=86400, deviation_threshold=500,
    ... )
    >>> config.validate()
    >>> config.in_bounds(2000)
    False
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass

from .AccessGate import AccessGate
from .errors import InvalidConfig
from .events import ConfigUpdated, EventEmitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OracleConfig:
    """Validation parameters of a single commodity feed.

    :ivar min_answer: Inclusive lower price bound.
    :ivar max_answer: Inclusive upper price bound.
    :ivar update_interval: Minimum seconds between accepted observations.
    :ivar heartbeat: Maximum age in seconds before the feed is stale.
    :ivar deviation_threshold: Price delta threshold. Validated but not
        consulted by admission.
    """

    min_answer: int
    max_answer: int
    update_interval: int
    heartbeat: int
    deviation_threshold: int

    def validate(self) -> None:
        """Check the config invariants.

        :raises InvalidConfig: Naming the first field that fails.
        """
        for field in (
            "update_interval",
            "deviation_threshold",
            "heartbeat",
            "min_answer",
            "max_answer",
        ):
            value = getattr(self, field)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfig(field, "must be an integer")
        if self.update_interval <= 0:
            raise InvalidConfig("update_interval", "must be positive")
        if self.deviation_threshold <= 0:
            raise InvalidConfig("deviation_threshold", "must be positive")
        if self.heartbeat <= 0:
            raise InvalidConfig("heartbeat", "must be positive")
        if self.min_answer >= self.max_answer:
            raise InvalidConfig(
                "min_answer",
                f"must be below max_answer ({self.min_answer} >= {self.max_answer})",
            )

    def in_bounds(self, price: int) -> bool:
        """Check whether a price lies within [min_answer, max_answer]."""
        return self.min_answer <= price <= self.max_answer

    @classmethod
    def from_env(cls) -> OracleConfig:
        """Build a config from environment variables.

        Reads MIN_ANSWER, MAX_ANSWER, UPDATE_INTERVAL, HEARTBEAT and
        DEVIATION_THRESHOLD, falling back to defaults for unset values.

        :returns: New OracleConfig (not yet validated).
        :raises ValueError: If a variable is not an integer.
        """
        return cls(
            min_answer=int(os.environ.get("MIN_ANSWER") or "1"),
            max_answer=int(os.environ.get("MAX_ANSWER") or str(10**18)),
            update_interval=int(os.environ.get("UPDATE_INTERVAL") or "3600"),
            heartbeat=int(os.environ.get("HEARTBEAT") or "86400"),
            deviation_threshold=int(os.environ.get("DEVIATION_THRESHOLD") or "500"),
        )


class ConfigStore:
    """Holds the current config and guards its replacement.

    :ivar gate: Access gate deciding who may replace the config.
    :ivar events: Emitter receiving ConfigUpdated notifications.
    """

    def __init__(
        self,
        config: OracleConfig,
        gate: AccessGate,
        events: EventEmitter | None = None,
        lock: threading.Lock | None = None,
    ) -> None:
        """Initialize the store with a validated initial config.

        :param config: Initial config.
        :param gate: Access gate shared with the ledger.
        :param events: Optional event emitter.
        :param lock: Write lock shared with the ledger, so a replace never
            interleaves with an append.
        :raises InvalidConfig: If the initial config is invalid.
        """
        config.validate()
        self._config = config
        self.gate = gate
        self.events = events or EventEmitter()
        self._lock = lock or threading.Lock()

    def get(self) -> OracleConfig:
        """Return the current config."""
        return self._config

    def replace(
        self, caller: str | None, new_config: OracleConfig, now: int | None = None
    ) -> None:
        """Validate and install a new config.

        Checks run in order: authorization, suspension, then config
        invariants. The store is unchanged if any check fails.

        :param caller: Caller address, must be the writer.
        :param new_config: Proposed config.
        :param now: Timestamp reported in the change notification.
        :raises Unauthorized: If the caller is not the writer.
        :raises Suspended: If writes are paused.
        :raises InvalidConfig: If the proposed config is invalid.
        """
        with self._lock:
            self.gate.check_writer(caller)
            new_config.validate()
            self._config = new_config
            timestamp = int(time.time()) if now is None else now
            logger.info(
                f"Config replaced: bounds=[{new_config.min_answer}, "
                f"{new_config.max_answer}], update_interval={new_config.update_interval}s, "
                f"heartbeat={new_config.heartbeat}s, "
                f"deviation_threshold={new_config.deviation_threshold}"
            )
            self.events.enqueue(
                ConfigUpdated(
                    update_interval=new_config.update_interval,
                    deviation_threshold=new_config.deviation_threshold,
                    heartbeat=new_config.heartbeat,
                    timestamp=timestamp,
                )
            )

        self.events.flush()
