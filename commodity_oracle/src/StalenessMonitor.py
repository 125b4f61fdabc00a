"""StalenessMonitor: Heartbeat-based staleness of a price ledger."""

from __future__ import annotations

from .OracleConfig import ConfigStore
from .PriceLedger import PriceLedger


class StalenessMonitor:
    """Derives staleness from the ledger's last update and the heartbeat.

    Both methods are pure reads of ledger and config state.

    :ivar ledger: Ledger whose last update time is observed.
    :ivar config_store: Source of the heartbeat.
    """

    def __init__(self, ledger: PriceLedger, config_store: ConfigStore) -> None:
        self.ledger = ledger
        self.config_store = config_store

    def is_stale(self, now: int) -> bool:
        """Check whether the last update is older than the heartbeat.

        :param now: Current time.
        :returns: True iff now > last_update_time + heartbeat.
        """
        heartbeat = self.config_store.get().heartbeat
        return now > self.ledger.last_update_time() + heartbeat

    def time_since_update(self, now: int) -> int:
        """Return seconds elapsed since the last accepted observation.

        :param now: Current time.
        """
        return now - self.ledger.last_update_time()
