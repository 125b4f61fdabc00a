"""AccessGate: Single-writer authorization and the administrative pause flag.

Identities are EVM-style hex addresses. They are compared in checksum form,
so ``0xabc...`` and ``0xABC...`` name the same writer.

.. code-block:: python

    >>> gate = AccessGate(writer_identity="0x5FbDB2315678afecb367f032d93F642f64180aa3")
    >>> gate.authorize("0x5fbdb2315678afecb367f032d93f642f64180aa3")
    True
    >>> gate.authorize("0x0000000000000000000000000000000000000001")
    False
"""

from __future__ import annotations

import logging

from web3 import Web3

from .errors import Suspended, Unauthorized

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_identity(identity: str | None) -> str | None:
    """Return the checksum form of an address, or None if it is not one.

    The zero address is treated as null.

    :param identity: Candidate address string.
    :returns: Checksummed address or None.
    """
    if not identity or not isinstance(identity, str):
        return None
    if not Web3.is_address(identity):
        return None
    checksummed = Web3.to_checksum_address(identity)
    if checksummed == ZERO_ADDRESS:
        return None
    return checksummed


class AccessGate:
    """Decides who may write and whether writes are currently allowed.

    :ivar writer_identity: The only address allowed to append or replace config.
    :ivar admin_identity: Address allowed to pause and unpause, if any.
    :ivar active: False while writes are suspended.
    """

    def __init__(self, writer_identity: str, admin_identity: str | None = None) -> None:
        """Initialize the gate.

        :param writer_identity: Authorized writer address.
        :param admin_identity: Optional administrator address controlling
            the pause flag.
        :raises ValueError: If the writer identity is null or malformed.
        """
        writer = normalize_identity(writer_identity)
        if writer is None:
            raise ValueError(f"Invalid writer identity: {writer_identity!r}")
        self.writer_identity = writer
        self.admin_identity = normalize_identity(admin_identity)
        self.active = True

    def authorize(self, caller: str | None) -> bool:
        """Check whether the caller is the designated writer.

        :param caller: Caller address.
        :returns: True iff the caller is the writer.
        """
        return normalize_identity(caller) == self.writer_identity

    def check_writer(self, caller: str | None) -> None:
        """Raise if the caller may not write right now.

        Authorization is checked before suspension.

        :param caller: Caller address.
        :raises Unauthorized: If the caller is not the writer.
        :raises Suspended: If writes are paused.
        """
        if not self.authorize(caller):
            raise Unauthorized(caller)
        if not self.active:
            raise Suspended()

    def _check_admin(self, caller: str | None) -> None:
        if self.admin_identity is None or normalize_identity(caller) != self.admin_identity:
            raise Unauthorized(caller, f"Caller {caller!r} is not the administrator")

    def pause(self, caller: str | None) -> None:
        """Suspend all writes.

        :param caller: Must be the administrator.
        :raises Unauthorized: If the caller is not the administrator.
        """
        self._check_admin(caller)
        self.active = False
        logger.warning("Writes suspended by administrator")

    def unpause(self, caller: str | None) -> None:
        """Resume writes.

        :param caller: Must be the administrator.
        :raises Unauthorized: If the caller is not the administrator.
        """
        self._check_admin(caller)
        self.active = True
        logger.info("Writes resumed by administrator")
