"""Error kinds raised by the commodity oracle.

Every check in the oracle raises one of these. The first violated check
wins and nothing is retried internally; callers decide whether to resubmit.

.. code-block:: python

    >>> try:
    ...     ledger.latest()
    ... except NotFound as e:
    ...     print(e)
    No observation has been recorded yet
"""

from __future__ import annotations


class OracleError(Exception):
    """Base exception for all oracle errors."""

    pass


class Unauthorized(OracleError):
    """Raised when the caller is not the identity allowed to perform a write.

    :ivar caller: The identity that was rejected.
    """

    def __init__(self, caller: str | None, message: str | None = None):
        """Initialize the error.

        :param caller: Rejected caller identity.
        :param message: Optional override for the error message.
        """
        self.caller = caller
        super().__init__(message or f"Caller {caller!r} is not authorized")


class Suspended(OracleError):
    """Raised when writes are paused by the administrator."""

    def __init__(self) -> None:
        super().__init__("Oracle is suspended")


class InvalidPrice(OracleError):
    """Raised when a submitted price is not an integer.

    :ivar price: Rejected value.
    """

    def __init__(self, price: object):
        self.price = price
        super().__init__(f"Price {price!r} is not an integer")


class OutOfBounds(OracleError):
    """Raised when a price falls outside the configured answer range.

    :ivar price: Rejected price.
    :ivar min_answer: Inclusive lower bound at the time of the check.
    :ivar max_answer: Inclusive upper bound at the time of the check.
    """

    def __init__(self, price: int, min_answer: int, max_answer: int):
        self.price = price
        self.min_answer = min_answer
        self.max_answer = max_answer
        super().__init__(
            f"Price {price} outside bounds [{min_answer}, {max_answer}]"
        )


class TooSoon(OracleError):
    """Raised when the update interval has not elapsed since the last round.

    :ivar request_time: Timestamp of the rejected request.
    :ivar next_allowed: Earliest timestamp at which an append is accepted.
    """

    def __init__(self, request_time: int, next_allowed: int):
        self.request_time = request_time
        self.next_allowed = next_allowed
        super().__init__(
            f"Update at {request_time} too soon, next allowed at {next_allowed}"
        )


class InvalidConfig(OracleError):
    """Raised when a proposed configuration fails validation.

    :ivar field: Name of the first offending field.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid config ({field}): {message}")


class NotFound(OracleError):
    """Raised by latest() when no observation has been accepted yet."""

    def __init__(self) -> None:
        super().__init__("No observation has been recorded yet")


class InvalidRound(OracleError):
    """Raised when a round id is outside the recorded round space.

    :ivar round_id: Requested round id.
    """

    def __init__(self, round_id: int, current_round_id: int):
        self.round_id = round_id
        super().__init__(
            f"Round {round_id} is invalid (current round id {current_round_id})"
        )


class InvalidRange(OracleError):
    """Raised when a range query window is empty or outside recorded rounds."""

    def __init__(self, start: int, end: int, current_round_id: int):
        self.start = start
        self.end = end
        super().__init__(
            f"Range [{start}, {end}] is invalid "
            f"(current round id {current_round_id})"
        )


class StaleReference(OracleError):
    """Raised when the external reference price is older than the heartbeat."""

    def __init__(self, observed_at: int, now: int, heartbeat: int):
        self.observed_at = observed_at
        super().__init__(
            f"Reference observed at {observed_at} is older than "
            f"{heartbeat}s (now {now})"
        )


class InvalidReference(OracleError):
    """Raised when the external reference price is zero or negative."""

    def __init__(self, price: int):
        self.price = price
        super().__init__(f"Reference price {price} is not positive")


class ReferenceFeedError(OracleError):
    """Raised when the external reference feed cannot be read at all."""

    pass


class NotInitialized(OracleError):
    """Raised when an operation runs before initialize()."""

    def __init__(self) -> None:
        super().__init__("Oracle has not been initialized")


class AlreadyInitialized(OracleError):
    """Raised when initialize() is called a second time."""

    def __init__(self) -> None:
        super().__init__("Oracle is already initialized")


class InvalidInitialization(OracleError):
    """Raised when initialize() receives an empty or null argument."""

    pass
