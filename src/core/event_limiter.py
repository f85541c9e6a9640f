import logging
import threading
import time

logger = logging.getLogger(__name__)


class EventLimiter:
    """
    Token bucket with capacity one that gates alert creation cluster-wide.

    One token is earned per refill period and the bucket starts full, so the
    first alert after startup always goes through. ``allow()`` never blocks:
    it either consumes the token or reports that none is available.

    With a single token the bucket state reduces to the instant at which the
    next token becomes available.
    """

    def __init__(self, refill_period: float, clock=time.monotonic):
        """
        Initialize the EventLimiter.

        Args:
            refill_period (float): Seconds needed to earn one token.
            clock (Callable[[], float]): Monotonic time source.
        """
        if refill_period <= 0:
            raise ValueError(f"refill_period must be positive, got {refill_period}")
        self._refill_period = float(refill_period)
        self._clock = clock
        self._next_token_at = clock()
        self._lock = threading.Lock()

    @property
    def refill_period(self) -> float:
        return self._refill_period

    def allow(self) -> bool:
        """
        Consume the token if one is available.

        Returns:
            bool: True if the caller may emit an alert now.
        """
        with self._lock:
            now = self._clock()
            if now < self._next_token_at:
                return False
            # A full bucket does not bank time beyond one token
            self._next_token_at = now + self._refill_period
            return True

    def set_refill_period(self, refill_period: float):
        """
        Change the refill rate. The remaining wait for the next token is
        rescaled, so progress made under the old rate is kept.

        Args:
            refill_period (float): New number of seconds per token.
        """
        if refill_period <= 0:
            raise ValueError(f"refill_period must be positive, got {refill_period}")
        with self._lock:
            now = self._clock()
            remaining = max(0.0, self._next_token_at - now)
            self._next_token_at = now + remaining * (refill_period / self._refill_period)
            self._refill_period = float(refill_period)
        logger.info(f"Event limiter refill period set to {refill_period:.0f}s")
