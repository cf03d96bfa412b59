"""
Brilliance Reliability Primitives
Error taxonomy, cancellation tokens and deadlines for the extraction loop.
"""
import threading
import time
from typing import Optional

from loguru import logger


class InvalidInput(ValueError):
    """Missing or malformed image source, or configuration out of range."""
    pass


class ExtractionCancelled(RuntimeError):
    """Extraction stopped through a cancellation token."""
    pass


class ExtractionTimeoutError(TimeoutError):
    """Extraction ran past its deadline."""
    pass


class RetryLimitExceeded(RuntimeError):
    """Tolerance decay did not find a qualifying color within the pass cap."""
    pass


class CancellationToken:
    """Thread-safe flag that another thread can raise to stop an extraction."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExtractionCancelled(f"Extraction cancelled: {self.reason}")


class Deadline:
    """Monotonic deadline measured from construction."""

    def __init__(self, timeout_ms: Optional[float] = None):
        self.timeout_ms = timeout_ms
        self._start = time.monotonic()
        self._expires_at = None if not timeout_ms else self._start + timeout_ms / 1000.0

    @property
    def enabled(self) -> bool:
        return self._expires_at is not None

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self._start) * 1000

    def remaining_ms(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, (self._expires_at - time.monotonic()) * 1000)

    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self, operation: str = "extraction") -> None:
        """Raise :class:`ExtractionTimeoutError` if the deadline has passed."""
        if self.expired():
            logger.error(f"Timeout in {operation} after {self.timeout_ms}ms")
            raise ExtractionTimeoutError(f"Operation {operation} timed out after {self.timeout_ms}ms")
