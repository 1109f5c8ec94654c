"""Login rate limiting: per-identifier failed-attempt counting with a temporary lockout.

The limiter keeps its state in a LoginAttemptStore. The in-memory store is
process-local and non-durable: restarting the process clears every lockout,
and separate processes do not share counts. Keys are only removed by a
successful login or by sweep(), so idle identifiers are evicted once they
fall outside the window.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_WINDOW = timedelta(minutes=15)


@dataclass(frozen=True)
class LoginAttemptRecord:
    """Attempt counter for one identifier."""

    count: int
    last_attempt: datetime


class LoginAttemptStore(ABC):
    """Storage for login attempt records. update() must be atomic per key."""

    @abstractmethod
    def update(
        self,
        key: str,
        fn: Callable[[LoginAttemptRecord | None], LoginAttemptRecord | None],
    ) -> LoginAttemptRecord | None:
        """Apply fn to the current record for key and store the result (None deletes)."""

    @abstractmethod
    def get(self, key: str) -> LoginAttemptRecord | None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def sweep(self, older_than: datetime) -> int:
        """Delete records whose last attempt is before older_than; return how many."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class InMemoryLoginAttemptStore(LoginAttemptStore):
    """Dict-backed store; a single lock serializes every read-modify-write."""

    def __init__(self) -> None:
        self._records: dict[str, LoginAttemptRecord] = {}
        self._lock = threading.Lock()

    def update(
        self,
        key: str,
        fn: Callable[[LoginAttemptRecord | None], LoginAttemptRecord | None],
    ) -> LoginAttemptRecord | None:
        with self._lock:
            record = fn(self._records.get(key))
            if record is None:
                self._records.pop(key, None)
            else:
                self._records[key] = record
            return record

    def get(self, key: str) -> LoginAttemptRecord | None:
        with self._lock:
            return self._records.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def sweep(self, older_than: datetime) -> int:
        with self._lock:
            stale = [k for k, r in self._records.items() if r.last_attempt < older_than]
            for key in stale:
                del self._records[key]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class LoginRateLimiter:
    """
    Sliding-window lockout per identifier.

    Each call to is_rate_limited() counts as an attempt. The first attempt, or
    the first after the window has elapsed since the previous attempt, starts
    a new window with count 1. Once max_attempts have been recorded inside the
    window, further attempts are refused without being counted.
    """

    def __init__(
        self,
        store: LoginAttemptStore | None = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window: timedelta = DEFAULT_WINDOW,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window <= timedelta(0):
            raise ValueError("window must be positive")
        self.store = store if store is not None else InMemoryLoginAttemptStore()
        self.max_attempts = max_attempts
        self.window = window
        self._clock = clock or (lambda: datetime.now(UTC))
        self._last_sweep = self._clock()

    @property
    def retry_after_seconds(self) -> int:
        return int(self.window.total_seconds())

    def is_rate_limited(self, identifier: str) -> bool:
        """Record an attempt for identifier; return True if it is locked out."""
        now = self._clock()
        self.maybe_sweep(now)
        limited = False

        def _attempt(record: LoginAttemptRecord | None) -> LoginAttemptRecord:
            nonlocal limited
            if record is None or now - record.last_attempt > self.window:
                return LoginAttemptRecord(count=1, last_attempt=now)
            if record.count >= self.max_attempts:
                limited = True
                return record
            return replace(record, count=record.count + 1, last_attempt=now)

        self.store.update(identifier, _attempt)
        if limited:
            logger.warning("Login rate limit hit for identifier=%s", identifier)
        return limited

    def reset(self, identifier: str) -> None:
        """Forget all attempts for identifier (after a successful login)."""
        self.store.delete(identifier)

    def attempts(self, identifier: str) -> int:
        record = self.store.get(identifier)
        return record.count if record else 0

    def sweep(self, now: datetime | None = None) -> int:
        """Evict identifiers whose last attempt is older than the window."""
        now = now or self._clock()
        removed = self.store.sweep(now - self.window)
        self._last_sweep = now
        if removed:
            logger.debug("Login rate limiter sweep removed %s stale identifiers", removed)
        return removed

    def maybe_sweep(self, now: datetime | None = None) -> int:
        """Run sweep() if at least one window has passed since the last one."""
        now = now or self._clock()
        if now - self._last_sweep >= self.window:
            return self.sweep(now)
        return 0
