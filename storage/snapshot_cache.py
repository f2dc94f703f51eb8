"""In-memory snapshot cache that refreshes lazily from a source."""
import logging
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Generic, Iterable, Optional, TypeVar

from processor.errors import ConfigurationError
from processor.models import Snapshot

logger = logging.getLogger(__name__)

T = TypeVar('T')

MIN_TTL = timedelta(minutes=1)
DEFAULT_TTL = timedelta(minutes=30)


class CacheState(Enum):
    """Lifecycle of a snapshot cache."""

    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


def utc_now() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SnapshotCache(Generic[T]):
    """
    Single-value cache holding the last good snapshot from a source.

    Staleness is checked only when ``get`` is called; there is no background
    refresh. A failed refresh is logged and the previous snapshot keeps being
    served. Concurrent callers that all see a stale entry may each fetch;
    whichever finishes last publishes, and every publication is a complete
    snapshot.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Iterable[T]],
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize an empty cache.

        Args:
            name: Source name used in log messages
            fetch: Callable returning the source's items, raising on failure
            ttl: Age after which the snapshot is refreshed (at least 1 minute)
            clock: Returns the current time; injectable for tests

        Raises:
            ConfigurationError: If ttl is below one minute
        """
        if ttl < MIN_TTL:
            raise ConfigurationError(
                f"{name} cache duration must be at least 1 minute, got: {ttl}"
            )

        self.name = name
        self.ttl = ttl
        self._fetch = fetch
        self._clock = clock
        self._lock = threading.Lock()
        # None until the first successful fetch; snapshot.produced_at is the
        # refresh time, so both are always swapped together.
        self._snapshot: Optional[Snapshot[T]] = None

    @property
    def last_refreshed_at(self) -> Optional[datetime]:
        snapshot = self._current()
        return snapshot.produced_at if snapshot else None

    def state(self) -> CacheState:
        snapshot = self._current()
        if snapshot is None:
            return CacheState.EMPTY
        if self._is_expired(snapshot):
            return CacheState.STALE
        return CacheState.FRESH

    def is_stale(self) -> bool:
        """True when the next ``get`` would attempt a refresh."""
        return self.state() is not CacheState.FRESH

    def get(self) -> Snapshot[T]:
        """
        Return the current snapshot, refreshing it first if empty or stale.

        Returns:
            The freshest available snapshot, or an empty snapshot if no
            fetch has ever succeeded
        """
        snapshot = self._current()
        if snapshot is None or self._is_expired(snapshot):
            snapshot = self.refresh()

        return snapshot if snapshot is not None else Snapshot()

    def refresh(self) -> Optional[Snapshot[T]]:
        """
        Fetch from the source and publish a new snapshot.

        Failures are logged and never raised; the existing snapshot is left
        untouched.

        Returns:
            The snapshot current after the attempt, or None if still empty
        """
        logger.info(f"Refreshing {self.name} cache")

        try:
            items = tuple(self._fetch())
        except Exception as e:
            previous = self._current()
            logger.error(
                f"Failed to refresh {self.name} cache: {e}",
                extra={
                    'source': self.name,
                    'error_type': type(e).__name__,
                    'serving_stale': previous is not None,
                },
                exc_info=True
            )
            return previous

        snapshot = Snapshot(items=items, produced_at=self._clock())
        with self._lock:
            self._snapshot = snapshot

        logger.info(f"{self.name} cache refreshed with {len(items)} items")
        return snapshot

    def _current(self) -> Optional[Snapshot[T]]:
        with self._lock:
            return self._snapshot

    def _is_expired(self, snapshot: Snapshot[T]) -> bool:
        return self._clock() - snapshot.produced_at >= self.ttl
