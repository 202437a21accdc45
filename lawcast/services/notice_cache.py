"""
Change-detection cache for legislative notices.

Holds the most recently seen window of notices, keyed by ``num``:
- Snapshot is always sorted by ``num`` descending
- No two entries share a ``num``
- Never more than ``max_size`` entries

The snapshot is an immutable tuple replaced under a lock, so readers
(status endpoints) always see a complete, sorted view even while a poll
cycle is writing.
"""

import threading
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple

import structlog

from lawcast.models.cache import CacheConfig, CacheInfo
from lawcast.models.notice import Notice
from lawcast.observability.metrics import CACHE_SIZE

logger = structlog.get_logger()


def _sorted_desc(notices: Iterable[Notice]) -> List[Notice]:
    # sorted() is stable: among equal nums the first occurrence stays first
    return sorted(notices, key=lambda n: n.num, reverse=True)


def _dedupe(notices: Iterable[Notice]) -> List[Notice]:
    """Drop later occurrences of an already seen ``num``."""
    seen: Set[int] = set()
    unique: List[Notice] = []
    for notice in notices:
        if notice.num in seen:
            continue
        seen.add(notice.num)
        unique.append(notice)
    return unique


class NoticeCache:
    """
    In-memory change-detection cache.

    Single writer (the poller's single-flight cycle); any number of readers.
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        """
        Initialize an empty, uninitialized cache.

        Args:
            config: Cache configuration (max_size, default_limit)
        """
        self.config = config or CacheConfig()
        self.max_size = self.config.max_size
        self._snapshot: Tuple[Notice, ...] = ()
        self._last_updated: Optional[datetime] = None
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self, notices: Iterable[Notice]) -> None:
        """
        Establish the baseline snapshot without any diffing.

        Replaces the snapshot unconditionally. Used once at startup so the
        first scheduled poll does not notify for pre-existing notices.
        """
        with self._lock:
            self._initialize_locked(notices)

        logger.info("cache_initialized", size=len(self._snapshot))

    def update(self, notices: Iterable[Notice]) -> None:
        """
        Merge incoming notices into the snapshot.

        Existing entries win ties on ``num``. Re-applying the same batch
        leaves the snapshot unchanged. Falls back to ``initialize`` when
        the cache has no baseline yet.
        """
        with self._lock:
            if not self._initialized:
                self._initialize_locked(notices)
                added = len(self._snapshot)
            else:
                added = self._update_locked(notices)

        logger.debug("cache_updated", added=added, size=len(self._snapshot))

    def diff_new(self, notices: Iterable[Notice]) -> List[Notice]:
        """
        Return the notices whose ``num`` is not in the current snapshot.

        Returns an empty list when the cache is not initialized, so that no
        notification storm happens before a baseline exists.
        """
        snapshot = self._snapshot
        if not self._initialized:
            return []

        existing = {n.num for n in snapshot}
        return [n for n in notices if n.num not in existing]

    def merge(self, notices: Iterable[Notice]) -> List[Notice]:
        """
        Diff against the snapshot as it is now, then apply the update.

        Both steps run under the write lock, so "new" always means "not
        cached when this call started". Notices evicted by the size cap in
        the same call are still reported as new.

        Returns:
            New notices, highest ``num`` first, without duplicates
        """
        batch = list(notices)

        with self._lock:
            if not self._initialized:
                self._initialize_locked(batch)
                new: List[Notice] = []
            else:
                existing = {n.num for n in self._snapshot}
                new = _dedupe(
                    n for n in _sorted_desc(batch) if n.num not in existing
                )
                self._update_locked(batch)

        logger.info(
            "cache_merged",
            incoming=len(batch),
            new=len(new),
            size=len(self._snapshot),
        )
        return new

    def recent(self, limit: Optional[int] = None) -> List[Notice]:
        """Return up to ``min(limit, max_size)`` most recent notices."""
        if limit is None:
            limit = self.config.default_limit
        if limit <= 0:
            return []
        return list(self._snapshot[: min(limit, self.max_size)])

    def info(self) -> CacheInfo:
        """Return cache size, capacity, and lifecycle state."""
        return CacheInfo(
            size=len(self._snapshot),
            max_size=self.max_size,
            is_initialized=self._initialized,
            last_updated=self._last_updated,
        )

    def clear(self) -> None:
        """Drop all entries and return to the uninitialized state."""
        with self._lock:
            self._snapshot = ()
            self._last_updated = None
            self._initialized = False
        CACHE_SIZE.set(0)
        logger.info("cache_cleared")

    def _initialize_locked(self, notices: Iterable[Notice]) -> None:
        ordered = _dedupe(_sorted_desc(notices))
        self._snapshot = tuple(ordered[: self.max_size])
        self._last_updated = datetime.now(timezone.utc)
        self._initialized = True
        CACHE_SIZE.set(len(self._snapshot))

    def _update_locked(self, notices: Iterable[Notice]) -> int:
        existing = {n.num for n in self._snapshot}
        incoming = _dedupe(
            n for n in _sorted_desc(notices) if n.num not in existing
        )

        merged = _sorted_desc(incoming + list(self._snapshot))
        self._snapshot = tuple(merged[: self.max_size])
        self._last_updated = datetime.now(timezone.utc)
        CACHE_SIZE.set(len(self._snapshot))
        return len(incoming)
