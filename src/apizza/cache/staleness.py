"""Staleness-checked cache for expensive remote resources.

:class:`StalenessCache` keeps the last successful snapshot of each named
resource (for example the ``"menu"`` catalog) in a
:class:`~apizza.store.KeyValueStore`, so freshness survives process
restarts. For each resource it moves between three states:

* ``ABSENT`` -- no record stored.
* ``FRESH`` -- ``now - fetched_at < ttl``; the stored snapshot is served and
  the refresh callable is not invoked.
* ``STALE`` -- the record is too old (or the caller forces a refresh).

Refreshes are coalesced per resource: while one refresh of ``"menu"`` is in
flight, further :meth:`~StalenessCache.resolve` calls for ``"menu"`` wait
for it and receive the same snapshot or error. Different resources refresh
independently.

A record is only written after a refresh returns a complete snapshot, so a
failed refresh never changes what is stored. A caller's ``timeout`` bounds
its own wait, not the refresh: a refresh that outlives its callers stays
in flight, and is still stored if it completes.

Example::

    cache = StalenessCache(DiskStore(get_cache_dir() / "apizza.db"))
    raw_menu = cache.resolve("menu", ttl=3600, refresh=client.menu_refresher("4336"))
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable, Optional

from apizza.exceptions import (
    RefreshFailedError,
    RefreshTimeoutError,
    StoreKeyNotFoundError,
    StoreUnavailableError,
)
from apizza.models import CacheRecord
from apizza.store import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "apizza.cache:"
"""Reserved key prefix; no other store entry may start with it."""

RefreshCapability = Callable[[Optional[bytes]], bytes]
"""Produces a fresh snapshot given the previous one (``None`` if absent)."""


class CacheState(str, enum.Enum):
    """Freshness of a cached resource at a point in time."""

    ABSENT = "absent"
    FRESH = "fresh"
    STALE = "stale"


class _Flight:
    """One in-progress refresh shared by every caller waiting on it."""

    def __init__(self, prior: Optional[CacheRecord]) -> None:
        self.prior = prior
        self.done = threading.Event()
        self.snapshot: Optional[bytes] = None
        self.error: Optional[Exception] = None


class StalenessCache:
    """Per-resource TTL cache over a key-value store.

    Args:
        store: Where records are persisted. May be shared with unrelated
            entries; cache records use the :data:`CACHE_KEY_PREFIX` keys.
        clock: Returns the current POSIX time. Injectable for tests.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock
        self._flights: dict[str, _Flight] = {}
        self._flights_lock = threading.Lock()

    @property
    def store(self) -> KeyValueStore:
        return self._store

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #

    @staticmethod
    def cache_key(resource_name: str) -> str:
        """Return the store key holding *resource_name*'s record."""
        return CACHE_KEY_PREFIX + resource_name

    def load(self, resource_name: str) -> Optional[CacheRecord]:
        """Return the stored record for *resource_name*, or ``None`` if absent.

        Raises:
            StoreUnavailableError: If the store fails or the record is corrupt.
        """
        try:
            raw = self._store.get(self.cache_key(resource_name))
        except StoreKeyNotFoundError:
            return None
        try:
            return CacheRecord.from_bytes(raw)
        except ValueError as exc:
            raise StoreUnavailableError(
                f"Corrupt cache record for '{resource_name}': {exc}"
            ) from exc

    def state(self, resource_name: str, ttl: float) -> CacheState:
        """Classify *resource_name* as absent, fresh, or stale for *ttl* seconds."""
        record = self.load(resource_name)
        return self._classify(record, ttl)

    def records(self) -> dict[str, CacheRecord]:
        """Return every cached record keyed by resource name."""
        out: dict[str, CacheRecord] = {}
        for key in self._store.get_all():
            if key.startswith(CACHE_KEY_PREFIX):
                name = key[len(CACHE_KEY_PREFIX):]
                record = self.load(name)
                if record is not None:
                    out[name] = record
        return out

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    def resolve(
        self,
        resource_name: str,
        ttl: float,
        refresh: RefreshCapability,
        *,
        force: bool = False,
        allow_stale: bool = False,
        timeout: Optional[float] = None,
    ) -> bytes:
        """Return a snapshot of *resource_name* no older than *ttl* seconds.

        A fresh record is returned without calling *refresh*. Otherwise
        *refresh* is called with the previous snapshot (or ``None``), and its
        result is stored with ``fetched_at = now`` and returned.

        Args:
            resource_name: Name of the resource, e.g. ``"menu"``.
            ttl: Staleness window in seconds.
            refresh: Produces a new snapshot; may block on network I/O.
            force: Treat the record as stale even if it is fresh.
            allow_stale: On refresh failure, return the previous snapshot
                (if any) instead of raising. ``fetched_at`` is not updated.
            timeout: Seconds this caller waits for the refresh before failing
                with :class:`~apizza.exceptions.RefreshTimeoutError`. The
                refresh itself keeps running and is stored if it completes.

        Raises:
            RefreshFailedError: The refresh failed and no stale fallback
                applied. Stored state is unchanged.
            RefreshTimeoutError: This caller's wait missed the deadline.
            StoreUnavailableError: The store could not be read or written.
        """
        if ttl < 0:
            raise ValueError("ttl must be non-negative")

        record = self.load(resource_name)
        if not force and record is not None and self._classify(record, ttl) is CacheState.FRESH:
            logger.debug("Cache hit for '%s' (age %.0fs)", resource_name, record.age(self._clock()))
            return record.snapshot

        with self._flights_lock:
            flight = self._flights.get(resource_name)
            leader = flight is None
            if flight is None:
                flight = _Flight(record)
                self._flights[resource_name] = flight

        if leader:
            self._lead(resource_name, ttl, flight, refresh, force, timeout)
        else:
            logger.debug("Joining in-flight refresh of '%s'", resource_name)
        return self._wait(resource_name, flight, timeout, allow_stale)

    def invalidate(self, resource_name: str) -> None:
        """Delete the record for *resource_name*; the next resolve refreshes."""
        self._store.delete(self.cache_key(resource_name))
        logger.debug("Invalidated '%s'", resource_name)

    def invalidate_all(self) -> int:
        """Delete every cache record and return how many were removed.

        Entries outside the reserved prefix (saved orders) are untouched.
        """
        keys = [k for k in self._store.get_all() if k.startswith(CACHE_KEY_PREFIX)]
        for key in keys:
            self._store.delete(key)
        return len(keys)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _classify(self, record: Optional[CacheRecord], ttl: float) -> CacheState:
        if record is None:
            return CacheState.ABSENT
        if record.age(self._clock()) < ttl:
            return CacheState.FRESH
        return CacheState.STALE

    def _lead(
        self,
        name: str,
        ttl: float,
        flight: _Flight,
        refresh: RefreshCapability,
        force: bool,
        timeout: Optional[float],
    ) -> None:
        # Another leader may have stored a fresh record between our first
        # look and taking the flight slot.
        if not force:
            try:
                current = self.load(name)
            except StoreUnavailableError as exc:
                self._settle(name, flight, None, exc)
                return
            if current is not None and self._classify(current, ttl) is CacheState.FRESH:
                self._settle(name, flight, current.snapshot, None)
                return
            flight.prior = current

        if timeout is None:
            self._execute(name, flight, refresh)
            return

        # The flight stays registered until the worker returns, even if every
        # caller has stopped waiting for it.
        worker = threading.Thread(
            target=self._execute,
            args=(name, flight, refresh),
            name=f"apizza-refresh-{name}",
            daemon=True,
        )
        worker.start()

    def _execute(self, name: str, flight: _Flight, refresh: RefreshCapability) -> None:
        prior = flight.prior.snapshot if flight.prior is not None else None
        try:
            snapshot = bytes(refresh(prior))
        except RefreshFailedError as exc:
            self._settle(name, flight, None, exc)
            return
        except Exception as exc:
            error = RefreshFailedError(f"Refreshing '{name}' failed: {exc}", name)
            error.__cause__ = exc
            self._settle(name, flight, None, error)
            return
        except BaseException:
            self._settle(
                name, flight, None, RefreshFailedError(f"Refreshing '{name}' was interrupted", name)
            )
            raise

        now = self._clock()
        if flight.prior is not None:
            now = max(now, flight.prior.fetched_at)
        record = CacheRecord(resource_name=name, snapshot=snapshot, fetched_at=now)
        try:
            self._store.put(self.cache_key(name), record.to_bytes())
        except StoreUnavailableError as exc:
            self._settle(name, flight, None, exc)
            return
        logger.debug("Refreshed '%s' (%d bytes)", name, len(snapshot))
        self._settle(name, flight, snapshot, None)

    def _settle(
        self,
        name: str,
        flight: _Flight,
        snapshot: Optional[bytes],
        error: Optional[Exception],
    ) -> None:
        flight.snapshot = snapshot
        flight.error = error
        with self._flights_lock:
            if self._flights.get(name) is flight:
                del self._flights[name]
        flight.done.set()

    def _wait(
        self,
        name: str,
        flight: _Flight,
        timeout: Optional[float],
        allow_stale: bool,
    ) -> bytes:
        error: Exception
        if not flight.done.wait(timeout):
            logger.warning(
                "Stopped waiting for '%s' after %ss; the refresh continues in the background",
                name,
                timeout,
            )
            error = RefreshTimeoutError(f"Timed out after {timeout}s waiting for '{name}'", name)
        elif flight.error is not None:
            error = flight.error
        elif flight.snapshot is None:
            error = RefreshFailedError(f"Refreshing '{name}' produced no snapshot", name)
        else:
            return flight.snapshot

        if (
            allow_stale
            and flight.prior is not None
            and isinstance(error, RefreshFailedError)
        ):
            logger.warning("Serving stale '%s': %s", name, error)
            return flight.prior.snapshot
        raise error
