"""Staleness-checked resource caching for apizza.

This package provides :class:`StalenessCache`, which stores the last
successful snapshot of each named remote resource (the menu, for example)
in a :class:`~apizza.store.KeyValueStore` and only calls the caller's
refresh function when the snapshot is missing or older than its TTL.

The cache is owned by :class:`~apizza.session.Session` and used by the
``menu`` and ``order`` commands.
"""

from apizza.cache.staleness import (
    CACHE_KEY_PREFIX,
    CacheState,
    RefreshCapability,
    StalenessCache,
)

__all__ = ["CACHE_KEY_PREFIX", "CacheState", "RefreshCapability", "StalenessCache"]
