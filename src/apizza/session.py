"""Explicit ownership of the profile document, store, and cache.

A :class:`Session` bundles one profile document, one key-value store, the
:class:`~apizza.cache.StalenessCache` over that store, and the
:class:`~apizza.orders.OrderBook` sharing it. Commands receive the session
rather than reaching for module-level globals, so two sessions in one
process (or one session shared by a long-running service) stay isolated.

The document is not locked; whoever owns the session serialises access to
it. The cache does its own per-resource locking.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from apizza import document
from apizza.cache import RefreshCapability, StalenessCache
from apizza.config import (
    get_cache_dir,
    get_config_file,
    get_store_dir,
    load_profile_document,
    save_profile_document,
)
from apizza.document import Record
from apizza.orders import OrderBook
from apizza.profile import Address
from apizza.store import DiskStore, KeyValueStore

logger = logging.getLogger(__name__)


class Session:
    """One user's profile plus the local persistence it works against.

    Args:
        profile: The profile document (see :mod:`apizza.profile`).
        store: Backing store for cached resources and saved orders.
        config_file: Where :meth:`save` writes the profile. ``None`` makes
            :meth:`save` a no-op.
        clock: Time source passed to the cache.
    """

    def __init__(
        self,
        profile: Record,
        store: KeyValueStore,
        config_file: Optional[Path] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.profile = profile
        self.store = store
        self.cache = StalenessCache(store) if clock is None else StalenessCache(store, clock)
        self.orders = OrderBook(store)
        self._config_file = config_file

    @classmethod
    def open(
        cls,
        config_file: Optional[Path] = None,
        cache_dir: Optional[Path] = None,
    ) -> Session:
        """Load the profile from disk and open the on-disk store.

        Raises:
            ConfigError: If the profile file is invalid.
            StoreUnavailableError: If the store cannot be opened.
        """
        config_file = config_file or get_config_file()
        profile = load_profile_document(config_file)
        store = DiskStore(get_store_dir(cache_dir or get_cache_dir()))
        logger.debug("Session opened with profile %s", config_file)
        return cls(profile, store, config_file=config_file)

    @property
    def config_file(self) -> Optional[Path]:
        return self._config_file

    # --- profile access ---

    def get(self, path: str) -> str:
        return document.get(self.profile, path)

    def set(self, path: str, value: str) -> None:
        document.set(self.profile, path, value)

    def settings(self) -> dict[str, str]:
        return document.enumerate_values(self.profile)

    def address(self) -> Address:
        return Address.from_profile(self.profile)

    # --- cached resources ---

    def resolve(
        self,
        resource_name: str,
        ttl: float,
        refresh: RefreshCapability,
        **kwargs,
    ) -> bytes:
        """Shortcut for :meth:`StalenessCache.resolve` on this session's cache."""
        return self.cache.resolve(resource_name, ttl, refresh, **kwargs)

    # --- lifecycle ---

    def save(self) -> None:
        """Write the profile back to its config file."""
        if self._config_file is not None:
            save_profile_document(self.profile, self._config_file)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
