"""Synchronous HTTP client for the ordering service.

:class:`OrderingClient` wraps :class:`httpx.Client` and layers on:

- **Service status mapping** -- the service answers ``200`` even for
  failures and reports them in the body (``"Status": -1``); those become
  :class:`~apizza.exceptions.OrderingServiceError`.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Refresh capabilities** -- :meth:`OrderingClient.menu_refresher` returns
  a callable that the :class:`~apizza.cache.StalenessCache` invokes to
  fetch a new menu snapshot.

Only the calls the CLI needs are implemented: the store locator and the
store menu.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

import httpx

from apizza import __version__
from apizza.cache import RefreshCapability
from apizza.exceptions import (
    ConnectionError_,
    NotFoundError,
    OrderingServiceError,
    ServerError,
)
from apizza.models import ClientSettings
from apizza.profile import Address

logger = logging.getLogger(__name__)

FAILURE_STATUS = -1
WARNING_STATUS = 1
OK_STATUS = 0

_USER_AGENT = f"apizza/{__version__}"


def check_status(payload: Any) -> None:
    """Raise if a service payload reports failure.

    The service marks failures with ``Status == -1`` at the top level or
    under ``Order``. Warnings (``Status == 1``) are logged and accepted.

    Raises:
        OrderingServiceError: With the payload's status items attached.
    """
    if not isinstance(payload, dict):
        return
    status = payload.get("Status", OK_STATUS)
    order = payload.get("Order") if isinstance(payload.get("Order"), dict) else {}
    items = list(payload.get("StatusItems") or []) + list(order.get("StatusItems") or [])
    if status == FAILURE_STATUS or order.get("Status") == FAILURE_STATUS:
        codes = [str(item.get("Code", "")) for item in items if isinstance(item, dict)]
        detail = ", ".join(c for c in codes if c) or "unknown failure"
        raise OrderingServiceError(f"Ordering service failure: {detail}", items)
    if status == WARNING_STATUS:
        logger.warning("Ordering service warning: %s", items)


class OrderingClient:
    """HTTP client for the ordering service.

    Must be used as a context manager so the underlying transport is
    opened and closed.

    Args:
        settings: Base URL, language and request settings.
        transport: Optional custom :class:`httpx.BaseTransport` (tests use
            :class:`httpx.MockTransport`).

    Example::

        with OrderingClient(resolve_settings()) as client:
            store = client.nearest_store(address, "Delivery")
            raw_menu = client.menu(store["StoreID"])
    """

    def __init__(
        self,
        settings: ClientSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._sleep = time.sleep

    def __enter__(self) -> OrderingClient:
        self._client = httpx.Client(
            base_url=self._settings.base_url,
            timeout=self._settings.request.timeout,
            headers={"User-Agent": _USER_AGENT, "Accept": "application/json"},
            follow_redirects=False,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Service calls
    # ------------------------------------------------------------------ #

    def menu(self, store_id: str) -> bytes:
        """Fetch the raw menu document for *store_id*.

        Returns:
            The response body, unparsed, for caching as a snapshot.
        """
        response = self._get(
            f"/power/store/{store_id}/menu",
            params={"lang": self._settings.language, "structured": "true"},
        )
        check_status(_json_or_none(response))
        return response.content

    def nearest_store(self, address: Address, service: str) -> dict[str, Any]:
        """Return the closest store offering *service* for *address*.

        Raises:
            NotFoundError: If no store serves the address.
        """
        params = {**address.as_query(), "type": service}
        response = self._get("/power/store-locator", params=params)
        payload = _json_or_none(response)
        check_status(payload)
        stores = payload.get("Stores") if isinstance(payload, dict) else None
        if not stores:
            raise NotFoundError(f"No store offers {service} to {address.street or 'that address'}")
        return stores[0]

    def menu_refresher(self, store_id: str) -> RefreshCapability:
        """Return a refresh callable fetching *store_id*'s menu.

        The previous snapshot is ignored; the menu endpoint has no
        conditional fetch.
        """

        def _refresh(prior: Optional[bytes]) -> bytes:
            logger.debug("Fetching menu for store %s", store_id)
            return self.menu(store_id)

        return _refresh

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        response = self._execute_with_retry("GET", path, params)
        self._map_response_error(response)
        return response

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]],
    ) -> httpx.Response:
        """Execute the request, retrying 5xx and network errors with backoff."""
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._settings.request.max_retries
        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(method, path, params=params)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %d/%d)",
                        exc, delay, attempt + 1, max_retries,
                    )
                    self._sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, max_retries,
                )
                self._sleep(delay)
                continue
            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 300:
            return
        prefix = f"HTTP {status}"
        text = response.text[:200] if response.text else ""
        message = f"{prefix}: {text}" if text else prefix
        if status == 404:
            raise NotFoundError(message)
        raise ServerError(message)


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
