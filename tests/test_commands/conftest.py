"""Fixtures for command tests: a fake ordering service."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from apizza import document
from apizza.client import OrderingClient
from apizza.config import load_profile_document, save_profile_document

DEFAULT_STORE = "4336"


class FakeService:
    """Answers store-locator and menu requests and counts them.

    The locator picks a store by the zip code at the end of the address
    line (see :attr:`stores`), falling back to :data:`DEFAULT_STORE`.
    """

    def __init__(self, menu: dict[str, Any]) -> None:
        self.menu = menu
        self.stores: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.down = False

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def _store_for(self, line2: str) -> str:
        for zipcode, store_id in self.stores.items():
            if line2.endswith(zipcode):
                return store_id
        return DEFAULT_STORE

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("service down", request=request)
        path = request.url.path
        if path == "/power/store-locator":
            store_id = self._store_for(request.url.params.get("c", ""))
            return httpx.Response(200, json={"Status": 0, "Stores": [{"StoreID": store_id}]})
        if path.startswith("/power/store/") and path.endswith("/menu"):
            return httpx.Response(200, content=json.dumps(self.menu).encode("utf-8"))
        return httpx.Response(404, text="not found")


@pytest.fixture
def profile_address(isolated_config) -> dict[str, str]:
    """Write a delivery address into the isolated profile."""
    address = {
        "address.street": "1 Main St",
        "address.city_name": "Springfield",
        "address.state": "IL",
        "address.zipcode": "62701",
    }
    profile = load_profile_document()
    for path, value in address.items():
        document.set(profile, path, value)
    save_profile_document(profile)
    return address


@pytest.fixture
def fake_service(
    isolated_config,
    profile_address,
    sample_menu: dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
) -> FakeService:
    """Route every OrderingClient the commands create to a FakeService."""
    service = FakeService(sample_menu)
    monkeypatch.setenv("APIZZA_BASE_URL", "https://order.example.com")

    def _factory(settings):
        client = OrderingClient(
            settings.model_copy(update={"request": settings.request.model_copy(update={"max_retries": 0})}),
            transport=httpx.MockTransport(service),
        )
        return client

    monkeypatch.setattr("apizza.commands.menu.OrderingClient", _factory)
    monkeypatch.setattr("apizza.commands.order.OrderingClient", _factory)
    return service
