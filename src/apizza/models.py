"""Pydantic models shared across apizza modules.

**Storage models** -- persisted as JSON inside the key-value store:
    :class:`CacheRecord` (one per cached resource) and :class:`Order` with its
    :class:`OrderProduct` lines (one per saved order).

**Settings models** -- how the CLI talks to the ordering service:
    :class:`RequestConfig` and :class:`ClientSettings`.

The user profile itself is not a pydantic model; it is a dotted-path
document declared in :mod:`apizza.profile`.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Cache records ---


class CacheRecord(BaseModel):
    """The last successful snapshot of a named resource.

    ``fetched_at`` is a POSIX timestamp. For one resource it never
    decreases, and ``snapshot`` is always the payload fetched at that time.
    """

    resource_name: str
    snapshot: bytes
    fetched_at: float

    def age(self, now: float) -> float:
        """Seconds elapsed since the snapshot was fetched."""
        return now - self.fetched_at

    def to_bytes(self) -> bytes:
        """Serialise the record for storage (snapshot base64-encoded)."""
        data = {
            "resource_name": self.resource_name,
            "fetched_at": self.fetched_at,
            "snapshot": base64.b64encode(self.snapshot).decode("ascii"),
        }
        return json.dumps(data).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> CacheRecord:
        """Deserialise a record written by :meth:`to_bytes`.

        Raises:
            ValueError: If *raw* is not a valid record.
        """
        try:
            data = json.loads(raw.decode("utf-8"))
            data["snapshot"] = base64.b64decode(data["snapshot"], validate=True)
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as exc:
            raise ValueError(f"Malformed cache record: {exc}") from exc
        except binascii.Error as exc:
            raise ValueError(f"Malformed cache snapshot: {exc}") from exc
        return cls.model_validate(data)


# --- Orders ---


class OrderProduct(BaseModel):
    """One product line in a saved order."""

    code: str = Field(alias="Code")
    qty: int = Field(default=1, alias="Qty", ge=1)
    options: dict[str, Any] = Field(default_factory=dict, alias="Options")

    model_config = ConfigDict(populate_by_name=True)


class Order(BaseModel):
    """A named order saved locally, in the ordering service's field casing.

    Extra fields returned by the service are preserved so that a stored
    order round-trips without loss.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    store_id: str = Field(default="", alias="StoreID")
    service_method: str = Field(default="Delivery", alias="ServiceMethod")
    products: list[OrderProduct] = Field(default_factory=list, alias="Products")
    address: dict[str, Any] = Field(default_factory=dict, alias="Address")
    language_code: str = Field(default="en", alias="LanguageCode")

    def add_product(self, code: str, qty: int = 1, options: Optional[dict[str, Any]] = None) -> None:
        """Append a product line, merging with an existing line of the same code."""
        for line in self.products:
            if line.code == code and line.options == (options or {}):
                line.qty += qty
                return
        self.products.append(OrderProduct(code=code, qty=qty, options=options or {}))


# --- Client settings ---


class RequestConfig(BaseModel):
    """HTTP request settings for the ordering service."""

    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    max_retries: int = Field(default=2, description="Max retry attempts")


class ClientSettings(BaseModel):
    """Settings used to reach the ordering service and cache its catalog."""

    base_url: str = Field(
        default="https://order.dominos.com", description="Ordering service root URL"
    )
    language: str = Field(default="en", description="Catalog language code")
    menu_ttl_seconds: int = Field(
        default=12 * 60 * 60, description="How long a fetched menu stays fresh"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
