"""Menu command -- print the store menu, served from the local cache.

Two kinds of resource are cached through the session's
:class:`~apizza.cache.StalenessCache`:

* ``"store:<digest>"`` -- the nearest store for one address and service
  method. The digest covers both, so editing the profile address or
  ``service`` looks the store up again.
* ``"menu:<store id>"`` -- that store's raw menu document.

Both use ``ClientSettings.menu_ttl_seconds``. A fresh cached menu is
printed without touching the network. A stale one is refreshed, or served
as-is with a warning if the refresh fails.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional

import typer

from apizza.client import OrderingClient
from apizza.commands import open_session
from apizza.exceptions import InvalidUsageError, NotFoundError, ServerError
from apizza.models import ClientSettings
from apizza.output import OutputFormat, get_output, print_data
from apizza.profile import Address
from apizza.session import Session

logger = logging.getLogger(__name__)

PRODUCT_SECTIONS = ("Products", "Variants", "PreconfiguredProducts")
"""Menu sections searched, in order, when looking up a product code."""

_HIDDEN_ITEM_FIELDS = {"Name", "Code", "Tags", "ImageCode"}


def store_resource(address: Address, service: str) -> str:
    """Cache resource name for the nearest store to *address* for *service*."""
    query = address.as_query()
    key = "\n".join([service, query["s"], query["c"]]).lower()
    return "store:" + hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def menu_resource(store_id: str) -> str:
    return f"menu:{store_id}"


def load_store(
    session: Session,
    client: OrderingClient,
    settings: ClientSettings,
    force: bool = False,
) -> dict[str, Any]:
    """Return the nearest store for the profile, cached like the menu.

    Raises:
        InvalidUsageError: If the profile has no address yet.
    """
    address = session.address()
    if address.is_empty():
        raise InvalidUsageError(
            "No address in the profile... use 'apizza config set address.street=<street>'"
        )
    service = session.get("service")

    def _refresh(prior: Optional[bytes]) -> bytes:
        return json.dumps(client.nearest_store(address, service)).encode("utf-8")

    raw = session.resolve(
        store_resource(address, service),
        settings.menu_ttl_seconds,
        _refresh,
        force=force,
        allow_stale=True,
    )
    return _decode(raw, "store")


def load_menu(
    session: Session,
    client: OrderingClient,
    settings: ClientSettings,
    force: bool = False,
) -> dict[str, Any]:
    """Return the parsed menu of the nearest store, refetching it only when stale or forced.

    The store is resolved first and is itself cached, so a fresh store and
    a fresh menu need no network access at all.
    """
    store = load_store(session, client, settings, force=force)
    store_id = str(store.get("StoreID", ""))
    if not store_id:
        raise ServerError("Store locator returned a store without an ID")

    raw = session.resolve(
        menu_resource(store_id),
        settings.menu_ttl_seconds,
        client.menu_refresher(store_id),
        force=force,
        allow_stale=True,
    )
    return _decode(raw, "menu")


def _decode(raw: bytes, name: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ServerError(f"Cached {name} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ServerError(f"Cached {name} is not a JSON object")
    return data


# ------------------------------------------------------------------ #
# Menu queries
# ------------------------------------------------------------------ #


def _categories(menu: dict[str, Any], group: str) -> list[dict[str, Any]]:
    categorization = menu.get("Categorization") or {}
    section = categorization.get(group) or {}
    return [c for c in section.get("Categories") or [] if isinstance(c, dict)]


def food_categories(menu: dict[str, Any]) -> list[dict[str, Any]]:
    return _categories(menu, "Food")


def menu_categories(
    menu: dict[str, Any], preconfigured: bool = False, everything: bool = False
) -> list[dict[str, Any]]:
    """Top-level categories: food, pre-configured products, or both."""
    if preconfigured:
        return _categories(menu, "Preconfigured")
    if everything:
        return food_categories(menu) + _categories(menu, "Preconfigured")
    return food_categories(menu)


def find_category(categories: list[dict[str, Any]], name: str) -> dict[str, Any]:
    """Find a category by name or code, ignoring case.

    Raises:
        NotFoundError: If no category matches.
    """
    wanted = name.lower()
    for category in categories:
        if wanted in (str(category.get("Name", "")).lower(), str(category.get("Code", "")).lower()):
            return category
    raise NotFoundError(f"Could not find category '{name}'")


def find_product(menu: dict[str, Any], code: str) -> dict[str, Any]:
    """Look *code* up among products, variants and pre-configured products.

    Raises:
        NotFoundError: If the menu has no such code.
    """
    for section in PRODUCT_SECTIONS:
        product = (menu.get(section) or {}).get(code)
        if isinstance(product, dict):
            return product
    raise NotFoundError(f"Could not find product '{code}' on the menu")


def render_category(menu: dict[str, Any], category: dict[str, Any], depth: int = 0) -> list[str]:
    """Render a category tree as indented lines.

    Leaf categories list their products as ``[CODE] Name`` followed by the
    product's variant codes.
    """
    products = category.get("Products") or []
    children = category.get("Categories") or []
    if not products and not children:
        return []
    lines = ["  " * depth + str(category.get("Name", ""))]
    if products:
        for code in products:
            try:
                product = find_product(menu, code)
            except NotFoundError:
                product = {}
            lines.append(f"{'  ' * depth}[{code}] {product.get('Name', '')}")
            for variant in product.get("Variants") or []:
                lines.append("   " * (depth + 1) + str(variant))
    else:
        for child in children:
            lines.extend(render_category(menu, child, depth + 1))
    return lines


def render_item(product: dict[str, Any]) -> list[str]:
    """Describe one product: name, code, default toppings, then its other fields."""
    tags = product.get("Tags") or {}
    lines = [
        f"{product.get('Name', '')} [{product.get('Code', '')}]",
        f"    DefaultToppings: {tags.get('DefaultToppings', '')}",
    ]
    for key in sorted(product):
        if key not in _HIDDEN_ITEM_FIELDS:
            lines.append(f"    {key}: {product[key]}")
    return lines


def render_toppings(menu: dict[str, Any]) -> list[str]:
    """List topping codes and names, grouped by product type."""
    lines: list[str] = []
    for group, toppings in sorted((menu.get("Toppings") or {}).items()):
        lines.append(f"  {group}")
        for code, topping in sorted((toppings or {}).items()):
            lines.append(f"    {code:<3} {(topping or {}).get('Name', '')}")
        lines.append("")
    return lines


# ------------------------------------------------------------------ #
# Command
# ------------------------------------------------------------------ #


def menu_command(
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Show one category of the menu."
    ),
    item: Optional[str] = typer.Option(
        None, "--item", "-i", help="Show details of one product, variant or pre-configured item."
    ),
    show_categories: bool = typer.Option(
        False, "--show-categories", help="List the category names only."
    ),
    toppings: bool = typer.Option(False, "--toppings", "-t", help="List the toppings."),
    preconfigured: bool = typer.Option(
        False, "--preconfigured", "-p", help="Show the pre-configured products instead of food."
    ),
    everything: bool = typer.Option(
        False, "--all", "-a", help="Show food and pre-configured products."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Refetch the menu even if the cached copy is fresh."
    ),
) -> None:
    """Print the menu of the store nearest to the profile address.

    Example::

        apizza menu --show-categories
        apizza menu --category pizza
        apizza menu --item 14SCREEN
        apizza menu --all --refresh
    """
    from apizza.config import resolve_settings

    with open_session() as session:
        settings = resolve_settings()
        with OrderingClient(settings) as client:
            menu = load_menu(session, client, settings, force=refresh)

        if item:
            product = find_product(menu, item)
            if get_output().format == OutputFormat.JSON:
                print_data(json.dumps(product, indent=2, ensure_ascii=False))
            else:
                for line in render_item(product):
                    print_data(line)
            return

        if toppings:
            for line in render_toppings(menu):
                print_data(line)
            return

        categories = menu_categories(menu, preconfigured=preconfigured, everything=everything)
        if category:
            selected = [find_category(categories, category)]
        elif show_categories:
            for cat in categories:
                if cat.get("Name"):
                    print_data(str(cat["Name"]).lower())
            return
        else:
            selected = categories
        for cat in selected:
            for line in render_category(menu, cat):
                print_data(line)
