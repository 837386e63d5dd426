"""Order commands -- create, list, show and delete saved orders.

Orders live in the local store (see :class:`~apizza.orders.OrderBook`).
Creating an order also records its name under ``myorders`` in the profile.
"""

from __future__ import annotations

from typing import List

import typer

from apizza.client import OrderingClient
from apizza.commands import open_session
from apizza.commands.menu import find_product, load_menu, load_store
from apizza.document import Sequence, get
from apizza.exceptions import ConfigError, InvalidUsageError
from apizza.models import Order
from apizza.output import OutputFormat, get_output, info, print_data, print_table, success
from apizza.profile import Address
from apizza.session import Session

order_app = typer.Typer(no_args_is_help=True)


def _saved_names(session: Session) -> Sequence:
    node = session.profile.child("myorders")
    if not isinstance(node, Sequence):
        raise ConfigError("Profile field 'myorders' is not a list")
    return node


def _remember(session: Session, name: str) -> None:
    names = _saved_names(session)
    if any(get(item, "name") == name for item in names.items):
        return
    names.append()
    session.set(f"myorders.{len(names.items) - 1}.name", name)


def _forget(session: Session, name: str) -> None:
    names = _saved_names(session)
    names.items = [item for item in names.items if get(item, "name") != name]


def _order_address(order: Order) -> Address:
    fields = order.address
    return Address(
        street=str(fields.get("Street", "")),
        city_name=str(fields.get("City", "")),
        state=str(fields.get("Region", "")),
        zipcode=str(fields.get("PostalCode", "")),
    )


def _format_address(address: Address) -> str:
    try:
        return address.format(indent=len("Address: "))
    except ValueError:
        # Zip code missing or not five digits.
        return ", ".join(part for part in (address.street, address.city_name) if part)


@order_app.command("list")
def order_list() -> None:
    """List the names of saved orders."""
    with open_session() as session:
        names = session.orders.names()
    if not names:
        info("No saved orders.")
        return
    for name in names:
        print_data(name)


@order_app.command("show")
def order_show(name: str = typer.Argument(help="Name of the saved order.")) -> None:
    """Show a saved order's products, store and service method."""
    with open_session() as session:
        order = session.orders.get(name)

    if get_output().format == OutputFormat.JSON:
        print_data(order.model_dump_json(by_alias=True, indent=2))
        return
    info(f"{name}: store {order.store_id or '-'}, {order.service_method}")
    address = _order_address(order)
    if not address.is_empty():
        info(f"Address: {_format_address(address)}")
    rows = [
        [line.code, str(line.qty), ", ".join(f"{k}={v}" for k, v in line.options.items())]
        for line in order.products
    ]
    print_table(["Code", "Qty", "Options"], rows, title=name)


@order_app.command("delete")
def order_delete(name: str = typer.Argument(help="Name of the saved order.")) -> None:
    """Delete a saved order."""
    with open_session(save=True) as session:
        session.orders.delete(name)
        _forget(session, name)
    success(f"{name} successfully deleted.")


@order_app.command("new")
def order_new(
    name: str = typer.Option("", "--name", "-n", help="Name for the new order."),
    products: List[str] = typer.Option(
        [], "--product", "-p", help="Product code to add. Repeat for several."
    ),
) -> None:
    """Create a new order for the nearest store and save it locally.

    Each product code is checked against the store menu.

    Example::

        apizza order new --name friday --product 14SCREEN --product 2LCOKE
    """
    from apizza.config import resolve_settings

    with open_session(save=True) as session:
        if not name.strip():
            raise InvalidUsageError("No order name... use '--name=<order name>'")
        settings = resolve_settings()
        address = session.address()
        with OrderingClient(settings) as client:
            store = load_store(session, client, settings)
            menu = load_menu(session, client, settings) if products else {}

        order = Order(
            store_id=str(store.get("StoreID", "")),
            service_method=session.get("service"),
            address={
                "Street": address.street,
                "City": address.city_name,
                "Region": address.state_code,
                "PostalCode": address.zip,
            },
            language_code=settings.language,
        )
        for code in products:
            find_product(menu, code)
            order.add_product(code)

        session.orders.save(name, order)
        _remember(session, name)
    success(f"Saved order '{name}' with {len(order.products)} product(s).")
