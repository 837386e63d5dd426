"""The user profile document and address helpers.

The profile is a dotted-path document (see :mod:`apizza.document`) with
these keys::

    name
    email
    address.street
    address.city_name
    address.state
    address.zipcode
    card.number
    card.expiration
    card.cvv
    service                 (default "Delivery")
    myorders.<index>.name

It is persisted as ``config.json`` in the apizza config directory by
:func:`apizza.config.load_profile_document` and
:func:`apizza.config.save_profile_document`.
"""

from __future__ import annotations

from dataclasses import dataclass

from apizza.document import Record, Schema, SchemaBuilder, get

DEFAULT_SERVICE = "Delivery"

ADDRESS_SCHEMA: Schema = (
    SchemaBuilder()
    .text("street")
    .text("city_name")
    .text("state")
    .text("zipcode")
    .build()
)

CARD_SCHEMA: Schema = (
    SchemaBuilder()
    .text("number")
    .text("expiration")
    .text("cvv")
    .build()
)

SAVED_ORDER_SCHEMA: Schema = SchemaBuilder().text("name").build()

PROFILE_SCHEMA: Schema = (
    SchemaBuilder()
    .text("name")
    .text("email")
    .record("address", ADDRESS_SCHEMA)
    .record("card", CARD_SCHEMA)
    .text("service", default=DEFAULT_SERVICE)
    .sequence("myorders", SAVED_ORDER_SCHEMA)
    .build()
)


def new_profile() -> Record:
    """Return an empty profile document."""
    return PROFILE_SCHEMA.new_document()


@dataclass
class Address:
    """A delivery address as typed by the user."""

    street: str = ""
    city_name: str = ""
    state: str = ""
    zipcode: str = ""

    @classmethod
    def from_profile(cls, doc: Record) -> Address:
        return cls(
            street=get(doc, "address.street"),
            city_name=get(doc, "address.city_name"),
            state=get(doc, "address.state"),
            zipcode=get(doc, "address.zipcode"),
        )

    @property
    def state_code(self) -> str:
        """Upper-cased state, or ``""`` unless it is exactly two characters."""
        state = self.state.strip()
        return state.upper() if len(state) == 2 else ""

    @property
    def zip(self) -> str:
        """The zip code, or ``""`` unless it is exactly five characters."""
        zipcode = self.zipcode.strip()
        return zipcode if len(zipcode) == 5 else ""

    def is_empty(self) -> bool:
        return not (self.street or self.city_name or self.state or self.zipcode)

    def format(self, indent: int = 0) -> str:
        """Render the address on two lines.

        Example::

            1600 Pennsylvania Ave NW
            Washington, DC 20500

        Raises:
            ValueError: If the state is set but not a two-letter code, or the
                zip code is not five digits.
        """
        state = self.state.strip()
        zipcode = self.zipcode.strip()
        if state and len(state) != 2:
            raise ValueError(f"Invalid state code: {self.state!r}")
        if not (len(zipcode) == 5 and zipcode.isdigit()):
            raise ValueError(f"Invalid zip code: {self.zipcode!r}")

        pad = " " * indent
        second = f"{self.city_name}, {state.upper()} {zipcode}" if state else f"{self.city_name}, {zipcode}"
        return f"{self.street}\n{pad}{second}"

    def as_query(self) -> dict[str, str]:
        """Store-locator query parameters for this address."""
        region = " ".join(part for part in (self.state_code, self.zip) if part)
        line2 = f"{self.city_name}, {region}" if region else self.city_name
        return {"s": self.street, "c": line2}
