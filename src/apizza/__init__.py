"""apizza -- order pizza from the command line.

Users keep a profile (name, address, card, preferred service method),
browse the store's menu, and keep named orders locally. The remote menu is
cached on disk and only re-fetched once it goes stale.

Typical workflow::

    apizza config set name=Bob address.street="1 Main St" address.zipcode=90001
    apizza menu --category pizza
    apizza order new --name friday --product 14SCREEN

Modules:
    app: Typer application and CLI entry point.
    document: Dotted-path configuration documents.
    profile: The user profile schema and address helpers.
    store: Persistent key-value stores.
    cache: Staleness-checked resource cache.
    session: Explicit owner of the profile, store and cache.
    orders: Saved orders.
    client: HTTP client for the ordering service.
    config: XDG-aware file locations and settings.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
