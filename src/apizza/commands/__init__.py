"""Built-in CLI sub-commands for apizza.

* :mod:`~apizza.commands.config` -- read and edit the user profile, and
  clear the local cache.
* :mod:`~apizza.commands.menu` -- print the (cached) store menu.
* :mod:`~apizza.commands.order` -- create, show and delete saved orders.

Each command opens a :class:`~apizza.session.Session` through
:func:`open_session`, which turns :class:`~apizza.exceptions.ApizzaError`
into an error message on stderr and the matching exit code.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from apizza.exceptions import ApizzaError
from apizza.output import error
from apizza.session import Session


@contextmanager
def open_session(save: bool = False) -> Iterator[Session]:
    """Open the user's session for the duration of a command.

    Args:
        save: Write the profile back to disk when the block succeeds.

    Raises:
        typer.Exit: With the error's exit code if an
            :class:`~apizza.exceptions.ApizzaError` escapes the block.
    """
    try:
        with Session.open() as session:
            yield session
            if save:
                session.save()
    except ApizzaError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
