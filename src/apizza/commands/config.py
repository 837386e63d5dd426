"""Config commands -- view and edit the user profile.

Provides the ``apizza config`` sub-command group. Profile fields are
addressed with case-insensitive dotted paths (``address.street``,
``myorders.0.name``); values are typed by the profile schema and coerced
from the text given on the command line.
"""

from __future__ import annotations

from typing import List

import typer

from apizza.commands import open_session
from apizza.exit_codes import EXIT_INVALID_USAGE
from apizza.output import error, info, print_data, print_mapping, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("get")
def config_get(
    keys: List[str] = typer.Argument(help="Dotted profile keys, e.g. 'address.street'."),
) -> None:
    """Print one profile value per key.

    Unset fields print their default, or an empty value if they have none.

    Example::

        apizza config get name service
    """
    with open_session() as session:
        for key in keys:
            print_data(session.get(key))


@config_app.command("set")
def config_set(
    assignments: List[str] = typer.Argument(help="One or more 'key=value' pairs."),
) -> None:
    """Set profile values and save the profile.

    All assignments are checked before any is applied, and the profile is
    only written if every one succeeds.

    Example::

        apizza config set name=Bob address.zipcode=90001
    """
    pairs = []
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key:
            error(f"Use 'key=value' format, got: {assignment}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        pairs.append((key, value))

    with open_session(save=True) as session:
        for key, value in pairs:
            session.set(key, value)
    for key, value in pairs:
        success(f"Set {key} = {value}")


@config_app.command("show")
def config_show() -> None:
    """Show every profile field as flat key/value pairs.

    Example::

        apizza config show
        apizza --json config show
    """
    with open_session() as session:
        values = session.settings()
        info(f"Profile: {session.config_file}")
        print_mapping(values, title="Profile")


@config_app.command("file")
def config_file() -> None:
    """Print the path of the profile file."""
    from apizza.config import get_config_file

    print_data(str(get_config_file()))


@config_app.command("dir")
def config_dir() -> None:
    """Print the apizza config directory."""
    from apizza.config import get_config_dir

    print_data(str(get_config_dir()))


@config_app.command("reset-cache")
def config_reset_cache() -> None:
    """Drop every cached resource so the next use refetches it.

    Saved orders are kept.
    """
    with open_session() as session:
        dropped = session.cache.invalidate_all()
    success(f"Cleared {dropped} cached resource(s).")
