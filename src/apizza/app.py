"""Typer application and CLI entry point for apizza.

The root app carries the output flags shared by every command; the
``config``, ``menu`` and ``order`` groups are attached by
:func:`register_commands`. :func:`main` is the console script: an
:class:`~apizza.exceptions.ApizzaError` ends the process with that error's
exit code, anything else leaves a crash log under the data directory.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime

import typer

from apizza import __version__
from apizza.exceptions import ApizzaError
from apizza.exit_codes import EXIT_GENERIC_FAILURE
from apizza.output import OutputFormat, OutputManager, configure_logging, error, set_output

app = typer.Typer(
    name="apizza",
    help="Order pizza from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"apizza {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print profile values and orders as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Tab-separated output for scripts."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print data and errors."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log cache and service activity to stderr."
    ),
) -> None:
    """Order pizza from the command line."""
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)


def register_commands() -> None:
    """Attach the ``config``, ``menu`` and ``order`` commands. Idempotent."""
    if getattr(app, "_apizza_registered", False):
        return
    from apizza.commands.config import config_app
    from apizza.commands.menu import menu_command
    from apizza.commands.order import order_app

    app.add_typer(config_app, name="config", help="View and edit the user profile.")
    app.command("menu")(menu_command)
    app.add_typer(order_app, name="order", help="Manage saved orders.")
    app._apizza_registered = True  # type: ignore[attr-defined]


def _write_crash_log() -> str:
    from apizza.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """Entry point of the ``apizza`` console script."""
    register_commands()
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except ApizzaError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error. Debug log: {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
