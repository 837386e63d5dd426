"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apizza.exceptions.ApizzaError` subclass.
Shell wrappers can inspect the exit code to tell a bad ``config set`` apart
from a network outage without parsing stderr.

Example::

    $ apizza config get address.country
    $ echo $?
    2   # EXIT_INVALID_USAGE -- no such config key
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with an invalid key path, value, or argument."""

EXIT_NOT_FOUND = 4
"""The requested order, menu item, or store was not found."""

EXIT_SERVER_ERROR = 5
"""The ordering service returned an error response."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_STORE_UNAVAILABLE = 8
"""The local persistent store could not be read or written."""
