"""Exception hierarchy for apizza.

All exceptions inherit from :class:`ApizzaError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apizza.exit_codes`.
The top-level error handler in :func:`apizza.app.main` catches
``ApizzaError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ApizzaError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- DocumentError            (exit 2)
    |   +-- KeyNotFoundError
    |   |   +-- IndexOutOfRangeError
    |   +-- InvalidKeyError
    |   +-- InvalidTargetError
    |   +-- TypeMismatchError
    +-- NotFoundError            (exit 4)
    +-- ServerError              (exit 5)
    |   +-- OrderingServiceError
    +-- ConnectionError_         (exit 6)
    +-- RefreshFailedError       (exit 6)
    |   +-- RefreshTimeoutError
    +-- StoreUnavailableError    (exit 8)
    +-- ConfigError              (exit 1)
"""

from __future__ import annotations

from typing import Optional

from apizza.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_STORE_UNAVAILABLE,
)


class ApizzaError(Exception):
    """Base exception for all apizza errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apizza.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ApizzaError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


# --- Configuration document errors ---


class DocumentError(ApizzaError):
    """Base class for dotted-path errors raised by :mod:`apizza.document`.

    These are always caused by a bad path or a bad value supplied by the
    caller. They are surfaced verbatim and never retried.

    Attributes:
        path: The dotted key path the caller supplied.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class KeyNotFoundError(DocumentError):
    """No field matches a path segment, or a scalar was reached too early."""


class IndexOutOfRangeError(KeyNotFoundError):
    """A sequence index is past the end of the sequence."""


class InvalidKeyError(DocumentError):
    """The path is empty or contains an empty segment."""


class InvalidTargetError(DocumentError):
    """The path names a record or sequence where a scalar is required."""


class TypeMismatchError(DocumentError):
    """A text value could not be coerced into the field's declared type."""


# --- Remote service errors ---


class NotFoundError(ApizzaError):
    """Raised when an order, menu item, or store does not exist."""

    exit_code = EXIT_NOT_FOUND


class ServerError(ApizzaError):
    """Raised when the ordering service returns an HTTP error status."""

    exit_code = EXIT_SERVER_ERROR


class OrderingServiceError(ServerError):
    """Raised when the ordering service answers ``200`` with a failure status.

    The service reports failures inside the JSON body (``"Status": -1``)
    together with a list of status items. Those items are kept so callers
    can show the service's own explanation.

    Attributes:
        status_items: The raw ``StatusItems`` entries from the payload.
    """

    def __init__(self, message: str, status_items: Optional[list[dict]] = None):
        super().__init__(message)
        self.status_items = status_items or []


class ConnectionError_(ApizzaError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


# --- Cache and store errors ---


class RefreshFailedError(ApizzaError):
    """A resource refresh failed; the cached record was left untouched.

    This is recoverable: callers may retry, fall back to a stale snapshot,
    or report the failure.

    Attributes:
        resource_name: The resource whose refresh failed.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, resource_name: str = ""):
        super().__init__(message)
        self.resource_name = resource_name


class RefreshTimeoutError(RefreshFailedError):
    """A refresh did not complete before the caller's deadline."""


class StoreUnavailableError(ApizzaError):
    """The local key-value store is broken (I/O error, corrupt record).

    Fatal to the calling operation; never retried silently.
    """

    exit_code = EXIT_STORE_UNAVAILABLE


class StoreKeyNotFoundError(ApizzaError, KeyError):
    """Raised by :meth:`KeyValueStore.get` when the key does not exist."""

    exit_code = EXIT_NOT_FOUND

    def __str__(self) -> str:
        return Exception.__str__(self)


class ConfigError(ApizzaError):
    """Raised for configuration problems (unreadable profile file, bad settings)."""

    exit_code = EXIT_GENERIC_FAILURE
