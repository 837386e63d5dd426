"""Configuration documents addressed by dotted key paths.

The package has two halves:

* :mod:`~apizza.document.nodes` -- the tagged-variant tree
  (:class:`Scalar`, :class:`Record`, :class:`Sequence`) and the
  :class:`SchemaBuilder` that declares a document's shape.
* :mod:`~apizza.document.accessor` -- :func:`get`, :func:`set` and
  :func:`enumerate_values` over that tree, with text coercion per field type.
"""

from apizza.document.accessor import enumerate_values, get, set  # noqa: A004
from apizza.document.nodes import (
    FieldType,
    Record,
    Scalar,
    Schema,
    SchemaBuilder,
    Sequence,
)

__all__ = [
    "FieldType",
    "Record",
    "Scalar",
    "Schema",
    "SchemaBuilder",
    "Sequence",
    "enumerate_values",
    "get",
    "set",
]
