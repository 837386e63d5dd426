"""Tagged-variant tree for configuration documents.

A document is a tree of three node kinds:

* :class:`Scalar` -- a typed leaf (text, integer, float, or boolean) with an
  optional declared default.
* :class:`Record` -- a fixed, ordered set of named child nodes.
* :class:`Sequence` -- an ordered list of records that all share one item
  schema.

The shape of a document is declared once with :class:`SchemaBuilder` and
turned into fresh documents with :meth:`Schema.new_document`. Field names
are the lowercase, dot-free names used in dotted key paths.

Documents convert to and from plain JSON-compatible dicts with
:meth:`Record.to_data` and :meth:`Schema.load`; the accessor functions in
:mod:`apizza.document.accessor` never touch disk.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")


class FieldType(str, enum.Enum):
    """Declared type of a :class:`Scalar` field."""

    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"


@dataclass
class Scalar:
    """A typed leaf value. ``value is None`` means the field is unset."""

    type: FieldType
    value: Any = None
    default: Any = None

    @property
    def is_set(self) -> bool:
        return self.value is not None


@dataclass
class Record:
    """A named sub-document with a fixed set of fields."""

    fields: dict[str, Node] = field(default_factory=dict)

    def child(self, name: str) -> Optional[Node]:
        """Return the field named *name* (case-insensitive), or ``None``."""
        return self.fields.get(name.lower())

    def to_data(self) -> dict[str, Any]:
        """Convert the record to a JSON-compatible dict.

        Unset scalars are written as ``None`` so the persisted file always
        shows every field.
        """
        data: dict[str, Any] = {}
        for name, node in self.fields.items():
            if isinstance(node, Scalar):
                data[name] = node.value
            elif isinstance(node, Record):
                data[name] = node.to_data()
            else:
                data[name] = [item.to_data() for item in node.items]
        return data


@dataclass
class Sequence:
    """An ordered list of records built from a shared item schema."""

    item_schema: Schema
    items: list[Record] = field(default_factory=list)

    def append(self) -> Record:
        """Append a fresh item record and return it.

        Sequences grow only through this method, never through the dotted
        path accessor.
        """
        item = self.item_schema.new_document()
        self.items.append(item)
        return item


Node = Union[Scalar, Record, Sequence]


# --- Schema declaration ---


@dataclass(frozen=True)
class _FieldSpec:
    name: str
    kind: str
    type: Optional[FieldType] = None
    default: Any = None
    schema: Optional[Schema] = None


class Schema:
    """An immutable document shape produced by :class:`SchemaBuilder`."""

    def __init__(self, specs: list[_FieldSpec]) -> None:
        self._specs = tuple(specs)

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self._specs]

    def new_document(self) -> Record:
        """Build an empty document: every scalar unset, every sequence empty."""
        record = Record()
        for spec in self._specs:
            if spec.kind == "scalar":
                assert spec.type is not None
                record.fields[spec.name] = Scalar(spec.type, default=spec.default)
            elif spec.kind == "record":
                assert spec.schema is not None
                record.fields[spec.name] = spec.schema.new_document()
            else:
                assert spec.schema is not None
                record.fields[spec.name] = Sequence(spec.schema)
        return record

    def load(self, data: dict[str, Any]) -> Record:
        """Build a document from a plain dict (e.g. parsed JSON).

        Keys are matched case-insensitively; unknown keys are ignored.
        ``None`` leaves a scalar unset.

        Raises:
            ValueError: If a value does not fit the declared field type.
        """
        from apizza.document.accessor import coerce_stored

        record = self.new_document()
        lowered = {str(k).lower(): v for k, v in data.items()}
        for spec in self._specs:
            if spec.name not in lowered:
                continue
            raw = lowered[spec.name]
            node = record.fields[spec.name]
            if isinstance(node, Scalar):
                node.value = coerce_stored(node.type, raw, spec.name)
            elif isinstance(node, Record):
                if raw is None:
                    continue
                if not isinstance(raw, dict):
                    raise ValueError(f"'{spec.name}' must be an object")
                assert spec.schema is not None
                record.fields[spec.name] = spec.schema.load(raw)
            else:
                if raw is None:
                    continue
                if not isinstance(raw, list):
                    raise ValueError(f"'{spec.name}' must be a list")
                assert spec.schema is not None
                for item in raw:
                    if not isinstance(item, dict):
                        raise ValueError(f"items of '{spec.name}' must be objects")
                    node.items.append(spec.schema.load(item))
        return record


class SchemaBuilder:
    """Fluent builder for :class:`Schema` objects.

    Example::

        address = SchemaBuilder().text("street").text("zipcode").build()
        profile = (
            SchemaBuilder()
            .text("name")
            .record("address", address)
            .text("service", default="Delivery")
            .sequence("myorders", SchemaBuilder().text("name").build())
            .build()
        )
    """

    def __init__(self) -> None:
        self._specs: list[_FieldSpec] = []

    def text(self, name: str, default: Optional[str] = None) -> SchemaBuilder:
        return self._scalar(name, FieldType.TEXT, default)

    def integer(self, name: str, default: Optional[int] = None) -> SchemaBuilder:
        return self._scalar(name, FieldType.INTEGER, default)

    def number(self, name: str, default: Optional[float] = None) -> SchemaBuilder:
        return self._scalar(name, FieldType.FLOAT, default)

    def boolean(self, name: str, default: Optional[bool] = None) -> SchemaBuilder:
        return self._scalar(name, FieldType.BOOLEAN, default)

    def record(self, name: str, schema: Schema) -> SchemaBuilder:
        return self._add(_FieldSpec(name=name, kind="record", schema=schema))

    def sequence(self, name: str, item_schema: Schema) -> SchemaBuilder:
        return self._add(_FieldSpec(name=name, kind="sequence", schema=item_schema))

    def build(self) -> Schema:
        return Schema(self._specs)

    def _scalar(self, name: str, type_: FieldType, default: Any) -> SchemaBuilder:
        return self._add(_FieldSpec(name=name, kind="scalar", type=type_, default=default))

    def _add(self, spec: _FieldSpec) -> SchemaBuilder:
        if not _NAME_RE.match(spec.name):
            raise ValueError(
                f"Invalid field name {spec.name!r}: use lowercase letters, digits and '_'"
            )
        if any(existing.name == spec.name for existing in self._specs):
            raise ValueError(f"Duplicate field name {spec.name!r}")
        self._specs.append(spec)
        return self
