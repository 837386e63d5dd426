"""Dotted key path access to configuration documents.

``get``, ``set`` and ``enumerate_values`` resolve paths such as
``"address.street"`` or ``"myorders.0.name"`` against a
:class:`~apizza.document.nodes.Record` tree:

* record segments match field names case-insensitively;
* sequence segments are non-negative integer indexes;
* the final node must be a :class:`~apizza.document.nodes.Scalar`.

Values cross this boundary as text. Each :class:`FieldType` has one parser
(text to typed value) and one formatter (typed value to text), kept in the
``_PARSERS`` and ``_FORMATTERS`` tables.

The accessor performs no I/O and no locking. A document belongs to a single
session; callers serialise their own concurrent access.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Optional

from apizza.document.nodes import FieldType, Node, Record, Scalar, Sequence
from apizza.exceptions import (
    IndexOutOfRangeError,
    InvalidKeyError,
    InvalidTargetError,
    KeyNotFoundError,
    TypeMismatchError,
)

_TRUE_WORDS = frozenset({"true", "t", "yes", "y", "on", "1"})
_FALSE_WORDS = frozenset({"false", "f", "no", "n", "off", "0"})


# --- Coercion tables ---


def _parse_text(value: str) -> str:
    return value


def _parse_integer(value: str) -> int:
    return int(value.strip())


def _parse_float(value: str) -> float:
    result = float(value.strip())
    if math.isnan(result) or math.isinf(result):
        raise ValueError("not a finite number")
    return result


def _parse_boolean(value: str) -> bool:
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError("expected true or false")


def _format_float(value: float) -> str:
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


_PARSERS: dict[FieldType, Callable[[str], Any]] = {
    FieldType.TEXT: _parse_text,
    FieldType.INTEGER: _parse_integer,
    FieldType.FLOAT: _parse_float,
    FieldType.BOOLEAN: _parse_boolean,
}

_FORMATTERS: dict[FieldType, Callable[[Any], str]] = {
    FieldType.TEXT: str,
    FieldType.INTEGER: lambda v: str(int(v)),
    FieldType.FLOAT: _format_float,
    FieldType.BOOLEAN: lambda v: "true" if v else "false",
}

_ZERO: dict[FieldType, Any] = {
    FieldType.TEXT: "",
    FieldType.INTEGER: 0,
    FieldType.FLOAT: 0.0,
    FieldType.BOOLEAN: False,
}


def parse_text(field_type: FieldType, value: str) -> Any:
    """Parse *value* into *field_type*.

    Raises:
        ValueError: If the text is not a valid literal for the type.
    """
    return _PARSERS[field_type](value)


def format_value(field_type: FieldType, value: Any) -> str:
    """Render a typed value as text."""
    return _FORMATTERS[field_type](value)


def coerce_stored(field_type: FieldType, raw: Any, name: str = "") -> Any:
    """Coerce a value read from a persisted document into *field_type*.

    Persisted JSON may hold either typed values or their text form. ``None``
    stays ``None`` (unset).

    Raises:
        ValueError: If the value does not fit the type.
    """
    if raw is None:
        return None
    if field_type is FieldType.TEXT:
        if isinstance(raw, (dict, list)):
            raise ValueError(f"'{name}' must be text")
        return str(raw)
    if field_type is FieldType.BOOLEAN and isinstance(raw, bool):
        return raw
    if field_type is FieldType.INTEGER and isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if field_type is FieldType.FLOAT and isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, str):
        try:
            return parse_text(field_type, raw)
        except ValueError as exc:
            raise ValueError(f"'{name}' must be {field_type.value}: {exc}") from exc
    raise ValueError(f"'{name}' must be {field_type.value}, got {type(raw).__name__}")


# --- Path resolution ---


def _split(path: str) -> list[str]:
    if not path or not path.strip():
        raise InvalidKeyError("Empty config key", path)
    segments = path.strip().split(".")
    if any(not seg for seg in segments):
        raise InvalidKeyError(f"Invalid config key: {path}", path)
    return segments


def _index(segment: str, path: str) -> int:
    if not segment.isdecimal():
        raise KeyNotFoundError(
            f"Cannot find {path}: '{segment}' is not a list index", path
        )
    return int(segment)


def _resolve(doc: Record, path: str, for_write: bool = False) -> Node:
    node: Node = doc
    for segment in _split(path):
        if isinstance(node, Record):
            child = node.child(segment)
            if child is None:
                raise KeyNotFoundError(f"Cannot find {path}", path)
            node = child
        elif isinstance(node, Sequence):
            index = _index(segment, path)
            if index >= len(node.items):
                if for_write:
                    raise InvalidTargetError(
                        f"Cannot set {path}: index {index} is past the end of the list "
                        f"({len(node.items)} items)",
                        path,
                    )
                raise IndexOutOfRangeError(
                    f"Cannot find {path}: index {index} out of range "
                    f"({len(node.items)} items)",
                    path,
                )
            node = node.items[index]
        else:
            raise KeyNotFoundError(f"Cannot find {path}", path)
    return node


def _display(node: Scalar) -> str:
    if node.is_set:
        return format_value(node.type, node.value)
    if node.default is not None:
        return format_value(node.type, node.default)
    return format_value(node.type, _ZERO[node.type])


def get(doc: Record, path: str) -> str:
    """Return the text value of the scalar at *path*.

    Unset fields return their declared default, or the zero value of the
    type (``""``, ``"0"``, ``"false"``) when no default is declared.

    Raises:
        InvalidKeyError: If *path* is empty or has an empty segment.
        KeyNotFoundError: If a segment names no field.
        IndexOutOfRangeError: If a list index is past the end.
        InvalidTargetError: If *path* names a record or list.
    """
    node = _resolve(doc, path)
    if not isinstance(node, Scalar):
        raise InvalidTargetError(f"{path} is not a single value", path)
    return _display(node)


def set(doc: Record, path: str, value: str) -> None:  # noqa: A001
    """Coerce *value* into the declared type of the field at *path* and store it.

    The document is only mutated after coercion succeeds.

    Raises:
        InvalidKeyError: If *path* is empty or has an empty segment.
        KeyNotFoundError: If a segment names no field.
        InvalidTargetError: If *path* names a record or list, or an element
            past the end of a list.
        TypeMismatchError: If *value* does not parse as the field's type.
    """
    node = _resolve(doc, path, for_write=True)
    if not isinstance(node, Scalar):
        raise InvalidTargetError(f"Cannot set {path}: not a single value", path)
    try:
        typed = parse_text(node.type, value)
    except ValueError as exc:
        raise TypeMismatchError(
            f"Cannot set {path}: expected {node.type.value}, got {value!r}", path
        ) from exc
    node.value = typed


def enumerate_values(doc: Record, path: Optional[str] = None) -> dict[str, str]:
    """Flatten *doc* (or the subtree at *path*) into ``{dotted_path: text}``.

    One entry per leaf scalar, including every list element. Entry order
    follows the schema but is not part of the contract.
    """
    start: Node = doc if path is None else _resolve(doc, path)
    prefix = "" if path is None else path.strip().lower()
    out: dict[str, str] = {}
    _walk(start, prefix, out)
    return out


def _walk(node: Node, prefix: str, out: dict[str, str]) -> None:
    if isinstance(node, Scalar):
        out[prefix] = _display(node)
    elif isinstance(node, Record):
        for name, child in node.fields.items():
            _walk(child, f"{prefix}.{name}" if prefix else name, out)
    else:
        for i, item in enumerate(node.items):
            _walk(item, f"{prefix}.{i}" if prefix else str(i), out)
