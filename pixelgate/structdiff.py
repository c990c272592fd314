"""Field-by-field differences between two dataclass instances."""

from __future__ import annotations

import dataclasses
import enum
import json
from typing import Any


@dataclasses.dataclass(frozen=True)
class Entry:
    """One changed field: its name and the new value."""

    name: str
    value: Any


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, enum.Enum):
        return _format_value(value.value)
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(v) for v in value) + "]"
    return str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, (bytes, bytearray)):
        return value.decode("latin-1")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class Entries(list):
    """An ordered list of Entry values."""

    def __str__(self) -> str:
        parts = []
        for entry in self:
            if isinstance(entry.value, Entries):
                parts.append(f"{entry.name}: {{{entry.value}}}")
            else:
                parts.append(f"{entry.name}: {_format_value(entry.value)}")
        return "; ".join(parts)

    def to_json(self) -> str:
        """Serialise the entries as a JSON object, keeping their order."""
        items = []
        for entry in self:
            if isinstance(entry.value, Entries):
                encoded = entry.value.to_json()
            else:
                encoded = json.dumps(entry.value, default=_json_default, separators=(",", ":"))
            items.append(f"{json.dumps(entry.name)}:{encoded}")
        return "{" + ",".join(items) + "}"


def diff(a: Any, b: Any) -> Entries:
    """Return the fields whose values differ between a and b, with b's values.

    Nested dataclass fields are compared recursively. Instances of different
    types yield no entries; private fields (leading underscore) are ignored.
    """
    if not dataclasses.is_dataclass(a) or not dataclasses.is_dataclass(b):
        raise TypeError("diff() needs dataclass instances")

    result = Entries()
    if type(a) is not type(b):
        return result

    for field in dataclasses.fields(b):
        if field.name.startswith("_"):
            continue
        value_a = getattr(a, field.name)
        value_b = getattr(b, field.name)
        if value_a == value_b:
            continue
        if dataclasses.is_dataclass(value_b) and not isinstance(value_b, type):
            result.append(Entry(field.name, diff(value_a, value_b)))
        else:
            result.append(Entry(field.name, value_b))

    return result