"""Ordered field-name to type-tag schemas."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from suiodm.errors import SchemaError

from .parser import parse_type
from .types import TypeExpr

if TYPE_CHECKING:
    from suiodm.bcs.registry import TypeRegistry


class Schema(Mapping[str, TypeExpr]):
    """An ordered, immutable mapping from field name to parsed type.

    Field order defines the wire layout: nothing on the wire names a field,
    so the producer and consumer must agree on the same schema.

    Example:
        schema = Schema({"name": "ascii", "power_level": "u64"})
        schema["power_level"]  # NamedType(name="u64")
    """

    def __init__(self, fields: Mapping[str, str] | Iterable[tuple[str, str]]) -> None:
        items = fields.items() if isinstance(fields, Mapping) else fields
        self._fields: dict[str, TypeExpr] = {}
        self._tags: dict[str, str] = {}

        for name, tag in items:
            if name in self._fields:
                raise SchemaError(f"Duplicate schema field {name!r}")
            self._fields[name] = parse_type(tag)
            self._tags[name] = tag

    @classmethod
    def coerce(cls, schema: Schema | Mapping[str, str]) -> Schema:
        """Return ``schema`` as a Schema, parsing it if needed."""
        if isinstance(schema, Schema):
            return schema
        return cls(schema)

    @classmethod
    def from_json(cls, text: str) -> Schema:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise SchemaError("Schema JSON must be an object of field name to type")
        return cls(data)

    @classmethod
    def load(cls, path: str | Path) -> Schema:
        """Load a schema from a JSON file."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    def __getitem__(self, name: str) -> TypeExpr:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Schema({self._tags!r})"

    def tag(self, name: str) -> str:
        """Return the type tag as originally written for ``name``."""
        return self._tags[name]

    def select(self, keys: Sequence[str] | None = None) -> list[str]:
        """Resolve an optional key subset to an ordered list of field names.

        With no keys, every field in schema order. With keys, the keys in the
        caller's order after checking they exist and are not repeated.
        """
        if keys is None:
            return list(self._fields)

        if isinstance(keys, str):
            raise SchemaError("keys must be a sequence of field names, not a string")

        seen: set[str] = set()
        for key in keys:
            if key not in self._fields:
                raise SchemaError(f"Unknown schema field {key!r}")
            if key in seen:
                raise SchemaError(f"Field {key!r} selected more than once")
            seen.add(key)
        return list(keys)

    def register(self, registry: TypeRegistry, name: str) -> None:
        """Register this schema as a struct layout named ``name``."""
        registry.register_struct(name, list(self._tags.items()))
