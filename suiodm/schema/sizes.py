"""Size estimation for type expressions and schemas."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum, auto

from suiodm.bcs.registry import STRING_ENCODINGS, TypeRegistry
from suiodm.bcs.types import EnumLayout, PrimitiveLayout, StructLayout
from suiodm.bcs.uleb128 import encode_uleb128

from .parser import parse_type
from .schema import Schema
from .types import (
    NamedType,
    OptionType,
    SchemaDescription,
    SchemaField,
    TypeExpr,
    VecMapType,
    VectorType,
    substitute,
)


class SizeKind(StrEnum):
    """Classification of size characteristics."""

    FIXED = auto()  # Min == Max, no variable components
    BOUNDED = auto()  # Variable but has a calculable max (e.g. Option<u64>)
    UNBOUNDED = auto()  # Contains a length-prefixed sequence


@dataclass(frozen=True)
class SizeInfo:
    """Encoded size range of a type, in bytes."""

    min_size: int
    max_size: int | None  # None means unbounded
    kind: SizeKind

    @property
    def is_fixed(self) -> bool:
        return self.kind == SizeKind.FIXED

    @property
    def is_bounded(self) -> bool:
        return self.kind in (SizeKind.FIXED, SizeKind.BOUNDED)


@dataclass(frozen=True)
class SchemaSizeInfo:
    """Size information for every field of a schema."""

    fields: dict[str, SizeInfo]
    min_size: int
    max_size: int | None


def _combine(parts: list[SizeInfo]) -> SizeInfo:
    """Size of parts encoded back to back."""
    total_min = sum(p.min_size for p in parts)
    maxes = [p.max_size for p in parts]
    total_max = sum(m for m in maxes if m is not None) if None not in maxes else None
    return SizeInfo(total_min, total_max, _kind(total_min, total_max))


def _kind(min_size: int, max_size: int | None) -> SizeKind:
    if max_size is None:
        return SizeKind.UNBOUNDED
    return SizeKind.FIXED if min_size == max_size else SizeKind.BOUNDED


UNBOUNDED_SEQUENCE = SizeInfo(1, None, SizeKind.UNBOUNDED)  # empty sequence is one ULEB128 byte


class SizeCalculator:
    """Calculate encoded sizes from registry layouts."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self._cache: dict[TypeExpr, SizeInfo] = {}
        self._in_progress: set[TypeExpr] = set()

    def calc_type_size(self, t: TypeExpr | str) -> SizeInfo:
        """Calculate the size range of any type expression."""
        if isinstance(t, str):
            t = parse_type(t)

        if t in self._cache:
            return self._cache[t]
        if t in self._in_progress:
            # Recursive layouts can nest without limit
            return SizeInfo(0, None, SizeKind.UNBOUNDED)

        self._in_progress.add(t)
        try:
            size = self._calc(t)
        finally:
            self._in_progress.discard(t)

        self._cache[t] = size
        return size

    def _calc(self, t: TypeExpr) -> SizeInfo:
        match t:
            case VectorType(element=element):
                self.calc_type_size(element)
                return UNBOUNDED_SEQUENCE
            case VecMapType(key=key, value=value):
                self.calc_type_size(key)
                self.calc_type_size(value)
                return UNBOUNDED_SEQUENCE
            case OptionType(inner=inner):
                return self._calc_variants([None, inner])
            case NamedType():
                return self._calc_named(t)
        raise ValueError(f"Unknown type expression: {t!r}")

    def _calc_named(self, t: NamedType) -> SizeInfo:
        layout = self.registry.layout(t.name)
        if isinstance(layout, PrimitiveLayout):
            if layout.size is None:
                return SizeInfo(1 if layout.name in STRING_ENCODINGS else 0, None, SizeKind.UNBOUNDED)
            return SizeInfo(layout.size, layout.size, SizeKind.FIXED)

        bindings = dict(zip(layout.params, t.args))
        if isinstance(layout, StructLayout):
            return _combine([self.calc_type_size(substitute(f.type, bindings)) for f in layout.fields])
        if isinstance(layout, EnumLayout):
            return self._calc_variants(
                [substitute(v.type, bindings) if v.type else None for v in layout.variants]
            )
        raise ValueError(f"Unknown layout for {t}")

    def _calc_variants(self, payloads: list[TypeExpr | None]) -> SizeInfo:
        """Size of a ULEB128 variant tag plus the largest/smallest payload."""
        tag_max = len(encode_uleb128(len(payloads) - 1))
        sizes = [self.calc_type_size(p) if p is not None else SizeInfo(0, 0, SizeKind.FIXED) for p in payloads]

        min_size = 1 + min(s.min_size for s in sizes)
        maxes = [s.max_size for s in sizes]
        max_size = tag_max + max(m for m in maxes if m is not None) if None not in maxes else None
        return SizeInfo(min_size, max_size, _kind(min_size, max_size))

    def calc_schema_size(self, schema: Schema | Mapping[str, str]) -> SchemaSizeInfo:
        """Calculate size information for every field of a schema."""
        schema = Schema.coerce(schema)
        fields = {name: self.calc_type_size(schema[name]) for name in schema}
        total = _combine(list(fields.values()))
        return SchemaSizeInfo(fields=fields, min_size=total.min_size, max_size=total.max_size)

    def describe(self, schema: Schema | Mapping[str, str]) -> SchemaDescription:
        """Describe a schema's fields, types and sizes."""
        schema = Schema.coerce(schema)
        info = self.calc_schema_size(schema)
        return SchemaDescription(
            fields=[
                SchemaField(
                    name=name,
                    type=str(schema[name]),
                    min_size=size.min_size,
                    max_size=size.max_size,
                    kind=size.kind.value,
                )
                for name, size in info.fields.items()
            ],
            min_size=info.min_size,
            max_size=info.max_size,
        )


def calculate_sizes(schema: Schema | Mapping[str, str], registry: TypeRegistry) -> SchemaSizeInfo:
    """Calculate size information for a schema."""
    calc = SizeCalculator(registry)
    return calc.calc_schema_size(schema)
