"""Type registry and type expression resolution."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from structlog import get_logger

from suiodm.errors import RegistryError, SchemaError, UnknownTypeError
from suiodm.schema.parser import parse_declaration, parse_type
from suiodm.schema.types import NamedType, OptionType, TypeExpr, VecMapType, VectorType, substitute

from .codecs import (
    AddressCodec,
    BoolCodec,
    Codec,
    CustomCodec,
    EnumCodec,
    StringCodec,
    StructCodec,
    UIntCodec,
    VecMapCodec,
    VectorCodec,
)
from .types import EnumLayout, EnumVariant, Layout, PrimitiveLayout, StructField, StructLayout

logger = get_logger()

# Default address and object id width in bytes
ADDRESS_LENGTH = 20

UINT_SIZES = {
    "u8": 1,
    "u16": 2,
    "u32": 4,
    "u64": 8,
    "u128": 16,
    "u256": 32,
}

STRING_ENCODINGS = {
    "ascii": "ascii",
    "string": "utf-8",
    "String": "utf-8",
    "utf8": "utf-8",
}


def _pairs(items: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> list[tuple[str, Any]]:
    return list(items.items()) if isinstance(items, Mapping) else list(items)


class TypeRegistry:
    """Maps type names to primitive codecs, struct layouts and enum layouts.

    A registry starts with the built-in primitives and grows through the
    ``register_*`` calls. Names never change meaning once registered:
    registering the same layout again is a no-op, registering a different one
    raises RegistryError.

    Registration takes a lock so a registry can be shared between threads;
    resolution only reads registered entries.

    Example:
        registry = TypeRegistry()
        registry.register_struct("Outlaw", {"name": "ascii", "power_level": "u64"})
        codec = registry.resolve("vector<Outlaw>")
    """

    def __init__(self, *, address_length: int = ADDRESS_LENGTH) -> None:
        self.log = logger.new(address_length=address_length)
        self.address_length = address_length
        self._lock = threading.RLock()
        self._layouts: dict[str, Layout] = {}
        self._cache: dict[TypeExpr, Codec] = {}
        self._install_builtins()

    def _install_builtins(self) -> None:
        size = self.address_length
        primitives: list[tuple[Codec, int | None]] = [(BoolCodec(), 1)]
        primitives += [(UIntCodec(name, width), width) for name, width in UINT_SIZES.items()]
        primitives += [(AddressCodec("address", size), size), (AddressCodec("id", size), size)]
        primitives += [(StringCodec(name, enc), None) for name, enc in STRING_ENCODINGS.items()]

        for codec, width in primitives:
            self._layouts[codec.name] = PrimitiveLayout(codec.name, codec, width)
        self._builtins = frozenset(self._layouts)

    def __contains__(self, name: str) -> bool:
        return name in self._layouts

    def names(self) -> list[str]:
        """Return every registered type name."""
        return list(self._layouts)

    def layout(self, name: str) -> Layout:
        """Return the registered layout for ``name``."""
        try:
            return self._layouts[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    def _install(self, layout: Layout) -> None:
        with self._lock:
            existing = self._layouts.get(layout.name)
            if existing is not None:
                if layout.name in self._builtins:
                    raise RegistryError(f"Cannot redefine built-in type {layout.name}")
                if existing != layout:
                    raise RegistryError(f"Type {layout.name} is already registered with a different layout")
                self.log.debug("type already registered", type=layout.name)
                return

            self._layouts[layout.name] = layout
            self.log.debug("type registered", type=layout.name, kind=type(layout).__name__)

    def register_primitive(
        self,
        name: str,
        pack: Callable[[Any], bytes],
        unpack: Callable[[bytes | memoryview, int], tuple[Any, int]],
        is_instance: Callable[[Any], bool],
        *,
        size: int | None = None,
    ) -> None:
        """Register a leaf type with caller-supplied codec functions.

        Args:
            name: The type name.
            pack: Encodes a value to bytes.
            unpack: Decodes ``(data, offset)`` into ``(value, bytes_consumed)``.
            is_instance: Returns True when a value has the right runtime shape.
            size: Fixed encoded width in bytes, if any.
        """
        type_name, params = parse_declaration(name)
        if params:
            raise SchemaError(f"Primitive type {name} cannot take generic parameters")

        codec = CustomCodec(type_name, pack, unpack, is_instance)
        self._install(PrimitiveLayout(type_name, codec, size))

    def register_struct(
        self, name: str, fields: Mapping[str, str] | Iterable[tuple[str, str]]
    ) -> None:
        """Register a struct layout.

        ``name`` may declare generic parameters (``"Wrapper<T>"``) that field
        types refer to. Field types may name types registered later.
        """
        type_name, params = parse_declaration(name)

        members: list[StructField] = []
        for field_name, tag in _pairs(fields):
            if any(m.name == field_name for m in members):
                raise SchemaError(f"Duplicate field {field_name!r} in struct {type_name}")
            members.append(StructField(field_name, parse_type(tag)))

        self._install(StructLayout(type_name, params, tuple(members)))

    def register_enum(
        self, name: str, variants: Mapping[str, str | None] | Iterable[tuple[str, str | None]]
    ) -> None:
        """Register an enum layout; a ``None`` variant type marks a unit variant."""
        type_name, params = parse_declaration(name)

        members: list[EnumVariant] = []
        for variant_name, tag in _pairs(variants):
            if any(m.name == variant_name for m in members):
                raise SchemaError(f"Duplicate variant {variant_name!r} in enum {type_name}")
            members.append(EnumVariant(variant_name, parse_type(tag) if tag is not None else None))

        if not members:
            raise SchemaError(f"Enum {type_name} must declare at least one variant")

        self._install(EnumLayout(type_name, params, tuple(members)))

    def load(self, definitions: Mapping[str, Any]) -> None:
        """Register structs and enums from a plain mapping.

        The mapping has the shape of the JSON types file read by the CLI:
        ``{"structs": {"Name<T>": {"field": "type"}}, "enums": {"Name": {"variant": "type" | null}}}``.
        """
        unknown = set(definitions) - {"structs", "enums"}
        if unknown:
            raise SchemaError(f"Unknown type definition sections: {', '.join(sorted(unknown))}")

        for name, fields in definitions.get("structs", {}).items():
            self.register_struct(name, fields)
        for name, variants in definitions.get("enums", {}).items():
            self.register_enum(name, variants)

    def resolve(self, expr: str | TypeExpr) -> Codec:
        """Resolve a type expression to a codec.

        Every name written in the expression must be registered. Names only
        reachable through struct or enum members are resolved on first use.
        """
        if isinstance(expr, str):
            expr = parse_type(expr)

        cached = self._cache.get(expr)
        if cached is not None:
            return cached

        codec: Codec
        match expr:
            case VectorType(element=element):
                codec = VectorCodec(self.resolve(element))
            case OptionType(inner=inner):
                inner_codec = self.resolve(inner)
                codec = EnumCodec(str(expr), lambda: (("none", None), ("some", inner_codec)))
            case VecMapType(key=key, value=value):
                codec = VecMapCodec(self.resolve(key), self.resolve(value))
            case NamedType(name=name, args=args):
                codec = self._resolve_named(expr, name, args)
            case _:
                raise TypeError(f"Not a type expression: {expr!r}")

        return self._cache.setdefault(expr, codec)

    def _resolve_named(self, expr: NamedType, name: str, args: tuple[TypeExpr, ...]) -> Codec:
        layout = self.layout(name)

        for arg in args:
            self.resolve(arg)

        match layout:
            case PrimitiveLayout(codec=codec):
                if args:
                    raise SchemaError(f"{name} does not take type arguments")
                return codec
            case StructLayout(params=params, fields=fields):
                bindings = self._bind(name, params, args)
                members = [(f.name, substitute(f.type, bindings)) for f in fields]
                return StructCodec(str(expr), lambda: [(n, self.resolve(t)) for n, t in members])
            case EnumLayout(params=params, variants=variants):
                bindings = self._bind(name, params, args)
                options = [(v.name, substitute(v.type, bindings) if v.type else None) for v in variants]
                return EnumCodec(
                    str(expr),
                    lambda: [(n, self.resolve(t) if t is not None else None) for n, t in options],
                )
        raise TypeError(f"Unsupported layout: {layout!r}")

    @staticmethod
    def _bind(name: str, params: tuple[str, ...], args: tuple[TypeExpr, ...]) -> dict[str, TypeExpr]:
        if len(params) != len(args):
            raise SchemaError(f"{name} expects {len(params)} type arguments, got {len(args)}")
        return dict(zip(params, args))
