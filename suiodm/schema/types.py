"""Type expression AST and schema descriptors."""

from collections.abc import Mapping
from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin


@dataclass(frozen=True, slots=True)
class NamedType:
    """A primitive, struct or enum reference, optionally parameterized.

    ``NamedType("Wrapper", (NamedType("u64"),))`` is ``Wrapper<u64>``.
    """

    name: str
    args: tuple["TypeExpr", ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}<{','.join(str(a) for a in self.args)}>"


@dataclass(frozen=True, slots=True)
class VectorType:
    """``vector<T>``."""

    element: "TypeExpr"

    def __str__(self) -> str:
        return f"vector<{self.element}>"


@dataclass(frozen=True, slots=True)
class OptionType:
    """``Option<T>``."""

    inner: "TypeExpr"

    def __str__(self) -> str:
        return f"Option<{self.inner}>"


@dataclass(frozen=True, slots=True)
class VecMapType:
    """``VecMap<K,V>``."""

    key: "TypeExpr"
    value: "TypeExpr"

    def __str__(self) -> str:
        return f"VecMap<{self.key},{self.value}>"


TypeExpr = NamedType | VectorType | OptionType | VecMapType


def substitute(expr: TypeExpr, bindings: Mapping[str, TypeExpr]) -> TypeExpr:
    """Replace generic parameter names in ``expr`` with concrete types."""
    if not bindings:
        return expr

    match expr:
        case NamedType(name=name, args=()):
            return bindings.get(name, expr)
        case NamedType(name=name, args=args):
            return NamedType(name, tuple(substitute(a, bindings) for a in args))
        case VectorType(element=element):
            return VectorType(substitute(element, bindings))
        case OptionType(inner=inner):
            return OptionType(substitute(inner, bindings))
        case VecMapType(key=key, value=value):
            return VecMapType(substitute(key, bindings), substitute(value, bindings))
    raise TypeError(f"Not a type expression: {expr!r}")


def referenced_names(expr: TypeExpr) -> set[str]:
    """Return every named type mentioned in ``expr``."""
    match expr:
        case NamedType(name=name, args=args):
            names = {name}
            for arg in args:
                names |= referenced_names(arg)
            return names
        case VectorType(element=element):
            return referenced_names(element)
        case OptionType(inner=inner):
            return referenced_names(inner)
        case VecMapType(key=key, value=value):
            return referenced_names(key) | referenced_names(value)
    raise TypeError(f"Not a type expression: {expr!r}")


@dataclass
class SchemaField(DataClassJsonMixin):
    """Describes one schema field for display and JSON export."""

    name: str
    type: str
    min_size: int
    max_size: int | None
    kind: str


@dataclass
class SchemaDescription(DataClassJsonMixin):
    """Describes a whole schema for display and JSON export."""

    fields: list[SchemaField]
    min_size: int
    max_size: int | None


PRIMITIVE_TYPES = frozenset(
    [
        "bool",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "u256",
        "address",
        "id",
        "ascii",
        "string",
        "String",
        "utf8",
    ]
)


def primitive_types() -> list[str]:
    """Return a list of built-in primitive type names."""
    return sorted(PRIMITIVE_TYPES)


def is_primitive(t: TypeExpr) -> bool:
    """Check if a type expression names a built-in primitive."""
    return isinstance(t, NamedType) and not t.args and t.name in PRIMITIVE_TYPES
