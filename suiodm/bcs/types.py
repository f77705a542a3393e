"""Layout descriptors stored in the type registry.

These dataclasses describe registered types at runtime. The registry turns
them into codecs on demand; size estimation reads them directly.
"""

from dataclasses import dataclass

from suiodm.schema.types import TypeExpr

from .codecs import Codec


@dataclass(frozen=True, slots=True)
class PrimitiveLayout:
    """A leaf type backed by a single codec."""

    name: str
    codec: Codec
    size: int | None = None


@dataclass(frozen=True, slots=True)
class StructField:
    """One field of a struct layout."""

    name: str
    type: TypeExpr


@dataclass(frozen=True, slots=True)
class StructLayout:
    """A struct: fields encoded back to back in declaration order."""

    name: str
    params: tuple[str, ...]
    fields: tuple[StructField, ...]


@dataclass(frozen=True, slots=True)
class EnumVariant:
    """One variant of an enum layout; ``type`` is None for unit variants."""

    name: str
    type: TypeExpr | None


@dataclass(frozen=True, slots=True)
class EnumLayout:
    """A tagged union: ULEB128 variant index followed by the payload."""

    name: str
    params: tuple[str, ...]
    variants: tuple[EnumVariant, ...]


Layout = PrimitiveLayout | StructLayout | EnumLayout
