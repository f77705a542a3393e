"""Type expression parser using Lark."""

import os
from functools import lru_cache
from typing import Any

from lark import Lark
from lark.exceptions import UnexpectedInput, UnexpectedToken, VisitError
from lark.visitors import Transformer

from suiodm.errors import TypeParseError

from .types import NamedType, OptionType, TypeExpr, VecMapType, VectorType

_g_parser: Lark | None = None

# Fully qualified Move names that map onto built-in spellings
STD_ALIASES = {
    "0x1::ascii::String": "ascii",
    "0x1::string::String": "string",
    "0x2::object::ID": "id",
    "0x1::option::Option": "Option",
    "0x2::vec_map::VecMap": "VecMap",
}

# Bare ``VecMap`` means a string-to-string map
_DEFAULT_VECMAP = VecMapType(NamedType("String"), NamedType("String"))


def _normalize_name(name: str) -> str:
    if name.startswith("0x") and "::" in name:
        address, rest = name.split("::", 1)
        address = "0x" + (address[2:].lower().lstrip("0") or "0")
        name = f"{address}::{rest}"
    return STD_ALIASES.get(name, name)


def _expect_arity(name: str, args: tuple[TypeExpr, ...], count: int) -> None:
    if len(args) != count:
        plural = "" if count == 1 else "s"
        raise TypeParseError(f"{name} expects {count} type argument{plural}, got {len(args)}")


class TypeTransformer(Transformer):
    """Transform parse tree into type expression nodes."""

    def type_args(self, args: list[Any]) -> tuple[TypeExpr, ...]:
        return tuple(args)

    def type(self, args: list[Any]) -> TypeExpr:
        name = _normalize_name(str(args[0]))
        type_args: tuple[TypeExpr, ...] = args[1] if len(args) > 1 else ()

        if name == "vector":
            _expect_arity(name, type_args, 1)
            return VectorType(type_args[0])
        if name == "Option":
            _expect_arity(name, type_args, 1)
            return OptionType(type_args[0])
        if name == "VecMap":
            if not type_args:
                return _DEFAULT_VECMAP
            _expect_arity(name, type_args, 2)
            return VecMapType(type_args[0], type_args[1])

        return NamedType(name, type_args)


def _get_parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/typeexpr.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, parser="lalr")

    return _g_parser


def _describe_failure(text: str, err: UnexpectedInput) -> str:
    pos = getattr(err, "pos_in_stream", None)
    if isinstance(err, UnexpectedToken) and err.token.type == "$END":
        pos = None
    if pos is None or pos < 0 or pos >= len(text):
        return f"Cannot parse type expression {text!r}: unexpected end of input"
    return f"Cannot parse type expression {text!r}: unexpected {text[pos:]!r} at column {pos + 1}"


@lru_cache(maxsize=1024)
def parse_type(text: str) -> TypeExpr:
    """Parse a type tag such as ``Option<vector<u8>>`` into an AST."""
    try:
        tree = _get_parser().parse(text)
    except UnexpectedInput as e:
        raise TypeParseError(_describe_failure(text, e)) from None

    try:
        return TypeTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, TypeParseError):
            raise TypeParseError(f"Cannot parse type expression {text!r}: {e.orig_exc}") from None
        raise


def parse_declaration(text: str) -> tuple[str, tuple[str, ...]]:
    """Parse a struct or enum name with optional generic parameters.

    ``"Wrapper<T, U>"`` gives ``("Wrapper", ("T", "U"))``.
    """
    expr = parse_type(text)
    if not isinstance(expr, NamedType):
        raise TypeParseError(f"{text!r} cannot be used as a type name")

    params: list[str] = []
    for arg in expr.args:
        if not isinstance(arg, NamedType) or arg.args:
            raise TypeParseError(f"Generic parameter {arg} in {text!r} must be a bare name")
        if arg.name in params:
            raise TypeParseError(f"Duplicate generic parameter {arg.name} in {text!r}")
        params.append(arg.name)

    return expr.name, tuple(params)
