"""Tests for schemas"""

import pytest

from suiodm.bcs.registry import TypeRegistry
from suiodm.errors import SchemaError, TypeParseError
from suiodm.schema.schema import Schema
from suiodm.schema.types import NamedType, OptionType


def describe_schema():
    def keeps_declaration_order(expect):
        schema = Schema({"b": "u8", "a": "Option<u16>"})

        expect(list(schema)) == ["b", "a"]
        expect(schema["a"]) == OptionType(NamedType("u16"))
        expect(schema.tag("a")) == "Option<u16>"

    def accepts_pairs(expect):
        expect(list(Schema([("x", "u8"), ("y", "bool")]))) == ["x", "y"]

    def rejects_duplicate_fields(expect):
        with pytest.raises(SchemaError):
            Schema([("x", "u8"), ("x", "u16")])

    def rejects_bad_type_tags(expect):
        with pytest.raises(TypeParseError):
            Schema({"x": "vector<"})

    def coerces_mappings(expect):
        schema = Schema({"x": "u8"})
        expect(Schema.coerce(schema) is schema) == True
        expect(list(Schema.coerce({"y": "u8"}))) == ["y"]

    def loads_json(expect, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text('{"name": "ascii", "power_level": "u64"}')

        expect(list(Schema.load(path))) == ["name", "power_level"]

    def rejects_non_object_json(expect):
        with pytest.raises(SchemaError):
            Schema.from_json('["name", "ascii"]')


def describe_select():
    def returns_all_fields_by_default(expect):
        expect(Schema({"a": "u8", "b": "u8"}).select()) == ["a", "b"]

    def keeps_the_caller_order(expect):
        expect(Schema({"a": "u8", "b": "u8"}).select(["b", "a"])) == ["b", "a"]

    def rejects_bad_keys(expect):
        schema = Schema({"a": "u8", "b": "u8"})
        with pytest.raises(SchemaError):
            schema.select(["c"])
        with pytest.raises(SchemaError):
            schema.select(["a", "a"])
        with pytest.raises(SchemaError):
            schema.select("a")


def describe_register():
    def registers_as_a_struct(expect):
        registry = TypeRegistry()
        Schema({"name": "ascii", "power_level": "u64"}).register(registry, "Outlaw")

        packed = registry.resolve("vector<Outlaw>").pack([{"name": "K", "power_level": 1}])
        expect(packed) == b"\x01\x01K\x01\x00\x00\x00\x00\x00\x00\x00"
