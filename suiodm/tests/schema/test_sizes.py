"""Tests for size calculation."""

import pytest

from suiodm.bcs.registry import TypeRegistry
from suiodm.errors import UnknownTypeError
from suiodm.schema.sizes import SizeCalculator, SizeKind, calculate_sizes


@pytest.fixture
def calc(registry):
    return SizeCalculator(registry)


def describe_primitive_sizes():
    def calculates_fixed_primitives(expect, registry):
        info = calculate_sizes({"a": "u8", "b": "u64", "c": "bool", "d": "u256"}, registry)

        expect(info.min_size) == 42  # 1 + 8 + 1 + 32
        expect(info.max_size) == 42
        expect(info.fields["d"].kind) == SizeKind.FIXED

    def uses_address_length(expect):
        calc = SizeCalculator(TypeRegistry(address_length=32))
        expect(calc.calc_type_size("address").max_size) == 32

    def treats_strings_as_unbounded(expect, calc):
        size = calc.calc_type_size("ascii")

        expect(size.min_size) == 1  # empty string is a single length byte
        expect(size.max_size) == None
        expect(size.kind) == SizeKind.UNBOUNDED


def describe_composite_sizes():
    def treats_sequences_as_unbounded(expect, calc):
        expect(calc.calc_type_size("vector<u8>").min_size) == 1
        expect(calc.calc_type_size("vector<u8>").is_bounded) == False
        expect(calc.calc_type_size("VecMap<u8,u8>").kind) == SizeKind.UNBOUNDED

    def bounds_options(expect, calc):
        size = calc.calc_type_size("Option<u64>")

        expect(size.min_size) == 1
        expect(size.max_size) == 9
        expect(size.kind) == SizeKind.BOUNDED

    def sums_struct_fields(expect, registry, calc):
        registry.register_struct("Point<T>", {"x": "T", "y": "T"})
        size = calc.calc_type_size("Point<u32>")

        expect(size.min_size) == 8
        expect(size.is_fixed) == True

    def takes_the_largest_enum_variant(expect, registry, calc):
        registry.register_enum("Shape", {"empty": None, "dot": "u8", "box": "u32"})
        size = calc.calc_type_size("Shape")

        expect(size.min_size) == 1
        expect(size.max_size) == 5

    def handles_recursive_layouts(expect, registry, calc):
        registry.register_struct("Node", {"value": "u8", "next": "Option<Node>"})
        size = calc.calc_type_size("Node")

        expect(size.min_size) == 2
        expect(size.max_size) == None

    def fails_on_unknown_types(expect, calc):
        with pytest.raises(UnknownTypeError):
            calc.calc_type_size("vector<Missing>")


def describe_describe():
    def lists_each_field(expect, calc):
        description = calc.describe({"name": "ascii", "power_level": "u64"})

        expect([f.name for f in description.fields]) == ["name", "power_level"]
        expect(description.fields[1].type) == "u64"
        expect(description.fields[1].kind) == "fixed"
        expect(description.min_size) == 9
        expect(description.max_size) == None

    def serializes_to_json(expect, calc):
        data = calc.describe({"flag": "bool"}).to_dict()

        expect(data) == {
            "fields": [{"name": "flag", "type": "bool", "min_size": 1, "max_size": 1, "kind": "fixed"}],
            "min_size": 1,
            "max_size": 1,
        }
