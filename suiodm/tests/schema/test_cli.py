"""Tests for CLI interface."""

import json

import pytest
from click.testing import CliRunner

from suiodm.schema.cli import cli


@pytest.fixture
def files(tmp_path):
    schema = tmp_path / "schema.json"
    schema.write_text(json.dumps({"name": "ascii", "power_level": "u64", "stats": "Stats"}))

    types = tmp_path / "types.json"
    types.write_text(json.dumps({"structs": {"Stats": {"hp": "u16", "title": "Option<ascii>"}}}))

    value = tmp_path / "value.json"
    value.write_text(
        json.dumps({"name": "Kyrie", "power_level": 199, "stats": {"hp": 7, "title": {"none": None}}})
    )

    return {"schema": str(schema), "types": str(types), "value": str(value)}


def describe_info_command():
    def prints_a_table(expect, files):
        result = CliRunner().invoke(cli, ["info", "-s", files["schema"], "-t", files["types"]])

        expect(result.exit_code) == 0
        expect("power_level" in result.output) == True
        expect("Min record size" in result.output) == True

    def prints_json(expect, files):
        result = CliRunner().invoke(cli, ["info", "-s", files["schema"], "-t", files["types"], "--json"])

        expect(result.exit_code) == 0
        data = json.loads(result.stdout)
        expect([f["name"] for f in data["fields"]]) == ["name", "power_level", "stats"]
        expect(data["fields"][2]["max_size"]) == None
        expect(data["min_size"]) == 1 + 8 + 3

    def fails_on_unknown_types(expect, files):
        result = CliRunner().invoke(cli, ["info", "-s", files["schema"]])

        expect(result.exit_code) == 1
        expect("Unknown type: Stats" in result.output) == True

    def fails_on_unregistered_struct_members(expect, tmp_path):
        schema = tmp_path / "schema.json"
        schema.write_text(json.dumps({"f": "Foo"}))
        types = tmp_path / "types.json"
        types.write_text(json.dumps({"structs": {"Foo": {"x": "Bar"}}}))

        result = CliRunner().invoke(cli, ["info", "-s", str(schema), "-t", str(types)])

        expect(result.exit_code) == 1
        expect("Error: Unknown type: Bar" in result.output) == True

    def fails_on_missing_files(expect, tmp_path):
        result = CliRunner().invoke(cli, ["info", "-s", str(tmp_path / "missing.json")])
        expect(result.exit_code) == 1


def describe_encode_command():
    def prints_one_hex_buffer_per_field(expect, files):
        result = CliRunner().invoke(
            cli, ["encode", "-s", files["schema"], "-t", files["types"], "-v", files["value"]]
        )

        expect(result.exit_code) == 0
        expect(result.stdout.split()) == ["054b79726965", "c700000000000000", "070000"]

    def encodes_selected_keys(expect, files):
        result = CliRunner().invoke(
            cli,
            ["encode", "-s", files["schema"], "-t", files["types"], "-v", files["value"], "-k", "power_level"],
        )

        expect(result.exit_code) == 0
        expect(result.stdout.split()) == ["c700000000000000"]

    def fails_on_invalid_values(expect, files, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"name": "Kyrie", "power_level": "high"}))

        result = CliRunner().invoke(cli, ["encode", "-s", files["schema"], "-t", files["types"], "-v", str(bad)])

        expect(result.exit_code) == 1
        expect("power_level" in result.output) == True


def describe_decode_command():
    def prints_the_record_as_json(expect, files):
        result = CliRunner().invoke(
            cli,
            ["decode", "-s", files["schema"], "-t", files["types"], "054b79726965", "0xc700000000000000", "070000"],
        )

        expect(result.exit_code) == 0
        expect(json.loads(result.stdout)) == {
            "name": "Kyrie",
            "power_level": 199,
            "stats": {"hp": 7, "title": {"none": None}},
        }

    def fails_on_buffer_count_mismatch(expect, files):
        result = CliRunner().invoke(cli, ["decode", "-s", files["schema"], "-t", files["types"], "054b79726965"])

        expect(result.exit_code) == 1
        expect("Expected 3 buffers" in result.output) == True

    def rejects_invalid_hex(expect, files):
        result = CliRunner().invoke(
            cli, ["decode", "-s", files["schema"], "-t", files["types"], "-k", "name", "zz"]
        )
        expect(result.exit_code) == 2

    def renders_vector_map_keys_as_text(expect, tmp_path):
        schema = tmp_path / "schema.json"
        schema.write_text(json.dumps({"m": "VecMap<vector<u8>,u8>"}))

        result = CliRunner().invoke(cli, ["decode", "-s", str(schema), "0102010207"])

        expect(result.exit_code) == 0
        expect(json.loads(result.stdout)) == {"m": {"[1,2]": 7}}
