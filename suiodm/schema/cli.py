"""Command-line interface for inspecting schemas and encoding records."""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from suiodm.bcs.registry import ADDRESS_LENGTH, TypeRegistry
from suiodm.bcs.serialization import FieldSerializer
from suiodm.errors import SuiOdmError
from suiodm.logging import setup_logging
from suiodm.schema.schema import Schema
from suiodm.schema.sizes import SizeCalculator
from suiodm.schema.types import SchemaDescription


def _load_json(path: str) -> object:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _build(schema_file: str, types_file: str | None, address_length: int) -> tuple[Schema, TypeRegistry]:
    registry = TypeRegistry(address_length=address_length)
    if types_file:
        definitions = _load_json(types_file)
        if not isinstance(definitions, dict):
            raise click.BadParameter("types file must contain a JSON object", param_hint="--types")
        registry.load(definitions)

    schema = Schema.load(schema_file)
    for name in schema:
        registry.resolve(schema[name])
    return schema, registry


def _keys(keys: tuple[str, ...]) -> list[str] | None:
    return list(keys) if keys else None


schema_option = click.option("--schema", "-s", "schema_file", required=True, help="Schema JSON file")
types_option = click.option("--types", "-t", "types_file", default=None, help="Struct/enum definitions JSON file")
keys_option = click.option("--key", "-k", "keys", multiple=True, help="Field to include (repeatable, in order)")
address_option = click.option(
    "--address-length", default=ADDRESS_LENGTH, show_default=True, help="Address width in bytes"
)


@click.group()
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """BCS schema inspection and field-level encoding tools."""
    setup_logging(debug=debug)


@cli.command()
@schema_option
@types_option
@address_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(schema_file: str, types_file: str | None, address_length: int, output_json: bool) -> None:
    """Display schema fields and encoded sizes."""
    schema, registry = _run(lambda: _build(schema_file, types_file, address_length))
    description = _run(lambda: SizeCalculator(registry).describe(schema))

    if output_json:
        click.echo(description.to_json(indent=2))
    else:
        _output_plain(description)


@cli.command()
@schema_option
@types_option
@keys_option
@address_option
@click.option("--value", "-v", "value_file", required=True, help="Record JSON file")
def encode(
    schema_file: str,
    types_file: str | None,
    keys: tuple[str, ...],
    address_length: int,
    value_file: str,
) -> None:
    """Encode a record, printing one hex buffer per field."""
    schema, registry = _run(lambda: _build(schema_file, types_file, address_length))
    value = _run(lambda: _load_json(value_file))
    buffers = _run(lambda: FieldSerializer(schema, registry).serialize(value, _keys(keys)))

    for buf in buffers:
        click.echo(buf.hex())


@cli.command()
@schema_option
@types_option
@keys_option
@address_option
@click.argument("buffers", nargs=-1)
def decode(
    schema_file: str,
    types_file: str | None,
    keys: tuple[str, ...],
    address_length: int,
    buffers: tuple[str, ...],
) -> None:
    """Decode hex buffers (one per field) into a JSON record."""
    schema, registry = _run(lambda: _build(schema_file, types_file, address_length))

    try:
        raw = [bytes.fromhex(b.removeprefix("0x")) for b in buffers]
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="BUFFERS") from e

    record = _run(lambda: FieldSerializer(schema, registry).deserialize(raw, _keys(keys)))
    click.echo(json.dumps(_jsonable(record), indent=2))


def _run(fn):
    """Call ``fn``, turning library errors into a one-line failure."""
    try:
        return fn()
    except (SuiOdmError, OSError, json.JSONDecodeError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _json_key(key):
    if key is None or isinstance(key, (str, int, float, bool)):
        return key
    return json.dumps(_jsonable(key), separators=(",", ":"))


def _jsonable(value):
    """Make decoded values JSON-safe; vector map keys become compact JSON text."""
    if isinstance(value, dict):
        return {_json_key(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _format_size(size: int | None) -> str:
    """Format a size value, handling None for unbounded."""
    return "unbounded" if size is None else str(size)


def _output_plain(description: SchemaDescription) -> None:
    """Output schema info using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Fields[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Name", style="white")
    table.add_column("Type", style="green")
    table.add_column("Size", style="yellow", justify="right")
    table.add_column("Kind", style="dim")

    for field in description.fields:
        if field.min_size == field.max_size:
            size_str = f"{field.min_size} bytes"
        else:
            size_str = f"{field.min_size}-{_format_size(field.max_size)} bytes"
        table.add_row(field.name, field.type, size_str, field.kind)

    console.print(table)
    console.print()

    total = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
    total.add_column("Label", style="dim")
    total.add_column("Value", style="white")
    total.add_row("Min record size", f"{description.min_size} bytes")
    total.add_row("Max record size", f"{_format_size(description.max_size)} bytes")
    console.print(total)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
