"""Command-line interface for inspecting API metadata dumps."""

from __future__ import annotations

import json
import sys

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from nvimclient.generator import stubs
from nvimclient.generator.types import ApiMetadata
from nvimclient.generator.wrappers import GeneratedMethod, Owner, generate_wrappers
from nvimclient.proto.errors import GenerationError


def _load(input_file: str) -> ApiMetadata:
    try:
        return ApiMetadata.load(input_file)
    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"Cannot read metadata from {input_file}: {e}")
        sys.exit(1)


def _generate(metadata: ApiMetadata) -> dict[tuple[Owner, str], GeneratedMethod]:
    try:
        return generate_wrappers(None, metadata, metadata.types)
    except GenerationError as e:
        print(f"Error: {e}")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Inspect host API metadata (e.g. the output of `nvim --api-info`)."""
    if verbose:
        logger.enable("nvimclient")


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Metadata file (msgpack or JSON, - for stdin)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """List extension types and the methods a client would generate."""
    metadata = _load(input_file)
    table = _generate(metadata)

    if output_json:
        _output_json(metadata, table)
    else:
        _output_plain(metadata, table)


@cli.command("stubs")
@click.option("--input", "-i", "input_file", required=True, help="Metadata file (msgpack or JSON, - for stdin)")
@click.option("--output", "-o", "output_file", required=True, help="Output .pyi file")
def stubs_command(input_file: str, output_file: str) -> None:
    """Write type stubs for the generated API."""
    metadata = _load(input_file)
    try:
        generated_file = stubs.render(metadata)
    except GenerationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated_file)


def _owner_label(owner: Owner) -> str:
    return "Nvim" if owner.is_global else str(owner.type_name)


def _output_json(
    metadata: ApiMetadata,
    table: dict[tuple[Owner, str], GeneratedMethod],
) -> None:
    """Output API info as JSON."""
    data: dict = {
        "types": {name: {"id": spec.id} for name, spec in metadata.types.items()},
        "methods": [],
    }

    for (owner, name), method in table.items():
        data["methods"].append(
            {
                "owner": _owner_label(owner),
                "name": name,
                "function": method.function_name,
                "parameters": list(method.metadata.parameters),
                "returnType": method.metadata.return_type,
                "deferred": method.metadata.deferred,
                "canFail": method.metadata.can_fail,
            }
        )

    print(json.dumps(data, indent=2))


def _output_plain(
    metadata: ApiMetadata,
    table: dict[tuple[Owner, str], GeneratedMethod],
) -> None:
    """Output API info using rich text formatting."""
    console = Console()

    if metadata.version:
        console.print("[bold cyan]Host[/bold cyan]")
        version_table = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
        version_table.add_column("Label", style="dim")
        version_table.add_column("Value", style="white")
        for key in ("major", "minor", "patch", "api_level"):
            if key in metadata.version:
                version_table.add_row(key, str(metadata.version[key]))
        console.print(version_table)
        console.print()

    # Extension types
    console.print("[bold cyan]Types[/bold cyan]")
    type_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    type_table.add_column("Name", style="white")
    type_table.add_column("Ext code", style="green", justify="right")
    type_table.add_column("Methods", style="yellow", justify="right")

    for name, spec in metadata.types.items():
        count = sum(1 for owner, _ in table if owner.type_name == name)
        type_table.add_row(name, str(spec.id), str(count))

    console.print(type_table)
    console.print()

    # Methods
    console.print("[bold cyan]Methods[/bold cyan]")
    method_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    method_table.add_column("Owner", style="dim")
    method_table.add_column("Method", style="white")
    method_table.add_column("Parameters", style="yellow")
    method_table.add_column("Returns", style="green")
    method_table.add_column("Function", style="dim")

    for (owner, name), method in sorted(table.items(), key=lambda item: (_owner_label(item[0][0]), item[0][1])):
        method_table.add_row(
            _owner_label(owner),
            name,
            ", ".join(method.parameters),
            method.metadata.return_type,
            method.function_name,
        )

    console.print(method_table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
