"""Command-line interface for decoding and encoding save packages."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ibsave import __version__
from ibsave.codec.package import PackageInfo
from ibsave.config import Config, load_config
from ibsave.convert import Converter, write_binary_output, write_json_output
from ibsave.errors import SaveCodecError
from ibsave.schema import ValidationError
from ibsave.schema.types import Title

logger = logging.getLogger(__name__)

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


class _State:
    """Objects shared by every command of one invocation."""

    def __init__(self, config: Config):
        self.config = config
        self._converter: Converter | None = None

    @property
    def converter(self) -> Converter:
        if self._converter is None:
            self._converter = Converter(self.config)
        return self._converter


def _fail(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    sys.exit(1)


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Turn conversion and file errors into a message and exit status 1."""
    try:
        yield
    except (SaveCodecError, ValidationError, OSError) as exc:
        logger.debug("Conversion failed", exc_info=True)
        _fail(str(exc))


@click.group()
@click.version_option(__version__, prog_name="ibsave")
@click.option("--config", "-c", "config_file", type=click.Path(dir_okay=False), help="Configuration file")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, verbose: bool) -> None:
    """Decode and re-encode save packages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )

    with _reported_errors():
        ctx.obj = _State(load_config(config_file))


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", "output_dir", default=None, help="Output directory")
@click.pass_obj
def decode(state: _State, input_file: str, output_dir: str | None) -> None:
    """Decode a save package into editable JSON."""
    with _reported_errors():
        info, text = state.converter.decode_to_json(input_file)
        path = write_json_output(text, output_dir or state.config.output_dir)
    console.print(f"Decoded {info.title} package {info.package_name} to {path}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--package",
    "-p",
    "package_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Original package the JSON was decoded from",
)
@click.option("--output", "-o", "output_dir", default=None, help="Output directory")
@click.pass_obj
def encode(state: _State, input_file: str, package_file: str, output_dir: str | None) -> None:
    """Encode edited JSON back into a save package."""
    with _reported_errors():
        info, data = state.converter.encode_from_json(input_file, package_file)
        path = write_binary_output(data, info.package_name, output_dir or state.config.output_dir)
    console.print(f"Encoded {info.title} package to {path}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--fields", "count_fields", is_flag=True, help="Decode the package and count its fields")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def info(state: _State, input_file: str, count_fields: bool, output_json: bool) -> None:
    """Display what a save package header says about it.

    Only the header is read, except that telling IB2 from VOTE decrypts one
    block with the IB2 key. --fields decodes the whole package.
    """
    field_count = None
    with _reported_errors():
        if count_fields:
            package, properties = state.converter.decode_file(input_file)
            field_count = len(properties)
        else:
            package = state.converter.package_info(input_file)

    if output_json:
        data = package.to_dict()
        if field_count is not None:
            data["field_count"] = field_count
        print(json.dumps(data, indent=2))
    else:
        _output_info(package, field_count)


def _output_info(package: PackageInfo, field_count: int | None) -> None:
    console.print(f"[bold cyan]{escape(package.package_name)}[/bold cyan]")

    table = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
    table.add_column("Label", style="dim")
    table.add_column("Value", style="white")

    table.add_row("Title", str(package.title))
    table.add_row("Encrypted", "yes" if package.is_encrypted else "no")
    table.add_row("Save version", f"0x{package.save_version:08X}")
    table.add_row("Save magic", f"0x{package.save_magic:08X}")
    if field_count is not None:
        table.add_row("Fields", str(field_count))

    console.print(table)


@cli.command()
@click.option("--title", "-t", type=click.Choice([t.value for t in Title]), default=None, help="Only this title")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def registry(state: _State, title: str | None, output_json: bool) -> None:
    """List the array shapes known for each title."""
    titles = [Title(title)] if title else list(Title)
    with _reported_errors():
        reg = state.converter.registry

    if output_json:
        data = {
            str(t): [shape.to_dict(encode_json=True) for shape in reg.shapes(t).values()] for t in titles
        }
        print(json.dumps(data, indent=2))
        return

    for t in titles:
        console.print(f"[bold cyan]{t}[/bold cyan]")
        table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
        table.add_column("Name", style="white")
        table.add_column("Layout", style="dim")
        table.add_column("Element", style="yellow")
        table.add_column("Struct", style="green")

        for shape in reg.shapes(t).values():
            element = str(shape.element_kind)
            if shape.indexed:
                element += " @indexed"
            table.add_row(shape.name, str(shape.array_kind), element, shape.alt_name)

        console.print(table)
        console.print()


def _prompt_path(label: str, suffix: str, default: str | None = None) -> Path:
    """Prompt until the user names an existing file with the given extension."""
    while True:
        value = click.prompt(label, type=click.Path(exists=True, dir_okay=False), default=default)
        path = Path(value)
        if path.suffix.lower() == suffix:
            return path
        err_console.print(f"[yellow]{escape(str(path))} is not a {suffix} file[/yellow]")


@cli.command()
@click.pass_obj
def run(state: _State) -> None:
    """Decode a package, wait for it to be edited, then encode it."""
    output_dir = state.config.output_dir

    package_path = _prompt_path("Save package (.bin)", ".bin")
    with _reported_errors():
        package, text = state.converter.decode_to_json(package_path)
        json_path = write_json_output(text, output_dir)
    console.print(f"Decoded {package.title} package to {json_path}")
    console.print("Edit the JSON file, then enter its path to encode it.")

    edited_path = _prompt_path("Edited JSON (.json)", ".json", default=str(json_path))
    with _reported_errors():
        info, data = state.converter.encode_from_json(edited_path, package_path)
        path = write_binary_output(data, info.package_name, output_dir)
    console.print(f"Encoded {info.title} package to {path}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
