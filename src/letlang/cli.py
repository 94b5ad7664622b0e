"""letlang command line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from letlang import __version__
from letlang.config import CONFIG_NAME, OUTPUT_FORMATS, LetConfig, find_config, load_config
from letlang.errors import DiagnosticRenderer
from letlang.parser import ParseResult, parse
from letlang.source import SourceFile

logger = logging.getLogger(__name__)


def _read_source(path: Path) -> SourceFile:
    """Load the input file; any failure here is fatal before parsing."""
    try:
        return SourceFile.from_path(path)
    except UnicodeDecodeError as e:
        raise click.FileError(
            str(path), hint=f"not valid UTF-8 ({e.reason} at byte {e.start})",
        ) from e
    except OSError as e:
        raise click.FileError(str(path), hint=e.strerror or str(e)) from e


def _resolve_config(source_path: Path, config_path: Path | None) -> LetConfig:
    if config_path is None:
        try:
            config_path = find_config(source_path.parent)
        except FileNotFoundError:
            logger.debug("no %s found, using defaults", CONFIG_NAME)
            return LetConfig()
    logger.debug("loading config from %s", config_path)
    try:
        return load_config(config_path)
    except ValueError as e:
        raise click.ClickException(f"invalid config {config_path}: {e}") from e


def _report_errors(
    result: ParseResult, source: SourceFile, *, color: bool, max_errors: int,
) -> None:
    renderer = DiagnosticRenderer(color=color, sources=[source])
    shown = result.errors[:max_errors] if max_errors else result.errors
    for error in shown:
        click.echo(renderer.render(error.to_diagnostic()), err=True)
    hidden = len(result.errors) - len(shown)
    if hidden:
        click.echo(f"... and {hidden} more error(s)", err=True)


@click.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default=None,
    help="How to print the syntax tree.",
)
@click.option("--color/--no-color", default=None, help="Colorize diagnostics.")
@click.option(
    "--max-errors", type=click.IntRange(min=0), default=None,
    help="Render at most this many errors (0 for all).",
)
@click.option(
    "--config", "config_path", default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help=f"Config file to use instead of searching for {CONFIG_NAME}.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(__version__, prog_name="letlang")
def main(
    path: Path,
    output_format: str | None,
    color: bool | None,
    max_errors: int | None,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Parse a letlang source file and print its syntax tree."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s",
        )

    source = _read_source(path)
    config = _resolve_config(path, config_path)
    if output_format is None:
        output_format = config.output.format
    if color is None:
        color = config.diagnostics.color
    if max_errors is None:
        max_errors = config.diagnostics.max_errors

    try:
        result = parse(source.content, source.name)
    except RecursionError as e:
        raise click.ClickException("input is nested too deeply to parse") from e
    if not result.ok:
        _report_errors(result, source, color=color, max_errors=max_errors)
        raise SystemExit(1)

    if output_format == "repr":
        click.echo(repr(result.output))
    else:
        _dump_ast(result.output, 0)


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
