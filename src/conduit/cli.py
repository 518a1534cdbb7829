# src/conduit/cli.py
"""Conduit Command Line Interface.

Inspects serialized task graphs: validation, tree rendering and
canonicalization. Graphs are never executed from the CLI because task
implementations are code supplied by the application.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from conduit import __version__
from conduit.cli_formatters import render_token_tree
from conduit.contracts.errors import InvalidTaskNamesError, ParseError
from conduit.core.canonical import parse
from conduit.core.config import ConduitSettings, load_settings
from conduit.core.conduit import Conduit
from conduit.core.logging import configure_logging, get_logger
from conduit.core.tokens import find_duplicate_labels, task_names_used

__all__ = ["app"]

logger = get_logger(__name__)

app = typer.Typer(
    name="conduit",
    help="Conduit: inspect serialized series-parallel task graphs.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"conduit version {__version__}")
        raise typer.Exit()


def _format_validation_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted validation error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    panel = Panel(
        content,
        title=f"[red bold]❌ {title}[/]",
        border_style="red",
        expand=False,
    )
    console.print(panel)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as JSON lines.",
    ),
) -> None:
    """Conduit: inspect serialized series-parallel task graphs."""
    config = ConduitSettings()
    if settings is not None:
        settings_path = settings.expanduser()
        try:
            config = load_settings(settings_path)
        except FileNotFoundError:
            _format_validation_error(
                title="File Not Found",
                message=f"Settings file does not exist: {settings_path}",
                hint="Check the path and ensure the file exists.",
            )
            raise typer.Exit(1) from None
        except ValidationError as e:
            details = [f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()]
            _format_validation_error(
                title="Configuration Validation Failed",
                message=f"Invalid settings in {settings_path.name}",
                details=details,
                hint="Check field names, types, and allowed values.",
            )
            raise typer.Exit(1) from None

    configure_logging(
        json_output=json_logs or config.logging.json_output,
        level=config.logging.level,
    )


def _load_graph(graph_file: Path) -> Conduit:
    """Parse a serialized graph, exiting with a formatted error on failure."""
    try:
        text = graph_file.read_text(encoding="utf-8")
    except OSError as e:
        _format_validation_error(title="Cannot Read Graph", message=f"{graph_file}: {e}")
        raise typer.Exit(1) from None

    try:
        graph = parse(text)
    except ParseError as e:
        _format_validation_error(
            title="Invalid Graph Document",
            message=f"Failed to parse {graph_file.name}",
            details=[str(e)],
            hint="Graph files are produced by Conduit.serialize().",
        )
        raise typer.Exit(1) from None
    except InvalidTaskNamesError as e:
        _format_validation_error(
            title="Invalid Task Names",
            message=f"Task names in {graph_file.name} cannot be registered",
            details=[e.reason],
        )
        raise typer.Exit(1) from None

    logger.debug("graph_loaded", path=str(graph_file), frames=len(graph))
    return graph


@app.command()
def validate(
    graph_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Serialized graph file.",
    ),
) -> None:
    """Validate a serialized graph without running it."""
    graph = _load_graph(graph_file)
    tokens = graph.tokens()

    typer.echo(f"Task names: {', '.join(graph.task_names) or '(none)'}")
    typer.echo(f"Frames: {len(tokens)}")

    used: set[str] = set()
    for token in tokens:
        used |= task_names_used(token)
    unused = [name for name in graph.task_names if name not in used]
    if unused:
        typer.echo(f"Unused task names: {', '.join(unused)}")

    if not graph.is_fully_reduced:
        _format_validation_error(
            title="Graph Not Fully Reduced",
            message=f"{graph_file.name} holds {len(tokens)} frames; a runnable graph holds exactly one",
            hint="Combine the remaining frames with sequence() or parallel() before serializing.",
        )
        raise typer.Exit(1)

    duplicates = find_duplicate_labels(tokens)
    if duplicates:
        _format_validation_error(
            title="Duplicate Labels",
            message="Labels must be unique across the whole graph",
            details=duplicates,
        )
        raise typer.Exit(1)

    typer.echo("✓ Graph is valid")


@app.command()
def show(
    graph_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Serialized graph file.",
    ),
) -> None:
    """Render every stack frame of a serialized graph as a tree."""
    graph = _load_graph(graph_file)
    for index, token in enumerate(graph.tokens()):
        typer.echo(f"frame {index}:")
        for line in render_token_tree(token):
            typer.echo(f"  {line}")


@app.command()
def canonicalize(
    graph_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Serialized graph file.",
    ),
) -> None:
    """Print the canonical serialization of a graph."""
    typer.echo(_load_graph(graph_file).serialize())


if __name__ == "__main__":
    app()
