"""Typer-based CLI for DocGraph documentation builds."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__, config
from .config_manager import (
    BuildSettings,
    clear_build_settings,
    load_build_settings,
    save_build_setting,
)
from .errors import DocGraphError
from .graph_export import export_dot
from .graph_store import GraphStore
from .linearizer import Linearizer
from .orchestrator import DocOrchestrator

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="📚 DocGraph CLI: type graph resolution and documentation aggregation.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration: build settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"DocGraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Log progress."),
    debug: bool = typer.Option(False, "--debug", help="Log resolution details and document dumps."),
):
    """DocGraph CLI: resolve a type graph and assemble per-type documentation."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except DocGraphError as exc:
        err_console.print(f"[red]✗ {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)


def _settings(**overrides) -> BuildSettings:
    settings = load_build_settings()
    for key, value in overrides.items():
        if value is not None:
            setattr(settings, key, value)
    return settings.validate()


def _graph_path(graph: Optional[Path], settings: BuildSettings) -> Path:
    path = graph or Path(settings.type_graph)
    if not path.is_file():
        raise typer.BadParameter(f"Type graph '{path}' not found.")
    return path


def _content_path(content_dir: Optional[Path], settings: BuildSettings) -> Path:
    path = content_dir or Path(settings.content_dir)
    if not path.is_dir():
        raise typer.BadParameter(f"Content directory '{path}' not found.")
    return path


# ===================================================================
# Graph commands
# ===================================================================

@app.command("check")
def check(
    graph: Optional[Path] = typer.Option(None, "--graph", "-g", help="Type graph descriptor."),
):
    """Load the type graph and linearize every type."""
    with _reported_errors():
        settings = _settings()
        store = GraphStore.from_file(_graph_path(graph, settings))
        failures = Linearizer(store).resolve_all()

    if not failures:
        console.print(f"[green]✓[/green] {len(store)} types, all linearizable.")
        return

    table = Table(title="Linearization conflicts")
    table.add_column("Type", style="bold")
    table.add_column("Competing ancestors")
    table.add_column("Inherited from")
    for name, exc in failures.items():
        table.add_row(escape(name), escape(", ".join(exc.candidates)), escape(exc.via or "-"))
    console.print(table)
    raise typer.Exit(code=1)


@app.command("mro")
def mro(
    type_name: str = typer.Argument(..., help="Type to resolve."),
    graph: Optional[Path] = typer.Option(None, "--graph", "-g", help="Type graph descriptor."),
):
    """Show a type's method resolution order and role closure."""
    with _reported_errors():
        settings = _settings()
        store = GraphStore.from_file(_graph_path(graph, settings))
        linearizer = Linearizer(store)
        order = linearizer.mro_names(type_name)
        roles = [r.name for r in linearizer.role_closure(type_name)]

    typer.echo(f"MRO: {' -> '.join(order)}")
    typer.echo(f"Roles: {', '.join(roles) if roles else 'none'}")


@app.command("export-graph")
def export_graph(
    type_name: str = typer.Argument("", help="Optional focus type to export its neighbourhood."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    graph: Optional[Path] = typer.Option(None, "--graph", "-g", help="Type graph descriptor."),
):
    """Export the type graph to Graphviz DOT."""
    with _reported_errors():
        settings = _settings()
        store = GraphStore.from_file(_graph_path(graph, settings))
        linearizer = Linearizer(store)
        if type_name:
            store.get(type_name)
        if output is None:
            output = Path.cwd() / f"type-graph-{type_name or 'all'}.dot"
        export_dot(store, linearizer, output, focus=type_name)

    typer.echo(f"Exported graph to {output}")


# ===================================================================
# Documentation commands
# ===================================================================

@app.command("build")
def build(
    content_dir: Optional[Path] = typer.Argument(None, help="Directory of parsed JSON documents."),
    graph: Optional[Path] = typer.Option(None, "--graph", "-g", help="Type graph descriptor."),
    out_dir: Optional[Path] = typer.Option(None, "--out", "-o", help="Output directory."),
    on_conflict: Optional[str] = typer.Option(
        None,
        "--on-conflict",
        help="abort: stop at the first conflicting type; skip: report it and continue.",
    ),
    title: str = typer.Option("Documentation", help="Title of the index page."),
):
    """Assemble every page and write the JSON artifacts for the renderer."""
    with _reported_errors():
        settings = _settings(on_conflict=on_conflict)
        orchestrator = DocOrchestrator.from_paths(
            _graph_path(graph, settings),
            _content_path(content_dir, settings),
            settings,
        )
        target = out_dir or Path(settings.out_dir)
        stats = orchestrator.write_site(target, title=title)

    console.print(
        f"[green]✓[/green] Wrote {stats['types']} type, {stats['languages']} language "
        f"and {stats['routines']} routine pages to {escape(str(target))}"
    )
    failures = orchestrator.emitter.failures
    if failures:
        table = Table(title="Skipped pages")
        table.add_column("Type", style="bold")
        table.add_column("Reason")
        for failure in failures:
            table.add_row(escape(failure.type_name), escape(str(failure)))
        console.print(table)


@app.command("routine")
def routine(
    name: str = typer.Argument(..., help="Routine name."),
    content_dir: Optional[Path] = typer.Argument(None, help="Directory of parsed JSON documents."),
    graph: Optional[Path] = typer.Option(None, "--graph", "-g", help="Type graph descriptor."),
):
    """List the types that document a routine."""
    with _reported_errors():
        settings = _settings()
        orchestrator = DocOrchestrator.from_paths(
            _graph_path(graph, settings),
            _content_path(content_dir, settings),
            settings,
        )
        owners = orchestrator.emitter.routine_index().get(name, [])

    if not owners:
        typer.echo(f"No type documents routine '{name}'.", err=True)
        raise typer.Exit(code=1)
    for type_name, chunk in owners:
        typer.echo(f"{type_name}.{name}  ({len(chunk.body)} blocks)")


# ===================================================================
# Configuration
# ===================================================================

@config_app.command("show")
def config_show():
    """Show the resolved build settings."""
    with _reported_errors():
        settings = load_build_settings()
    table = Table(title="Build settings")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in settings.to_dict().items():
        table.add_row(key, escape(str(value)))
    console.print(table)
    console.print(f"User config: {escape(str(config.CONFIG_FILE))}")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. on_conflict."),
    value: str = typer.Argument(..., help="New value."),
    local: bool = typer.Option(False, "--local", help=f"Write ./{config.LOCAL_CONFIG_NAME} instead of the user config."),
):
    """Persist a build setting."""
    target = Path.cwd() / config.LOCAL_CONFIG_NAME if local else None
    with _reported_errors():
        written = save_build_setting(key, value, target)
    typer.echo(f"Set {key} = {value} in {written}")


@config_app.command("reset")
def config_reset(
    local: bool = typer.Option(False, "--local", help=f"Reset ./{config.LOCAL_CONFIG_NAME} instead of the user config."),
):
    """Remove persisted build settings."""
    target = Path.cwd() / config.LOCAL_CONFIG_NAME if local else None
    written = clear_build_settings(target)
    typer.echo(f"Reset build settings in {written}")


if __name__ == "__main__":
    app()
