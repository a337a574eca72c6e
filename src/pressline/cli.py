"""Pressline CLI Entry Point

Usage:
    pressline render page.md               # Render one document to stdout
    pressline render page.md -s site/      # Render against a site directory
    pressline plugins                      # Show registered plugins
    pressline --version                    # Show version
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from pressline._version import __version__
from pressline.build import initialize_documents, setup_renderer
from pressline.exceptions import PresslineError
from pressline.log import setup_logging
from pressline.plugins.base import PluginKind, plugin_name, plugin_priority
from pressline.site import Document, Site

app = typer.Typer(help="Render Jekyll-style documents with Jinja2 templates.")
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pressline {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Pressline - static site document renderer."""


def _fail(exc: Exception) -> None:
    message = exc.formatted_message() if isinstance(exc, PresslineError) else str(exc)
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _load_document(site: Site, path: Path) -> Document:
    """Read ``path`` and add it to ``site`` as a page or post."""
    resolved = path.resolve()
    try:
        rel = resolved.relative_to(site.source.resolve()).as_posix()
    except ValueError:
        rel = path.name

    document = Document.from_text(rel, resolved.read_text(encoding="utf-8"))
    document.url = document.permalink or "/" + Path(rel).with_suffix(".html").as_posix()
    if "_posts" in Path(rel).parts:
        site.add_post(document)
    else:
        site.add_page(document)
    return document


async def _render(site: Site, path: Path) -> str:
    renderer = await setup_renderer(site)
    document = _load_document(site, path)
    await initialize_documents(site, renderer)
    return await renderer.render_document(document)


@app.command()
def render(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to render."),
    source: Path = typer.Option(Path("."), "-s", "--source", help="Site source directory."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show INFO logs."),
) -> None:
    """Render a single document and print the HTML."""
    setup_logging(verbose)
    try:
        site = Site.read(source)
        html = asyncio.run(_render(site, path))
    except (PresslineError, OSError, UnicodeDecodeError) as exc:
        _fail(exc)
        return
    typer.echo(html, nl=False)


def _plugin_rows(site: Site) -> list[tuple[str, str, str]]:
    kinds: dict[int, tuple[Any, list[str]]] = {}
    for kind, plugins in (
        (PluginKind.EXTENSION, site.plugins.get_basic_plugins()),
        (PluginKind.GENERATOR, site.plugins.get_generators()),
        (PluginKind.CONVERTER, site.plugins.get_converters()),
    ):
        for plugin in plugins:
            kinds.setdefault(id(plugin), (plugin, []))[1].append(kind.value)

    rows = []
    for plugin, plugin_kinds in kinds.values():
        priority = ""
        if PluginKind.EXTENSION.value not in plugin_kinds or len(plugin_kinds) > 1:
            priority = str(plugin_priority(plugin))
        rows.append((plugin_name(plugin), ", ".join(plugin_kinds), priority))
    return rows


@app.command()
def plugins(
    source: Path = typer.Option(Path("."), "-s", "--source", help="Site source directory."),
) -> None:
    """List plugins registered for a site."""
    setup_logging()
    try:
        site = Site.read(source)
        asyncio.run(setup_renderer(site))
    except PresslineError as exc:
        _fail(exc)
        return

    rows = _plugin_rows(site)
    if not rows:
        console.print("[yellow]No plugins registered[/yellow]")
        return

    table = Table()
    table.add_column("Name", style="cyan")
    table.add_column("Kinds")
    table.add_column("Priority")
    for row in rows:
        table.add_row(*row)
    console.print(table)


if __name__ == "__main__":
    app()
