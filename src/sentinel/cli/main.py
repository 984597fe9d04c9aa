"""Sentinel CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from sentinel.cli.ask import ask_cmd
from sentinel.cli.check import check_cmd
from sentinel.cli.clear import clear_cmd
from sentinel.cli.crawl import crawl_cmd
from sentinel.cli.status import status_cmd
from sentinel.cli.sync import sync_cmd

_DIST_NAME = "sentinel-kb"


def _installed_version() -> str:
    try:
        return importlib.metadata.version(_DIST_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sentinel {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="sentinel",
    help=(
        "Sentinel — cybersecurity knowledge base.\n\n"
        "  sentinel crawl  Crawl configured websites into the knowledge base.\n"
        "  sentinel ask    Answer a question grounded in crawled content."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Sentinel — cybersecurity knowledge base."""


app.command("crawl")(crawl_cmd)
app.command("check")(check_cmd)
app.command("sync")(sync_cmd)
app.command("ask")(ask_cmd)
app.command("clear")(clear_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Sentinel version."""
    typer.echo(f"sentinel {_installed_version()}")


if __name__ == "__main__":
    app()
