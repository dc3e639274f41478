"""
Human-readable and JSON output formatting.

Centralizes all CLI output so commands stay thin. JSON output is a single
line holding the ledger record; human output mirrors the log lines build
pipelines already grep for.
"""
from __future__ import annotations

import json

import typer
from typing import List

from rich.console import Console
from rich.table import Table

from ..action import LoadAction, format_duration
from ..models import ImageDescriptor
from ..reconcile import LookupResult

_console = Console()
_err_console = Console(stderr=True)


def print_load_action(action: LoadAction, output: str = "human") -> None:
    """
    Print the outcome of a load.

    Args:
        action: Finalized ledger
        output: "json" for the machine-readable record, "human" otherwise
    """
    if output == "json":
        typer.echo(action.to_json())
        return

    if action.already_loaded:
        typer.echo(f"Image ID {action.digest} was already loaded.")
    else:
        typer.echo(f"Loaded image ID {action.digest}")

    for tag in action.tags_already_present:
        typer.echo(f"Image was already tagged with {tag}")
    for tag in action.tags_added:
        typer.echo(f"Tagged image with {tag}")

    if action.load_time is not None:
        typer.echo(f"Load time: {format_duration(action.load_time)}")


def print_check_result(result: LookupResult, output: str = "human") -> None:
    """Print the outcome of a lookup-only check."""
    if output == "json":
        record = result.action.to_dict()
        record["found"] = result.found
        typer.echo(json.dumps(record))
        return

    if result.found:
        print_load_action(result.action, output)
    else:
        typer.echo(f"Image ID {result.action.digest} not found; a full load is required.")


def print_images(images: List[ImageDescriptor]) -> None:
    """Print store images and their tags as a table."""
    if not images:
        _console.print("[dim]No images in store[/]")
        return

    table = Table(title="Images")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Tags", style="yellow")

    for image in images:
        short_id = image.id.split(":", 1)[-1][:12]
        tags = ", ".join(image.repo_tags) if image.repo_tags else "<none>"
        table.add_row(short_id, tags)

    _console.print(table)


def print_partial_action(action: LoadAction) -> None:
    """Report what a failed tag reconciliation did before it stopped."""
    _err_console.print("[yellow]Tag reconciliation stopped early; partial result is not final.[/]")
    for tag in action.tags_already_present:
        _err_console.print(f"  already tagged: {tag}")
    for tag in action.tags_added:
        _err_console.print(f"  tagged: {tag}")
