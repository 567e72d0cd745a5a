"""
CLI utility helpers -- client construction, input loading and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nifispine.client.status import StatusClient
from nifispine.client.transport import HttpxTransport
from nifispine.core.errors import ConfigError, InvalidFormatError, NifiSpineError
from nifispine.core.settings import NifiSettings
from nifispine.flow.component import Component
from nifispine.flow.kinds import parse_kinds, ComponentKind
from nifispine.flow.render import render
from nifispine.flow.tree import OwnershipTree

console = Console()
err_console = Console(stderr=True)

OUTPUT_FORMATS = ("table", "json", "yaml")
TREE_FORMATS = ("text", "json", "yaml")


# ── Error boundary ───────────────────────────────────────────────────────


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn package errors into a red message and exit code 1."""
    try:
        yield
    except NifiSpineError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {escape(e.message)}")
        context = e.context.to_dict()
        if context:
            err_console.print(f"[dim]{escape(str(context))}[/dim]")
        raise typer.Exit(code=1) from e


# ── Option parsing ───────────────────────────────────────────────────────


def kinds_option(value: str) -> ComponentKind:
    """Typer callback for ``--kinds``."""
    try:
        return parse_kinds(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def choice_option(value: str, choices: tuple[str, ...]) -> str:
    value = value.lower()
    if value not in choices:
        raise typer.BadParameter(f"expected one of: {', '.join(choices)}")
    return value


# ── Connection helper ────────────────────────────────────────────────────


def make_client(settings: NifiSettings, root_id: str | None = None) -> StatusClient:
    """Build a ``StatusClient`` from settings.

    Uses the configured token when present, otherwise logs in when a username
    is configured, otherwise talks to the server unauthenticated. The caller
    owns the client: use it as a context manager to close the connection.
    """
    if not settings.server_url:
        raise ConfigError("No server configured. Set NIFI_SERVER_URL or pass --file.")

    if settings.token is not None:
        transport = HttpxTransport(
            settings.server_url,
            token=settings.token.get_secret_value(),
            verify=settings.verify(),
            timeout=settings.timeout,
        )
    elif settings.username:
        password = settings.password.get_secret_value() if settings.password else ""
        transport = HttpxTransport.login(
            settings.server_url,
            settings.username,
            password,
            verify=settings.verify(),
            timeout=settings.timeout,
        )
    else:
        transport = HttpxTransport(
            settings.server_url, verify=settings.verify(), timeout=settings.timeout
        )

    return StatusClient(transport, root_id=root_id or settings.root_id)


def load_document(path: Path) -> Any:
    """Read a saved status response (or aggregate snapshot) from disk."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidFormatError(f"{path} is not valid JSON: {e}", cause=e) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", cause=e) from e


# ── Output helpers ───────────────────────────────────────────────────────


def output_components(components: list[Component], *, fmt: str = "table") -> None:
    """Render a flat component list."""
    payload = [component.to_dict() for component in components]

    if fmt == "json":
        console.print_json(json.dumps(payload))
        return
    if fmt == "yaml":
        typer.echo(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True), nl=False)
        return

    if not components:
        console.print("[dim]No components.[/dim]")
        return

    table = Table(show_lines=False, pad_edge=False)
    table.add_column("Type")
    table.add_column("Name", overflow="fold")
    table.add_column("Path", overflow="fold")
    table.add_column("Id", overflow="fold")
    for component in components:
        table.add_row(
            component.kind_label,
            escape(component.name),
            escape(component.path),
            escape(component.id),
        )
    console.print(table)


def output_tree(tree: OwnershipTree, *, fmt: str = "text") -> None:
    """Render an ownership tree."""
    if fmt == "json":
        console.print_json(json.dumps(tree.to_dict()))
        return
    if fmt == "yaml":
        typer.echo(yaml.safe_dump(tree.to_dict(), sort_keys=False, allow_unicode=True), nl=False)
        return

    if not tree:
        console.print("[dim]No components.[/dim]")
        return

    # Plain echo: rich markup would eat component names such as "[old]"
    for line in render(tree):
        typer.echo(line)


def output_records(
    records: list[dict[str, Any]],
    *,
    columns: tuple[str, ...],
    fmt: str = "table",
    empty: str = "Nothing to show.",
) -> None:
    """Render ``to_dict`` rows (versions, queued flow files)."""
    if fmt in ("json", "yaml"):
        output_value(records, fmt=fmt)
        return

    if not records:
        console.print(f"[dim]{empty}[/dim]")
        return

    table = Table(show_lines=False, pad_edge=False)
    for column in columns:
        table.add_column(column, overflow="fold")
    for record in records:
        table.add_row(*(escape(str(record.get(column, ""))) for column in columns))
    console.print(table)


def output_value(data: Any, *, fmt: str = "json") -> None:
    """Render a raw decoded response."""
    if fmt == "yaml":
        typer.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), nl=False)
    else:
        console.print_json(json.dumps(data, default=str))
