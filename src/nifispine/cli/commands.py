"""
CLI: ``nifi-spine list | tree | info | state | versions | set-version | queue``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from nifispine.cli.utils import (
    OUTPUT_FORMATS,
    TREE_FORMATS,
    choice_option,
    cli_errors,
    console,
    kinds_option,
    load_document,
    make_client,
    output_components,
    output_records,
    output_tree,
    output_value,
)
from nifispine.client.status import RunningState
from nifispine.core.logging import LogContext
from nifispine.core.settings import get_settings
from nifispine.flow.component import ComponentFilter
from nifispine.flow.filters import name_matches
from nifispine.flow.flatten import flatten_status
from nifispine.flow.tree import build_status_tree

DEFAULT_KINDS = "all-except-connections"


def _predicate(name: str | None) -> ComponentFilter | None:
    return name_matches(name) if name else None


def _offline_ids(ids: list[str] | None, file: Path | None) -> None:
    # A saved response already names its group
    if file is not None and ids:
        raise typer.BadParameter("process group ids cannot be combined with --file", param_hint="IDS")


def list_components(
    ids: list[str] | None = typer.Argument(None, help="Process group ids (default: root)"),
    kinds: str = typer.Option(DEFAULT_KINDS, "--kinds", "-k", help="Comma-separated component kinds"),
    recursive: bool = typer.Option(True, "--recursive/--flat", help="Descend into nested groups"),
    name: str | None = typer.Option(None, "--name", "-n", help="Glob on component names"),
    file: Path | None = typer.Option(
        None, "--file", "-f", help="Read a saved status response instead of asking the server"
    ),
    root_id: str | None = typer.Option(None, "--root-id", help="Id of the flow's root group"),
    fmt: str = typer.Option("table", "--format", help="Output format: table, json, yaml"),
) -> None:
    """List components as a flat, kind-sorted table."""
    _offline_ids(ids, file)
    mask = kinds_option(kinds)
    fmt = choice_option(fmt, OUTPUT_FORMATS)
    predicate = _predicate(name)

    with cli_errors(), LogContext(command="list"):
        if file is not None:
            components = flatten_status(
                load_document(file),
                root_id=root_id,
                kinds=mask,
                recursive=recursive,
                predicate=predicate,
            )
        else:
            with make_client(get_settings(), root_id) as client:
                components = client.all_with(ids or ["root"], mask, recursive, predicate)

    output_components(components, fmt=fmt)


def show_tree(
    ids: list[str] | None = typer.Argument(None, help="Process group ids (default: root)"),
    kinds: str = typer.Option(DEFAULT_KINDS, "--kinds", "-k", help="Comma-separated component kinds"),
    name: str | None = typer.Option(None, "--name", "-n", help="Glob on component names"),
    file: Path | None = typer.Option(
        None, "--file", "-f", help="Read a saved status response instead of asking the server"
    ),
    fmt: str = typer.Option("text", "--format", help="Output format: text, json, yaml"),
) -> None:
    """Show the ownership tree of one or more process groups."""
    _offline_ids(ids, file)
    mask = kinds_option(kinds)
    fmt = choice_option(fmt, TREE_FORMATS)
    predicate = _predicate(name)

    with cli_errors(), LogContext(command="tree"):
        if file is not None:
            tree = build_status_tree(load_document(file), kinds=mask, predicate=predicate)
        else:
            with make_client(get_settings()) as client:
                tree = client.tree(ids or ["root"], mask, predicate)

    output_tree(tree, fmt=fmt)


def show_info(
    group_id: str = typer.Argument(..., help="Process group id"),
    fmt: str = typer.Option("json", "--format", help="Output format: json, yaml"),
) -> None:
    """Show the raw process-group entity."""
    fmt = choice_option(fmt, ("json", "yaml"))
    with cli_errors(), make_client(get_settings()) as client:
        data = client.get_info(group_id)
    output_value(data, fmt=fmt)


def set_state(
    group_id: str = typer.Argument(..., help="Process group id"),
    state: str = typer.Argument(..., help="RUNNING or STOPPED"),
) -> None:
    """Start or stop every component of a process group."""
    try:
        target = RunningState(state.upper())
    except ValueError as e:
        raise typer.BadParameter("expected RUNNING or STOPPED", param_hint="STATE") from e
    if target is RunningState.UNKNOWN:
        raise typer.BadParameter("expected RUNNING or STOPPED", param_hint="STATE")

    with cli_errors(), make_client(get_settings()) as client:
        result = client.set_state(group_id, target)
    console.print(f"[green]✓[/green] {escape(group_id)}: {escape(result)}")


def list_versions(
    group_id: str = typer.Argument(..., help="Versioned process group id"),
    fmt: str = typer.Option("table", "--format", help="Output format: table, json, yaml"),
) -> None:
    """List the registry versions of a versioned process group."""
    fmt = choice_option(fmt, OUTPUT_FORMATS)
    with cli_errors(), LogContext(command="versions"), make_client(get_settings()) as client:
        info, _ = client.version_control_info(group_id)
        versions = client.versions(group_id)

    if fmt == "table":
        console.print(
            f"[bold]{escape(group_id)}[/bold] runs version {info.version} ({escape(info.state)})"
        )
    output_records(
        [version.to_dict() for version in versions],
        columns=("version", "timestamp", "comments"),
        fmt=fmt,
        empty="No versions.",
    )


def change_version(
    group_id: str = typer.Argument(..., help="Versioned process group id"),
    version: int = typer.Argument(..., min=1, help="Registry version to run"),
    poll_interval: float = typer.Option(
        0.5, "--poll-interval", min=0, help="Seconds between update-request polls"
    ),
) -> None:
    """Move a versioned process group to another registry version."""
    with cli_errors(), LogContext(command="set-version"), make_client(get_settings()) as client:
        result = client.set_version(group_id, version, poll_interval=poll_interval)

    if result is None:
        console.print(f"[dim]{escape(group_id)} already runs version {version}[/dim]")
    elif result.get("failureReason"):
        reason = escape(str(result["failureReason"]))
        console.print(f"[bold red]✗[/bold red] {escape(group_id)}: {reason}")
        raise typer.Exit(code=1)
    else:
        console.print(f"[green]✓[/green] {escape(group_id)}: version {version}")


def list_queue(
    connection_id: str = typer.Argument(..., help="Connection id"),
    fmt: str = typer.Option("table", "--format", help="Output format: table, json, yaml"),
    poll_interval: float = typer.Option(
        0.5, "--poll-interval", min=0, help="Seconds between listing-request polls"
    ),
) -> None:
    """List the flow files waiting in a connection's queue."""
    fmt = choice_option(fmt, OUTPUT_FORMATS)
    with cli_errors(), LogContext(command="queue"), make_client(get_settings()) as client:
        files = client.queue(connection_id, poll_interval=poll_interval)

    output_records(
        [flow_file.to_dict() for flow_file in files],
        columns=("uuid", "filename", "size", "queuedDuration", "node"),
        fmt=fmt,
        empty="Queue is empty.",
    )
