"""
Root Typer application for the nifi-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from nifispine.cli import commands
from nifispine.core.logging import configure_logging
from nifispine.core.settings import get_settings

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

app = Typer(
    name="nifi-spine",
    help="nifi-spine: list and draw the components of a NiFi flow, manage versions and queues.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from nifispine import __version__

        typer.echo(f"nifi-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Override NIFI_LOG_LEVEL (DEBUG, INFO, ...)"
    ),
) -> None:
    """Inspect the process groups, processors, ports and connections of a NiFi flow."""
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(f"expected one of: {', '.join(LOG_LEVELS)}", param_hint="--log-level")
    configure_logging(level=level, json_format=settings.json_logs)


# ── Commands ─────────────────────────────────────────────────────────────

app.command("list")(commands.list_components)
app.command("tree")(commands.show_tree)
app.command("info")(commands.show_info)
app.command("state")(commands.set_state)
app.command("versions")(commands.list_versions)
app.command("set-version")(commands.change_version)
app.command("queue")(commands.list_queue)


if __name__ == "__main__":
    app()
