"""Typer CLI for provisioning and tearing down Live Stream resources."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog
import typer
from rich.console import Console
from rich.table import Table

from livestream_ops.config.loader import load_config
from livestream_ops.config.models import LivestreamConfig
from livestream_ops.config.templates import TemplateError, load_channel_template
from livestream_ops.observability.logging import configure_logging
from livestream_ops.provisioning.lifecycle import ChannelLifecycle
from livestream_ops.provisioning.runner import ProvisioningRunner
from livestream_ops.resources.base import StreamingState
from livestream_ops.resources.client import LivestreamClient, LivestreamError
from livestream_ops.resources.inventory import collect_inventory
from livestream_ops.resources.naming import channel_name, input_name
from livestream_ops.teardown.controller import TeardownController

logger = structlog.get_logger()
console = Console(stderr=True)
app = typer.Typer(name="livestream", help="Live Stream API provisioning CLI")

_ConfigOption = typer.Option(None, "--config", "-c", help="Livestream YAML")
_ProjectOption = typer.Option(None, "--project", help="GCP project id or number")
_LocationOption = typer.Option(None, "--location", help="Region, e.g. us-central1")
_NumberOption = typer.Option(
    None, "--running-number", "-n", help="Suffix for input/channel ids"
)


@app.callback()
def main(
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines"),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level"),
) -> None:
    configure_logging(json=json_logs, level=log_level)


def _load(
    config_path: str | None,
    project: str | None,
    location: str | None,
    running_number: str | None,
    **extra: Any,
) -> LivestreamConfig:
    overrides: dict[str, Any] = {
        "project_id": project,
        "location": location,
        "running_number": running_number,
        **extra,
    }
    path = Path(config_path) if config_path else None
    if path is not None and not path.exists():
        console.print(f"[red]Config file not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return load_config(path, overrides)
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        raise typer.Exit(1) from exc


@app.command()
def validate(
    config_path: str | None = _ConfigOption,
    project: str | None = _ProjectOption,
    location: str | None = _LocationOption,
    running_number: str | None = _NumberOption,
    template: str | None = typer.Option(None, "--template", help="Channel JSON"),
) -> None:
    """Validate config and render the channel template offline."""
    cfg = _load(
        config_path, project, location, running_number, template_path=template
    )
    assert cfg.input_id is not None
    console.print(f"[green]Valid[/green] parent={cfg.parent}")
    console.print(f"  input:   {cfg.input_id} ({cfg.input_type})")
    console.print(f"  channel: {cfg.channel_id}")
    console.print(f"  output:  {cfg.output_uri or '(not set)'}")
    if cfg.output_uri is None:
        return
    try:
        channel = load_channel_template(
            cfg.template_path,
            output_uri=cfg.output_uri,
            input_name=input_name(cfg.project_id, cfg.location, cfg.input_id),
        )
    except TemplateError as exc:
        console.print(f"[red]Template error:[/red] {exc}")
        raise typer.Exit(1) from exc
    console.print(
        f"  template: {len(channel.elementary_streams)} elementary stream(s), "
        f"{len(channel.mux_streams)} mux stream(s), "
        f"{len(channel.manifests)} manifest(s)"
    )


@app.command()
def provision(
    config_path: str | None = _ConfigOption,
    project: str | None = _ProjectOption,
    location: str | None = _LocationOption,
    running_number: str | None = _NumberOption,
    template: str | None = typer.Option(None, "--template", help="Channel JSON"),
    bucket: str | None = typer.Option(None, "--bucket", help="Output GCS bucket"),
    max_polls: int | None = typer.Option(
        None, "--max-polls", min=1, help="Stop polling after N state reads"
    ),
) -> None:
    """Ensure input + channel exist, start the channel, then poll its state."""
    cfg = _load(
        config_path,
        project,
        location,
        running_number,
        template_path=template,
        output_bucket=bucket,
    )

    async def _provision() -> None:
        async with LivestreamClient(cfg) as client:
            runner = ProvisioningRunner(client, cfg)
            try:
                result = await runner.run(max_polls=max_polls)
            finally:
                runner.stop()
        state = result.last_state.value if result.last_state else "unknown"
        console.print(
            f"[green]Channel {result.channel.channel_id}[/green] last state {state}"
        )

    try:
        asyncio.run(_provision())
    except KeyboardInterrupt:
        console.print("[yellow]Polling interrupted[/yellow]")
    except (LivestreamError, TemplateError, ValueError) as exc:
        console.print(f"[red]Provisioning failed:[/red] {exc}")
        raise typer.Exit(1) from exc


@app.command()
def teardown(
    config_path: str | None = _ConfigOption,
    project: str | None = _ProjectOption,
    location: str | None = _LocationOption,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    strict: bool = typer.Option(
        False, "--strict", help="Exit non-zero if any resource was not removed"
    ),
) -> None:
    """Stop and delete every channel, then delete every input."""
    cfg = _load(config_path, project, location, None)

    if not yes:
        confirm = typer.confirm(f"Delete ALL channels and inputs in {cfg.parent}?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    async def _teardown() -> Any:
        async with LivestreamClient(cfg) as client:
            return await TeardownController(client, cfg).run()

    try:
        report = asyncio.run(_teardown())
    except LivestreamError as exc:
        console.print(f"[red]Listing failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    console.print(
        f"[green]Deleted[/green] {len(report.deleted_channels)} channel(s), "
        f"{len(report.deleted_inputs)} input(s)"
    )
    for name, error in report.failures.items():
        console.print(f"  [red]failed[/red] {name}: {error}")
    if strict and not report.ok:
        raise typer.Exit(1)


@app.command()
def inventory(
    config_path: str | None = _ConfigOption,
    project: str | None = _ProjectOption,
    location: str | None = _LocationOption,
) -> None:
    """List inputs, channels and channel events."""
    cfg = _load(config_path, project, location, None)

    async def _collect() -> Any:
        async with LivestreamClient(cfg) as client:
            return await collect_inventory(client, cfg.parent)

    try:
        inv = asyncio.run(_collect())
    except LivestreamError as exc:
        console.print(f"[red]Listing failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    if inv.empty:
        console.print(f"[yellow]No inputs or channels in {cfg.parent}[/yellow]")
        return

    table = Table(title=f"Live Stream: {cfg.parent}")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    table.add_column("State / URI")
    table.add_column("Events")
    for item in inv.inputs:
        table.add_row("input", item.name, item.uri, "")
    states = inv.states()
    for ch in inv.channels:
        table.add_row(
            "channel",
            ch.name,
            states[ch.name].value,
            str(len(inv.events.get(ch.name, []))),
        )
    console.print(table)


@app.command()
def status(
    config_path: str | None = _ConfigOption,
    project: str | None = _ProjectOption,
    location: str | None = _LocationOption,
    running_number: str | None = _NumberOption,
) -> None:
    """Print the streaming state of the configured channel."""
    cfg = _load(config_path, project, location, running_number)
    assert cfg.channel_id is not None
    name = channel_name(cfg.project_id, cfg.location, cfg.channel_id)

    async def _state() -> StreamingState:
        async with LivestreamClient(cfg) as client:
            return await ChannelLifecycle(client).get_state(name)

    try:
        state = asyncio.run(_state())
    except LivestreamError as exc:
        console.print(f"[red]Status failed:[/red] {exc}")
        raise typer.Exit(1) from exc
    style = "green" if state == StreamingState.STREAMING else "yellow"
    console.print(f"{name}: [{style}]{state.value}[/{style}]")
