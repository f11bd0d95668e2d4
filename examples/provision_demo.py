#!/usr/bin/env python3
"""Runnable demo: provision a channel, watch it for a minute, tear it down.

Prerequisites:
    gcloud auth application-default login
    export LIVESTREAM_PROJECT_ID=... LIVESTREAM_BUCKET=...
    uv run python examples/provision_demo.py
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.console import Console

from livestream_ops.config.loader import load_config
from livestream_ops.observability.logging import configure_logging
from livestream_ops.provisioning.runner import ProvisioningRunner
from livestream_ops.resources.client import LivestreamClient
from livestream_ops.teardown.controller import TeardownController

console = Console()

CONFIG = Path(__file__).parent / "livestream.yaml"


async def demo() -> None:
    cfg = load_config(CONFIG)
    console.print(f"[bold]Provisioning in[/bold] {cfg.parent}")

    async with LivestreamClient(cfg) as client:
        # 1. Input → channel → start → 12 polls (~1 minute at 5s)
        result = await ProvisioningRunner(client, cfg).run(max_polls=12)
        console.print(f"[green]Ingest URI:[/green] {result.input.uri}")
        console.print(f"[green]Output:[/green] {result.channel.output_uri}")

        # 2. Remove everything in the location again
        report = await TeardownController(client, cfg).run()
        if not report.ok:
            console.print("[red]Some resources were not removed:[/red]")
            for name, error in report.failures.items():
                console.print(f"  {name}: {error}")


def main() -> None:
    configure_logging()
    asyncio.run(demo())


if __name__ == "__main__":
    main()
