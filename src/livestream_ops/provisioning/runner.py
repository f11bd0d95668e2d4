"""Provisioning flow — ensure input → ensure channel → start → poll."""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO

import structlog

from livestream_ops.config.models import LivestreamConfig
from livestream_ops.provisioning.ensurer import ResourceEnsurer
from livestream_ops.provisioning.lifecycle import (
    ChannelLifecycle,
    Sleeper,
    StatePoller,
)
from livestream_ops.provisioning.snapshots import ChannelSnapshot, InputSnapshot
from livestream_ops.resources.base import LivestreamControl, StreamingState
from livestream_ops.resources.inventory import collect_inventory

logger = structlog.get_logger()


@dataclass
class ProvisioningResult:
    input: InputSnapshot
    channel: ChannelSnapshot
    started: bool
    last_state: StreamingState | None
    polls: int


class ProvisioningRunner:
    """Runs the provisioning flow for the input/channel pair in *config*.

    Everything before polling is fail-fast: the first error aborts the run.
    Polling is best-effort and ends on :meth:`stop` or after *max_polls*.
    """

    def __init__(
        self,
        client: LivestreamControl,
        config: LivestreamConfig,
        *,
        stream: IO[str] | None = None,
        sleep: Sleeper | None = None,
        report_inventory: bool = True,
    ) -> None:
        self._client = client
        self._config = config
        self._ensurer = ResourceEnsurer(client, config, stream)
        self._lifecycle = ChannelLifecycle(client, config.operation_timeout_seconds)
        self._sleep = sleep
        self._report_inventory = report_inventory
        self._poller: StatePoller | None = None

    def stop(self) -> None:
        if self._poller is not None:
            self._poller.stop()

    async def run(self, max_polls: int | None = None) -> ProvisioningResult:
        cfg = self._config
        assert cfg.input_id is not None
        assert cfg.channel_id is not None

        if self._report_inventory:
            await collect_inventory(self._client, cfg.parent, include_events=False)

        input_snapshot = await self._ensurer.ensure_input(cfg.input_id)
        channel_snapshot = await self._ensurer.ensure_channel(
            cfg.channel_id, cfg.input_id, cfg.template_path
        )
        started = await self._lifecycle.ensure_started(channel_snapshot.channel_id)

        self._poller = StatePoller(
            self._lifecycle,
            channel_snapshot.channel_id,
            cfg.polling.interval_seconds,
            max_polls=max_polls if max_polls is not None else cfg.polling.max_polls,
            sleep=self._sleep,
        )
        last_state = await self._poller.run()

        return ProvisioningResult(
            input=input_snapshot,
            channel=channel_snapshot,
            started=started,
            last_state=last_state,
            polls=self._poller.polls,
        )
