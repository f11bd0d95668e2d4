"""TeardownController — best-effort removal of every channel and input."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from livestream_ops.config.models import LivestreamConfig
from livestream_ops.resources.base import LivestreamControl
from livestream_ops.resources.inventory import Inventory, collect_inventory

logger = structlog.get_logger()


@dataclass
class TeardownReport:
    """Outcome of a teardown run.

    ``failures`` maps each resource that was not removed to its last error.
    """

    stopped: list[str] = field(default_factory=list)
    deleted_channels: list[str] = field(default_factory=list)
    deleted_inputs: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class TeardownController:
    """Stops and deletes all channels, then deletes all inputs.

    Channels go first because the service rejects deleting an input that
    is still attached. A failure on one resource is logged and the loop
    moves on; nothing is rolled back.
    """

    def __init__(self, client: LivestreamControl, config: LivestreamConfig) -> None:
        self._client = client
        self._config = config

    async def run(self) -> TeardownReport:
        inventory = await collect_inventory(self._client, self._config.parent)
        report = TeardownReport()
        await self.teardown_channels(inventory, report)
        await self.teardown_inputs(inventory, report)
        logger.info(
            "teardown.finished",
            channels=len(report.deleted_channels),
            inputs=len(report.deleted_inputs),
            failures=len(report.failures),
        )
        return report

    async def teardown_channels(
        self, inventory: Inventory, report: TeardownReport
    ) -> None:
        timeout = self._config.operation_timeout_seconds
        for channel in inventory.channels:
            name = channel.name
            try:
                op = await self._client.stop_channel(name)
                await op.wait(timeout=timeout)
                report.stopped.append(name)
                logger.info("teardown.channel_stopped", channel=name)
            except Exception as exc:
                # Already-stopped channels land here too; delete anyway.
                report.failures[name] = str(exc)
                logger.warning(
                    "teardown.channel_stop_failed", channel=name, error=str(exc)
                )

            logger.info("teardown.channel_deleting", channel=name)
            try:
                op = await self._client.delete_channel(name)
                await op.wait(timeout=timeout)
                report.deleted_channels.append(name)
                report.failures.pop(name, None)
            except Exception as exc:
                report.failures[name] = str(exc)
                logger.warning(
                    "teardown.channel_delete_failed", channel=name, error=str(exc)
                )

    async def teardown_inputs(
        self, inventory: Inventory, report: TeardownReport
    ) -> None:
        timeout = self._config.operation_timeout_seconds
        for item in inventory.inputs:
            name = item.name
            logger.info("teardown.input_deleting", input=name)
            try:
                op = await self._client.delete_input(name)
                await op.wait(timeout=timeout)
                report.deleted_inputs.append(name)
            except Exception as exc:
                report.failures[name] = str(exc)
                logger.warning(
                    "teardown.input_delete_failed", input=name, error=str(exc)
                )
