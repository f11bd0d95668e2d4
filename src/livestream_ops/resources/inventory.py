"""Bulk enumeration of inputs, channels and channel events."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from google.cloud.video import live_stream_v1

from livestream_ops.resources.base import LivestreamControl, StreamingState

logger = structlog.get_logger()


async def list_inputs(
    client: LivestreamControl, parent: str
) -> list[live_stream_v1.Input]:
    """Drain the input pager. A page error aborts with no partial result."""
    return [item async for item in client.list_inputs(parent)]


async def list_channels(
    client: LivestreamControl, parent: str
) -> list[live_stream_v1.Channel]:
    """Drain the channel pager. A page error aborts with no partial result."""
    return [item async for item in client.list_channels(parent)]


async def list_events(
    client: LivestreamControl, channel_name: str
) -> list[live_stream_v1.Event]:
    """Drain the event pager of one channel."""
    return [item async for item in client.list_events(channel_name)]


@dataclass
class Inventory:
    """Everything that exists under one project/location."""

    parent: str
    inputs: list[live_stream_v1.Input] = field(default_factory=list)
    channels: list[live_stream_v1.Channel] = field(default_factory=list)
    events: dict[str, list[live_stream_v1.Event]] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not self.inputs and not self.channels

    def states(self) -> dict[str, StreamingState]:
        return {c.name: StreamingState.from_channel(c) for c in self.channels}


async def collect_inventory(
    client: LivestreamControl, parent: str, *, include_events: bool = True
) -> Inventory:
    """List inputs, channels and (optionally) each channel's events."""
    inventory = Inventory(parent=parent)
    inventory.inputs = await list_inputs(client, parent)
    for item in inventory.inputs:
        logger.info("inventory.input", input=item.name, uri=item.uri)

    inventory.channels = await list_channels(client, parent)
    for channel in inventory.channels:
        logger.info(
            "inventory.channel",
            channel=channel.name,
            state=StreamingState.from_channel(channel).value,
        )
        if not include_events:
            continue
        events = await list_events(client, channel.name)
        inventory.events[channel.name] = events
        for event in events:
            logger.info(
                "inventory.event", channel=channel.name, event_name=event.name
            )
    return inventory
