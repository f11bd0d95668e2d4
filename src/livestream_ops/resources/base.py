"""LivestreamControl protocol — the remote surface the flows depend on."""

from __future__ import annotations

from collections.abc import AsyncIterator
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from google.cloud.video import live_stream_v1


class StreamingState(StrEnum):
    """Channel streaming states as reported by the service."""

    UNSPECIFIED = "UNSPECIFIED"
    STOPPED = "STOPPED"
    STARTING = "STARTING"
    STREAMING = "STREAMING"
    STOPPING = "STOPPING"
    AWAITING_INPUT = "AWAITING_INPUT"
    UPDATING = "UPDATING"
    DELETING = "DELETING"
    STREAMING_ERROR = "STREAMING_ERROR"
    STREAMING_NO_INPUT = "STREAMING_NO_INPUT"

    @classmethod
    def from_channel(cls, channel: live_stream_v1.Channel) -> StreamingState:
        """Map a channel's proto enum onto the local set; unknowns are UNSPECIFIED."""
        raw = channel.streaming_state
        name = getattr(raw, "name", str(raw))
        try:
            return cls(name)
        except ValueError:
            return cls.UNSPECIFIED


ACTIVE_STATES = frozenset({StreamingState.STREAMING, StreamingState.AWAITING_INPUT})


@runtime_checkable
class Operation(Protocol):
    """Handle to a submitted long-running operation."""

    label: str

    async def wait(self, timeout: float | None = None) -> Any:
        """Block until the operation completes and return its result."""
        ...


@runtime_checkable
class LivestreamControl(Protocol):
    """Resource CRUD, paginated listing and start/stop for inputs and channels.

    Lookups return None when the resource does not exist. Mutations are
    two-phase: the call submits the request and returns an Operation that
    the caller awaits.
    """

    async def get_input(self, name: str) -> live_stream_v1.Input | None: ...

    async def create_input(
        self, parent: str, input_id: str, input_type: str
    ) -> Operation: ...

    async def delete_input(self, name: str) -> Operation: ...

    def list_inputs(self, parent: str) -> AsyncIterator[live_stream_v1.Input]: ...

    async def get_channel(self, name: str) -> live_stream_v1.Channel | None: ...

    async def create_channel(
        self, parent: str, channel_id: str, channel: live_stream_v1.Channel
    ) -> Operation: ...

    async def start_channel(self, name: str) -> Operation: ...

    async def stop_channel(self, name: str) -> Operation: ...

    async def delete_channel(self, name: str) -> Operation: ...

    def list_channels(self, parent: str) -> AsyncIterator[live_stream_v1.Channel]: ...

    def list_events(self, channel_name: str) -> AsyncIterator[live_stream_v1.Event]: ...
