"""Channel lifecycle — start-once policy and streaming-state polling."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import suppress

import structlog
from google.api_core import exceptions as gexc

from livestream_ops.resources.base import (
    ACTIVE_STATES,
    LivestreamControl,
    StreamingState,
)
from livestream_ops.resources.client import LivestreamError

logger = structlog.get_logger()

Sleeper = Callable[[float], Awaitable[None]]


class ChannelLifecycle:
    """Reads channel state and starts channels that are not already active."""

    def __init__(
        self, client: LivestreamControl, operation_timeout: float | None = None
    ) -> None:
        self._client = client
        self._operation_timeout = operation_timeout

    async def get_state(self, name: str) -> StreamingState:
        """Single round trip; errors propagate to the caller."""
        channel = await self._client.get_channel(name)
        if channel is None:
            raise LivestreamError("GetChannel", gexc.NotFound(f"channel {name}"))
        return StreamingState.from_channel(channel)

    async def ensure_started(self, name: str) -> bool:
        """Start *name* unless it is STREAMING or AWAITING_INPUT.

        Returns True when a start request was issued and completed.
        """
        state = await self.get_state(name)
        if state in ACTIVE_STATES:
            logger.info("channel.start_skipped", channel=name, state=state.value)
            return False

        op = await self._client.start_channel(name)
        await op.wait(timeout=self._operation_timeout)
        logger.info("channel.started", channel=name, previous_state=state.value)
        return True


class StatePoller:
    """Logs a channel's streaming state every *interval* seconds.

    Runs until :meth:`stop` is called or *max_polls* fetches have been made.
    A failed fetch is logged and polling continues. *sleep* defaults to a
    wait on the stop event, so stopping never waits out a full interval.
    """

    def __init__(
        self,
        lifecycle: ChannelLifecycle,
        name: str,
        interval: float = 5.0,
        *,
        max_polls: int | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self._lifecycle = lifecycle
        self._name = name
        self._interval = interval
        self._max_polls = max_polls
        self._sleep = sleep or self._wait_for_stop
        self._stop = asyncio.Event()
        self._polls = 0
        self._last_state: StreamingState | None = None

    @property
    def polls(self) -> int:
        return self._polls

    @property
    def last_state(self) -> StreamingState | None:
        return self._last_state

    def stop(self) -> None:
        self._stop.set()

    async def _wait_for_stop(self, seconds: float) -> None:
        with suppress(TimeoutError):
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)

    async def run(self) -> StreamingState | None:
        logger.info("channel.polling", channel=self._name, interval=self._interval)
        while not self._stop.is_set():
            try:
                state = await self._lifecycle.get_state(self._name)
                self._last_state = state
                logger.info("channel.state", channel=self._name, state=state.value)
            except Exception:
                logger.exception("channel.state_failed", channel=self._name)
            self._polls += 1
            if self._max_polls is not None and self._polls >= self._max_polls:
                break
            await self._sleep(self._interval)
        logger.info("channel.polling_stopped", channel=self._name, polls=self._polls)
        return self._last_state
