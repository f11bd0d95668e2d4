"""Async wrapper around the Google Cloud Live Stream API."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import structlog
from google.api_core import exceptions as gexc
from google.auth.exceptions import GoogleAuthError
from google.cloud.video import live_stream_v1
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from livestream_ops.config.models import LivestreamConfig

logger = structlog.get_logger()

_TRANSIENT = (
    gexc.ServiceUnavailable,
    gexc.DeadlineExceeded,
    gexc.InternalServerError,
    gexc.TooManyRequests,
)
# A mutation that timed out or failed server-side may already have been applied.
_TRANSIENT_MUTATION = (gexc.ServiceUnavailable,)
_API_ERRORS = (gexc.GoogleAPIError, GoogleAuthError)


class LivestreamError(Exception):
    """Raised when a Live Stream API call fails.

    ``label`` names the failing call (``"GetInput"``, ``"StartChannel Wait"``)
    and ``cause`` carries the underlying transport or service error.
    """

    def __init__(self, label: str, cause: BaseException) -> None:
        super().__init__(f"{label}: {cause}")
        self.label = label
        self.cause = cause

    @property
    def not_found(self) -> bool:
        return isinstance(self.cause, gexc.NotFound)

    @property
    def already_exists(self) -> bool:
        return isinstance(self.cause, gexc.AlreadyExists)


class PendingOperation:
    """A submitted long-running operation that can be awaited with a deadline."""

    def __init__(self, label: str, future: Any) -> None:
        self.label = label
        self._future = future

    @property
    def operation_name(self) -> str | None:
        operation = getattr(self._future, "operation", None)
        return getattr(operation, "name", None)

    async def wait(self, timeout: float | None = None) -> Any:
        try:
            return await self._future.result(timeout=timeout)
        except (*_API_ERRORS, TimeoutError) as exc:
            raise LivestreamError(f"{self.label} Wait", exc) from exc


class LivestreamClient:
    """Thin async wrapper over ``LivestreamServiceAsyncClient``.

    Adds per-call timeouts, exponential-backoff retry on transient errors,
    typed not-found handling for lookups, and labelled error wrapping.
    """

    def __init__(
        self,
        config: LivestreamConfig,
        service: live_stream_v1.LivestreamServiceAsyncClient | None = None,
    ) -> None:
        self._config = config
        self._service = service

    @property
    def service(self) -> live_stream_v1.LivestreamServiceAsyncClient:
        if self._service is None:
            try:
                self._service = live_stream_v1.LivestreamServiceAsyncClient()
            except GoogleAuthError as exc:
                raise LivestreamError("NewClient", exc) from exc
        return self._service

    async def close(self) -> None:
        if self._service is not None:
            await self._service.transport.close()
            self._service = None

    async def __aenter__(self) -> LivestreamClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- Plumbing --------------------------------------------------------------

    async def _call(
        self,
        label: str,
        method: Callable[..., Awaitable[Any]],
        *,
        retry_on: tuple[type[Exception], ...] = _TRANSIENT,
        **kwargs: Any,
    ) -> Any:
        retry_cfg = self._config.retry

        @retry(
            stop=stop_after_attempt(retry_cfg.max_attempts),
            wait=wait_exponential(
                multiplier=retry_cfg.initial_wait_seconds,
                max=retry_cfg.max_wait_seconds,
                exp_base=retry_cfg.multiplier,
            ),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        )
        async def _invoke() -> Any:
            return await method(
                timeout=self._config.request_timeout_seconds, **kwargs
            )

        try:
            return await _invoke()
        except _API_ERRORS as exc:
            raise LivestreamError(label, exc) from exc

    async def _submit(
        self, label: str, method: Callable[..., Awaitable[Any]], **kwargs: Any
    ) -> PendingOperation:
        future = await self._call(
            label, method, retry_on=_TRANSIENT_MUTATION, **kwargs
        )
        return PendingOperation(label, future)

    async def _lookup(
        self, label: str, method: Callable[..., Awaitable[Any]], name: str
    ) -> Any:
        try:
            return await self._call(label, method, name=name)
        except LivestreamError as exc:
            if exc.not_found:
                logger.debug("livestream.not_found", name=name)
                return None
            raise

    async def _iterate(
        self, label: str, method: Callable[..., Awaitable[Any]], parent: str
    ) -> AsyncIterator[Any]:
        pager = await self._call(label, method, parent=parent)
        try:
            async for item in pager:
                yield item
        except _API_ERRORS as exc:
            raise LivestreamError(f"{label}Iterator", exc) from exc

    # -- Inputs ----------------------------------------------------------------

    async def get_input(self, name: str) -> live_stream_v1.Input | None:
        return await self._lookup("GetInput", self.service.get_input, name)

    async def create_input(
        self, parent: str, input_id: str, input_type: str
    ) -> PendingOperation:
        resource = live_stream_v1.Input(type_=live_stream_v1.Input.Type[input_type])
        return await self._submit(
            "CreateInput",
            self.service.create_input,
            parent=parent,
            input=resource,
            input_id=input_id,
        )

    async def delete_input(self, name: str) -> PendingOperation:
        return await self._submit("DeleteInput", self.service.delete_input, name=name)

    def list_inputs(self, parent: str) -> AsyncIterator[live_stream_v1.Input]:
        return self._iterate("ListInputs", self.service.list_inputs, parent)

    # -- Channels --------------------------------------------------------------

    async def get_channel(self, name: str) -> live_stream_v1.Channel | None:
        return await self._lookup("GetChannel", self.service.get_channel, name)

    async def create_channel(
        self, parent: str, channel_id: str, channel: live_stream_v1.Channel
    ) -> PendingOperation:
        return await self._submit(
            "CreateChannel",
            self.service.create_channel,
            parent=parent,
            channel=channel,
            channel_id=channel_id,
        )

    async def start_channel(self, name: str) -> PendingOperation:
        return await self._submit("StartChannel", self.service.start_channel, name=name)

    async def stop_channel(self, name: str) -> PendingOperation:
        return await self._submit("StopChannel", self.service.stop_channel, name=name)

    async def delete_channel(self, name: str) -> PendingOperation:
        return await self._submit(
            "DeleteChannel", self.service.delete_channel, name=name
        )

    def list_channels(self, parent: str) -> AsyncIterator[live_stream_v1.Channel]:
        return self._iterate("ListChannels", self.service.list_channels, parent)

    # -- Events ----------------------------------------------------------------

    def list_events(self, channel_name: str) -> AsyncIterator[live_stream_v1.Event]:
        # Events are parented by their channel.
        return self._iterate("ListEvents", self.service.list_events, channel_name)
