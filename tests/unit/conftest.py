"""Shared fixtures: an in-memory Live Stream service and a test config."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
from google.api_core import exceptions as gexc
from google.cloud.video import live_stream_v1

from livestream_ops.config.models import LivestreamConfig, RetryConfig
from livestream_ops.resources.client import LivestreamError

StreamingStateProto = live_stream_v1.Channel.StreamingState


class FakeOperation:
    def __init__(
        self,
        client: FakeLivestreamClient,
        label: str,
        name: str,
        result: Any = None,
        error: Exception | None = None,
    ) -> None:
        self.label = label
        self._client = client
        self._name = name
        self._result = result
        self._error = error
        self.timeout: float | None = None

    async def wait(self, timeout: float | None = None) -> Any:
        self.timeout = timeout
        self._client.calls.append((f"{self.label} Wait", self._name))
        if self._error is not None:
            raise LivestreamError(f"{self.label} Wait", self._error)
        return self._result


class FakeLivestreamClient:
    """Implements LivestreamControl against dicts; records every call.

    ``fail`` maps ``(label, name)`` to an error raised when that
    operation is awaited; the resource is left untouched in that case.
    ``lookup_errors`` maps a name to an error raised by get_input/get_channel.
    ``list_errors`` maps a list label to an error raised after the first item.
    """

    def __init__(self) -> None:
        self.inputs: dict[str, live_stream_v1.Input] = {}
        self.channels: dict[str, live_stream_v1.Channel] = {}
        self.events: dict[str, list[live_stream_v1.Event]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail: dict[tuple[str, str], Exception] = {}
        self.lookup_errors: dict[str, Exception] = {}
        self.list_errors: dict[str, Exception] = {}

    async def __aenter__(self) -> FakeLivestreamClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    # -- helpers ---------------------------------------------------------------

    def labels(self, label: str) -> list[str]:
        return [name for lbl, name in self.calls if lbl == label]

    def add_input(self, parent: str, input_id: str) -> live_stream_v1.Input:
        name = f"{parent}/inputs/{input_id}"
        self.inputs[name] = live_stream_v1.Input(
            name=name,
            type_=live_stream_v1.Input.Type.RTMP_PUSH,
            uri=f"rtmp://1.2.3.4/live/{input_id}",
        )
        return self.inputs[name]

    def add_channel(
        self,
        parent: str,
        channel_id: str,
        state: StreamingStateProto = StreamingStateProto.STOPPED,
        output_uri: str = "gs://bucket/out",
    ) -> live_stream_v1.Channel:
        name = f"{parent}/channels/{channel_id}"
        self.channels[name] = live_stream_v1.Channel(
            name=name,
            output=live_stream_v1.Channel.Output(uri=output_uri),
            streaming_state=state,
        )
        return self.channels[name]

    def _op(
        self, label: str, name: str, apply: Any, result: Any = None
    ) -> FakeOperation:
        self.calls.append((label, name))
        error = self.fail.get((label, name))
        if error is None:
            result = apply()
        return FakeOperation(self, label, name, result=result, error=error)

    async def _lookup(self, label: str, store: dict[str, Any], name: str) -> Any:
        self.calls.append((label, name))
        if name in self.lookup_errors:
            raise LivestreamError(label, self.lookup_errors[name])
        return store.get(name)

    async def _iterate(self, label: str, items: list[Any]) -> AsyncIterator[Any]:
        for i, item in enumerate(items):
            if i == 1 and label in self.list_errors:
                raise LivestreamError(f"{label}Iterator", self.list_errors[label])
            yield item

    # -- inputs ----------------------------------------------------------------

    async def get_input(self, name: str) -> live_stream_v1.Input | None:
        return await self._lookup("GetInput", self.inputs, name)

    async def create_input(
        self, parent: str, input_id: str, input_type: str
    ) -> FakeOperation:
        name = f"{parent}/inputs/{input_id}"
        return self._op("CreateInput", name, lambda: self.add_input(parent, input_id))

    async def delete_input(self, name: str) -> FakeOperation:
        def _delete() -> None:
            if any(
                a.input == name
                for ch in self.channels.values()
                for a in ch.input_attachments
            ):
                raise AssertionError(f"input {name} deleted while attached")
            self.inputs.pop(name)

        return self._op("DeleteInput", name, _delete)

    def list_inputs(self, parent: str) -> AsyncIterator[live_stream_v1.Input]:
        self.calls.append(("ListInputs", parent))
        return self._iterate("ListInputs", list(self.inputs.values()))

    # -- channels --------------------------------------------------------------

    async def get_channel(self, name: str) -> live_stream_v1.Channel | None:
        return await self._lookup("GetChannel", self.channels, name)

    async def create_channel(
        self, parent: str, channel_id: str, channel: live_stream_v1.Channel
    ) -> FakeOperation:
        name = f"{parent}/channels/{channel_id}"

        def _create() -> live_stream_v1.Channel:
            stored = live_stream_v1.Channel.deserialize(
                live_stream_v1.Channel.serialize(channel)
            )
            stored.name = name
            stored.streaming_state = StreamingStateProto.STOPPED
            self.channels[name] = stored
            return stored

        return self._op("CreateChannel", name, _create)

    def _set_state(self, name: str, state: StreamingStateProto) -> None:
        self.channels[name].streaming_state = state

    async def start_channel(self, name: str) -> FakeOperation:
        return self._op(
            "StartChannel",
            name,
            lambda: self._set_state(name, StreamingStateProto.AWAITING_INPUT),
        )

    async def stop_channel(self, name: str) -> FakeOperation:
        return self._op(
            "StopChannel",
            name,
            lambda: self._set_state(name, StreamingStateProto.STOPPED),
        )

    async def delete_channel(self, name: str) -> FakeOperation:
        return self._op("DeleteChannel", name, lambda: self.channels.pop(name))

    def list_channels(self, parent: str) -> AsyncIterator[live_stream_v1.Channel]:
        self.calls.append(("ListChannels", parent))
        return self._iterate("ListChannels", list(self.channels.values()))

    def list_events(self, channel_name: str) -> AsyncIterator[live_stream_v1.Event]:
        self.calls.append(("ListEvents", channel_name))
        return self._iterate("ListEvents", self.events.get(channel_name, []))


@pytest.fixture
def fake_client() -> FakeLivestreamClient:
    return FakeLivestreamClient()


@pytest.fixture
def config(tmp_path: Path) -> LivestreamConfig:
    return LivestreamConfig(
        project_id="proj",
        location="us-central1",
        output_bucket="bucket",
        snapshot_dir=tmp_path,
        retry=RetryConfig(initial_wait_seconds=0.001, max_wait_seconds=0.01),
    )


@pytest.fixture
def transport_error() -> Exception:
    return gexc.ServiceUnavailable("connection reset")
