"""ResourceEnsurer — idempotent input/channel creation."""

from __future__ import annotations

import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import IO, Any

import structlog

from livestream_ops.config.models import LivestreamConfig
from livestream_ops.config.templates import load_channel_template
from livestream_ops.provisioning.snapshots import (
    ChannelSnapshot,
    InputSnapshot,
    write_snapshot,
)
from livestream_ops.resources.base import LivestreamControl
from livestream_ops.resources.client import LivestreamError
from livestream_ops.resources.naming import channel_name, input_name

logger = structlog.get_logger()


class ResourceEnsurer:
    """Looks a resource up by name and creates it only when it is missing.

    Only a typed not-found lookup leads to creation; every other lookup
    failure propagates. A create rejected with AlreadyExists (a concurrent
    run, or a retried submit the server had already applied) is resolved by
    looking the resource up again and reporting it as existing.

    Both the found and created branches write a JSON snapshot to
    ``<snapshot_dir>/<id>.json`` and echo it to *stream*.
    """

    def __init__(
        self,
        client: LivestreamControl,
        config: LivestreamConfig,
        stream: IO[str] | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._stream = stream if stream is not None else sys.stdout

    def _snapshot_path(self, resource_id: str) -> Path:
        return self._config.snapshot_dir / f"{resource_id}.json"

    @staticmethod
    async def _refetch(
        exc: LivestreamError,
        lookup: Callable[[str], Awaitable[Any]],
        name: str,
    ) -> Any:
        found = await lookup(name)
        if found is None:
            raise exc
        return found

    async def ensure_input(self, input_id: str) -> InputSnapshot:
        cfg = self._config
        name = input_name(cfg.project_id, cfg.location, input_id)

        existing = await self._client.get_input(name)
        if existing is not None:
            logger.info("input.exists", input=name)
            snapshot = InputSnapshot(input_id=name, uri=existing.uri)
        else:
            try:
                op = await self._client.create_input(
                    cfg.parent, input_id, cfg.input_type.value
                )
                created = await op.wait(timeout=cfg.operation_timeout_seconds)
            except LivestreamError as exc:
                if not exc.already_exists:
                    raise
                created = await self._refetch(exc, self._client.get_input, name)
                logger.info("input.exists", input=name, after="AlreadyExists")
            else:
                logger.info("input.created", input=created.name, uri=created.uri)
            snapshot = InputSnapshot(input_id=created.name, uri=created.uri)

        write_snapshot(snapshot, self._snapshot_path(input_id), self._stream)
        return snapshot

    async def ensure_channel(
        self,
        channel_id: str,
        input_id: str,
        template_path: str | Path | None = None,
    ) -> ChannelSnapshot:
        cfg = self._config
        name = channel_name(cfg.project_id, cfg.location, channel_id)
        attached_input = input_name(cfg.project_id, cfg.location, input_id)

        existing = await self._client.get_channel(name)
        if existing is not None:
            logger.info("channel.exists", channel=name)
            snapshot = ChannelSnapshot(
                channel_id=name,
                input_id=attached_input,
                output_uri=existing.output.uri,
            )
        else:
            if cfg.output_uri is None:
                msg = "output_uri (or output_bucket) is required to create a channel"
                raise ValueError(msg)
            channel = load_channel_template(
                template_path,
                output_uri=cfg.output_uri,
                input_name=attached_input,
            )
            try:
                op = await self._client.create_channel(cfg.parent, channel_id, channel)
                created = await op.wait(timeout=cfg.operation_timeout_seconds)
            except LivestreamError as exc:
                if not exc.already_exists:
                    raise
                created = await self._refetch(exc, self._client.get_channel, name)
                logger.info("channel.exists", channel=name, after="AlreadyExists")
            else:
                logger.info(
                    "channel.created", channel=created.name, input=attached_input
                )
            snapshot = ChannelSnapshot(
                channel_id=created.name,
                input_id=attached_input,
                output_uri=created.output.uri,
            )

        write_snapshot(snapshot, self._snapshot_path(channel_id), self._stream)
        return snapshot
