"""Protocol conformance tests — verify all implementations satisfy their protocols."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from livestream_ops.config.models import LivestreamConfig
from livestream_ops.resources.base import LivestreamControl, Operation
from livestream_ops.resources.client import LivestreamClient, PendingOperation


class TestProtocolConformance:
    # -- Live Stream service ---------------------------------------------------
    def test_livestream_client_satisfies_control(self):
        client = LivestreamClient(LivestreamConfig(project_id="p"), service=MagicMock())
        assert isinstance(client, LivestreamControl)

    def test_pending_operation_satisfies_operation(self):
        assert isinstance(PendingOperation("CreateInput", MagicMock()), Operation)

    # -- in-memory doubles -----------------------------------------------------
    def test_fake_client_satisfies_control(self, fake_client):
        assert isinstance(fake_client, LivestreamControl)

    @pytest.mark.asyncio
    async def test_fake_operation_satisfies_operation(self, fake_client):
        op = await fake_client.create_input("parent", "in-1", "RTMP_PUSH")
        assert isinstance(op, Operation)
