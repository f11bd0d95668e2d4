"""Fixtures for tests that run against a real Google Cloud project."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from livestream_ops.config.models import LivestreamConfig

PROJECT_ENV = "LIVESTREAM_E2E_PROJECT_ID"
BUCKET_ENV = "LIVESTREAM_E2E_BUCKET"


@pytest.fixture
def live_config(tmp_path: Path) -> LivestreamConfig:
    project = os.environ.get(PROJECT_ENV)
    bucket = os.environ.get(BUCKET_ENV)
    if not project or not bucket:
        pytest.skip(f"{PROJECT_ENV} and {BUCKET_ENV} must be set")
    return LivestreamConfig(
        project_id=project,
        location=os.environ.get("LIVESTREAM_E2E_LOCATION", "us-central1"),
        running_number="99",
        output_bucket=bucket,
        snapshot_dir=tmp_path,
    )
