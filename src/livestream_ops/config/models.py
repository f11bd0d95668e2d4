"""Pydantic configuration models for livestream provisioning and teardown."""

from __future__ import annotations

import re
from enum import StrEnum
from pathlib import Path
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from livestream_ops.resources.naming import location_path


class InputType(StrEnum):
    """Push protocols accepted by a Live Stream input endpoint."""

    RTMP_PUSH = "RTMP_PUSH"
    SRT_PUSH = "SRT_PUSH"


class RetryConfig(BaseModel):
    """Retry / backoff configuration for transient RPC failures."""

    max_attempts: int = Field(default=5, ge=1)
    initial_wait_seconds: float = Field(default=1.0, gt=0)
    max_wait_seconds: float = Field(default=30.0, gt=0)
    multiplier: float = Field(default=2.0, ge=1.0)


class PollingConfig(BaseModel):
    """Streaming-state polling after a channel has been started."""

    interval_seconds: float = Field(default=5.0, gt=0)
    # None polls until the process is interrupted.
    max_polls: int | None = Field(default=None, ge=1)


class LivestreamConfig(BaseModel, extra="forbid"):
    """Project scope, resource ids and client tuning for one input/channel pair."""

    project_id: str = Field(min_length=1)
    location: str = Field(default="us-central1", min_length=1)
    running_number: str = "01"
    input_id: str | None = None
    channel_id: str | None = None
    input_type: InputType = InputType.RTMP_PUSH
    output_bucket: str | None = None
    output_uri: str | None = None
    template_path: Path | None = None
    snapshot_dir: Path = Path(".")
    request_timeout_seconds: float = Field(default=60.0, gt=0)
    operation_timeout_seconds: float = Field(default=600.0, gt=0)
    polling: PollingConfig = PollingConfig()
    retry: RetryConfig = RetryConfig()

    @field_validator("running_number")
    @classmethod
    def validate_running_number(cls, v: str) -> str:
        if not re.fullmatch(r"\d{2,}", v):
            msg = f"running_number '{v}' must be at least two digits (e.g. '01')"
            raise ValueError(msg)
        return v

    @field_validator("input_id", "channel_id")
    @classmethod
    def validate_resource_id(cls, v: str | None) -> str | None:
        """Resource ids must be lowercase, start with a letter, max 63 chars."""
        if v is None:
            return v
        if not re.fullmatch(r"[a-z]([a-z0-9-]{0,61}[a-z0-9])?", v):
            msg = (
                f"resource id '{v}' must match [a-z]([a-z0-9-]{{0,61}}[a-z0-9])?"
            )
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def derive_ids(self) -> Self:
        """Fill in ids and output URI derived from the running number."""
        if self.input_id is None:
            self.input_id = f"livestream-input-{self.running_number}"
        if self.channel_id is None:
            self.channel_id = f"livestream-channel-{self.running_number}"
        if self.output_uri is None and self.output_bucket:
            bucket = self.output_bucket.removeprefix("gs://").rstrip("/")
            self.output_uri = f"gs://{bucket}/{self.input_id}"
        if self.output_uri is not None and not self.output_uri.startswith("gs://"):
            msg = f"output_uri '{self.output_uri}' must be a gs:// URI"
            raise ValueError(msg)
        return self

    @property
    def parent(self) -> str:
        return location_path(self.project_id, self.location)
