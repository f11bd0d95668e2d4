"""Typed JSON snapshots written after an input or channel is ensured."""

from __future__ import annotations

from pathlib import Path
from typing import IO

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger()


class _Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class InputSnapshot(_Snapshot):
    """``{"inputID": ..., "uri": ...}``"""

    input_id: str = Field(alias="inputID")
    uri: str


class ChannelSnapshot(_Snapshot):
    """``{"channelID": ..., "inputID": ..., "gcsoutput": ...}``"""

    channel_id: str = Field(alias="channelID")
    input_id: str = Field(alias="inputID")
    output_uri: str = Field(alias="gcsoutput")


def write_snapshot(
    snapshot: _Snapshot, path: str | Path, stream: IO[str] | None = None
) -> Path:
    """Echo *snapshot* to *stream* and overwrite *path* with it."""
    payload = snapshot.to_json()
    if stream is not None:
        stream.write(payload + "\n")
        stream.flush()
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(payload)
    logger.debug("snapshot.written", path=str(p))
    return p
