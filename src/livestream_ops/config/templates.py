"""Channel request templates — placeholder substitution and parsing."""

from __future__ import annotations

import re
from pathlib import Path

from google.cloud.video import live_stream_v1
from google.protobuf import json_format

TEMPLATES_DIR = Path(__file__).parent / "templates"
DEFAULT_TEMPLATE = TEMPLATES_DIR / "channel_request.json"

OUTPUT_PLACEHOLDER = "<GCS_OUTPUT>"
INPUT_PLACEHOLDER = "<GCP_OTHER_INFO>"
_PLACEHOLDER_PATTERN = re.compile(
    f"{re.escape(OUTPUT_PLACEHOLDER)}|{re.escape(INPUT_PLACEHOLDER)}"
)


class TemplateError(Exception):
    """Raised when a channel template cannot be read or parsed."""


def read_template(path: str | Path | None = None) -> str:
    """Read a channel template, falling back to the packaged default."""
    p = Path(path) if path is not None else DEFAULT_TEMPLATE
    try:
        return p.read_text()
    except OSError as exc:
        msg = f"ReadFile: cannot read channel template {p}: {exc}"
        raise TemplateError(msg) from exc


def render_channel_template(text: str, output_uri: str, input_name: str) -> str:
    """Substitute the output and input placeholders.

    Plain literal replacement: every occurrence of each marker is replaced
    once, and substituted values are never re-scanned.
    """
    values = {OUTPUT_PLACEHOLDER: output_uri, INPUT_PLACEHOLDER: input_name}
    return _PLACEHOLDER_PATTERN.sub(lambda m: values[m.group(0)], text)


def parse_channel(text: str) -> live_stream_v1.Channel:
    """Parse a rendered template into a Channel message."""
    try:
        return live_stream_v1.Channel.from_json(text)
    except (json_format.ParseError, ValueError) as exc:
        msg = f"Unmarshal: invalid channel template: {exc}"
        raise TemplateError(msg) from exc


def load_channel_template(
    path: str | Path | None,
    *,
    output_uri: str,
    input_name: str,
) -> live_stream_v1.Channel:
    """Read, render and parse a channel template in one step."""
    text = read_template(path)
    return parse_channel(render_channel_template(text, output_uri, input_name))
