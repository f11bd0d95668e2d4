"""Live Stream resource naming conventions."""

from __future__ import annotations


def location_path(project_id: str, location: str) -> str:
    """Build the parent path that owns inputs and channels."""
    return f"projects/{project_id}/locations/{location}"


def input_name(project_id: str, location: str, input_id: str) -> str:
    """Build a fully-qualified input resource name."""
    return f"{location_path(project_id, location)}/inputs/{input_id}"


def channel_name(project_id: str, location: str, channel_id: str) -> str:
    """Build a fully-qualified channel resource name."""
    return f"{location_path(project_id, location)}/channels/{channel_id}"


def resource_id(name: str) -> str:
    """Extract the trailing id from a resource name."""
    # projects/{project}/locations/{location}/{collection}/{id}
    return name.rsplit("/", 1)[-1]
