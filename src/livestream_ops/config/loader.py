"""Layered config loading: packaged defaults < YAML file < CLI overrides."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from livestream_ops.config.models import LivestreamConfig

PACKAGED_DEFAULTS = Path(__file__).parent / "defaults" / "livestream.yaml"

# ${NAME} or ${NAME:-fallback}; the fallback may contain ':' and '/'
_ENV_REF = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}"
)


def expand_env(value: Any) -> Any:
    """Expand environment references in every string of a parsed YAML tree."""
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if not isinstance(value, str):
        return value

    def _lookup(match: re.Match[str]) -> str:
        name, fallback = match.group("name"), match.group("fallback")
        if name in os.environ:
            return os.environ[name]
        if fallback is None:
            msg = f"${{{name}}} is referenced in config but not set in the environment"
            raise ValueError(msg)
        return fallback

    return _ENV_REF.sub(_lookup, value)


def read_layer(path: str | Path) -> dict[str, Any]:
    """Parse one YAML layer and expand its environment references."""
    source = Path(path)
    if not source.is_file():
        msg = f"Config file not found: {source}"
        raise FileNotFoundError(msg)
    try:
        data = yaml.safe_load(source.read_text())
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        msg = f"{source}: invalid YAML{where}: {exc}"
        raise ValueError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{source}: top level must be a mapping, not {type(data).__name__}"
        raise TypeError(msg)
    return expand_env(data)  # type: ignore[no-any-return]


def overlay(base: dict[str, Any], top: dict[str, Any]) -> dict[str, Any]:
    """Return *base* with *top* laid over it; nested sections merge key by key."""
    result = dict(base)
    for key, value in top.items():
        below = result.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            result[key] = overlay(below, value)
        else:
            result[key] = value
    return result


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> LivestreamConfig:
    """Build a validated config from the three layers.

    Top-level defaults that expand to an empty string (an unset
    ``LIVESTREAM_*`` variable) are dropped so model defaults apply.
    ``None`` overrides mean "flag not given" and are ignored.
    """
    defaults = read_layer(PACKAGED_DEFAULTS)
    merged = {key: value for key, value in defaults.items() if value != ""}
    if path is not None:
        merged = overlay(merged, read_layer(path))
    if overrides:
        given = {key: value for key, value in overrides.items() if value is not None}
        merged = overlay(merged, given)
    try:
        return LivestreamConfig.model_validate(merged)
    except ValidationError as exc:
        msg = f"Invalid livestream config ({path or 'packaged defaults'}):\n{exc}"
        raise ValueError(msg) from exc
