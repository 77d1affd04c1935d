"""YAML config loader with environment variable interpolation."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import ValidationError

from clusterlens.config.models import LensConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".clusterlens.yaml"
CONFIG_ENV_VAR = "CLUSTERLENS_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} and ${VAR:-default} patterns with environment values."""

    def _replace(match: re.Match[str]) -> str:
        expr = match.group(1)
        if ":-" in expr:
            var_name, default = expr.split(":-", 1)
            return os.environ.get(var_name.strip(), default)
        return os.environ.get(expr.strip(), match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return _interpolate_env(data)
    if isinstance(data, dict):
        return {k: _interpolate_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_interpolate_recursive(item) for item in data]
    return data


def find_config_file(start: Path | None = None) -> Path | None:
    """Locate the config file.

    $CLUSTERLENS_CONFIG wins when set; otherwise walk up from *start*
    (default cwd) looking for .clusterlens.yaml.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    current = (start or Path.cwd()).resolve()
    for ancestor in [current, *current.parents]:
        candidate = ancestor / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path | None = None) -> LensConfig:
    """Load and validate .clusterlens.yaml, applying env-var interpolation."""
    config_path = path or find_config_file()
    if not config_path or not config_path.exists():
        raise FileNotFoundError(
            f"Could not find {CONFIG_FILENAME}. Create one from .clusterlens.yaml.example, "
            f"set ${CONFIG_ENV_VAR}, or specify a path."
        )
    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    data = _interpolate_recursive(raw)
    try:
        return LensConfig(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc


def load_config_or_default(path: Path | None = None) -> LensConfig:
    """Like load_config, but fall back to built-in defaults when no usable file exists."""
    try:
        return load_config(path)
    except FileNotFoundError:
        logger.info("No %s found, using built-in defaults", CONFIG_FILENAME)
        return LensConfig()
    except (ValueError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unusable config, using built-in defaults: %s", exc)
        return LensConfig()


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def check_config(config: LensConfig) -> list[str]:
    """Return semantic problems pydantic cannot catch on its own."""
    errors: list[str] = []
    if not _is_http_url(config.router.upstream_origin):
        errors.append(f"Router: invalid upstream origin '{config.router.upstream_origin}'")

    prefixes = config.router.prefixes
    for prefix in prefixes:
        if not prefix.startswith("/"):
            errors.append(f"Router: prefix '{prefix}' must start with '/'")
    for i, first in enumerate(prefixes):
        for second in prefixes[i + 1 :]:
            if first.startswith(second) or second.startswith(first):
                errors.append(f"Router: prefixes '{first}' and '{second}' overlap")

    for key in config.services:
        url = config.service_base_url(key)
        if not _is_http_url(url):
            errors.append(f"Service '{key}': invalid URL '{url}'")

    if not _is_http_url(config.snapshot_url):
        errors.append(f"Aggregator: invalid snapshot URL '{config.snapshot_url}'")
    return errors
