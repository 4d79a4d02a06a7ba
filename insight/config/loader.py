"""Configuration loading with layered merging.

Without an explicit path, configuration is merged from two layers:
1. Global user config (~/.insight/config.json)
2. Project local config (cwd/.insight/config.json)

The local layer is deep-merged over the global one: nested objects merge
key by key, while lists and scalars from the local layer win outright (so a
project can replace the global token-limit patterns). With no files at all
the pydantic defaults apply.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from insight.config.schema import Config
from insight.core.constants import CONFIG_FILE_NAME, INSIGHT_DIR_NAME, get_insight_dir
from insight.core.errors import ConfigError

logger = logging.getLogger(__name__)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``override`` on ``base`` without modifying either."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def read_config_file(path: Path, required: bool = True) -> dict[str, Any] | None:
    """Read one JSON config file.

    An empty (or whitespace-only) file counts as ``{}``. A UTF-8 BOM is
    tolerated.

    Args:
        path: File to read.
        required: When False, a missing file yields None instead of an error.

    Raises:
        ConfigError: If a required file is missing, the file is unreadable,
            or it does not hold a JSON object.
    """
    if not path.is_file():
        if required:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug("No config at %s", path)
        return None

    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {path} must contain a JSON object, not {type(data).__name__}"
        )
    return data


def _validate(data: dict[str, Any], source: str) -> Config:
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed ({source}): {e}") from e


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load configuration.

    Args:
        path: Explicit config file path. If provided, skips layered loading.
        cwd: Working directory for local lookup. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If a config file is missing (explicit path only), contains
            invalid JSON, or the merged config fails validation.
    """
    if path is not None:
        return _validate(read_config_file(path) or {}, str(path))

    global_config = get_insight_dir() / CONFIG_FILE_NAME
    local_config = (cwd or Path.cwd()) / INSIGHT_DIR_NAME / CONFIG_FILE_NAME

    layers = [global_config]
    # Running from the home directory would read the same file twice
    if local_config.resolve() != global_config.resolve():
        layers.append(local_config)

    merged: dict[str, Any] = {}
    sources: list[str] = []
    for layer in layers:
        data = read_config_file(layer, required=False)
        if data is not None:
            merged = deep_merge(merged, data)
            sources.append(str(layer))

    if not sources:
        logger.debug("No config files found, using defaults")
        return Config()

    logger.info("Config loaded from: %s", sources)
    return _validate(merged, "merged from " + ", ".join(sources))
