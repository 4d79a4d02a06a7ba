"""Core constants and paths for insight.

Single source of truth for global paths. All modules should import from here
instead of hardcoding paths like `Path.home() / ".insight"`.
"""

from pathlib import Path

INSIGHT_DIR_NAME = ".insight"
CONFIG_FILE_NAME = "config.json"


def get_insight_dir() -> Path:
    """Get ~/.insight (global config directory)."""
    return Path.home() / INSIGHT_DIR_NAME


def get_default_config_path() -> Path:
    """Get default config file path."""
    return get_insight_dir() / CONFIG_FILE_NAME


def get_log_dir() -> Path:
    """Get the default server log directory."""
    return get_insight_dir() / "logs"
