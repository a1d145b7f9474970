"""
Configuration loader — reads and writes config.yml.

The file is YAML, validated against the ``LevainConfig`` Pydantic
schema. A missing file means "all defaults". Writes are atomic
(write to temp file, then rename) so a crash never leaves a truncated
config behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml

from levain.core.models.config import LevainConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LEVAIN_CONFIG"
DEFAULT_CONFIG_DIR = ".levain"
DEFAULT_CONFIG_FILE = "config.yml"


class ConfigError(Exception):
    """Raised when the levain configuration is invalid or unreadable."""


def default_config_path() -> Path:
    """Resolve the config file path: $LEVAIN_CONFIG, else ~/.levain/config.yml."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE


def load_config(path: Path | None = None) -> LevainConfig:
    """Load and validate the levain configuration.

    Args:
        path: Explicit config path. If None, uses ``default_config_path()``.

    Returns:
        Validated LevainConfig. Defaults if the file doesn't exist.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    if path is None:
        path = default_config_path()

    if not path.is_file():
        logger.debug("No config file at %s — using defaults", path)
        return LevainConfig()

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return LevainConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return LevainConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def save_config(config: LevainConfig, path: Path | None = None) -> Path:
    """Save the configuration as YAML (atomic write).

    Returns:
        The path written to.
    """
    if path is None:
        path = default_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")
    content = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".config_",
            suffix=".tmp",
        )
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            tmp.write_text(content, encoding="utf-8")
            tmp.replace(path)
            logger.debug("Config saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Cannot write {path}: {e}") from e

    return path
