# Copyright (c) Syntropy Systems
"""Configuration management for megaverse."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml

from megaverse.client import DEFAULT_BASE_URL

CONFIG_DIR_NAME = ".megaverse"
CONFIG_FILE_NAME = "config.yaml"


@dataclass
class MegaverseConfig:
    """Configuration for megaverse."""

    base_url: str = DEFAULT_BASE_URL
    candidate_id: str | None = None

    # Request timeout (seconds)
    timeout: float = 30.0

    # Total attempts per object
    max_retries: int = 3

    # Base backoff after a failed attempt, scaled by attempt number (seconds)
    retry_delay: float = 1.0

    # Base wait after a rate-limit response, scaled by attempt number (seconds)
    rate_limit_delay: float = 2.0

    # Pause between consecutive submissions when building a goal (seconds)
    inter_call_delay: float = 1.0

    # Pause between submissions in single-pattern mode (seconds)
    pattern_delay: float = 0.1

    # Submissions in flight at once
    concurrency: int = 1

    def to_dict(self) -> dict[str, object]:
        """Convert to a YAML-friendly dictionary."""
        return {
            "base_url": self.base_url,
            "candidate_id": self.candidate_id,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "rate_limit_delay": self.rate_limit_delay,
            "inter_call_delay": self.inter_call_delay,
            "pattern_delay": self.pattern_delay,
            "concurrency": self.concurrency,
        }


def find_config_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .megaverse directory by walking up from start_path.

    Returns None if no .megaverse directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    for candidate in (current, *current.parents):
        config_dir = candidate / CONFIG_DIR_NAME
        if config_dir.is_dir():
            return config_dir
    return None


def get_global_config_dir() -> Path:
    """Get the global megaverse config directory (~/.megaverse)."""
    return Path.home() / CONFIG_DIR_NAME


def _apply(config: MegaverseConfig, data: dict[str, object]) -> None:
    for name in ("base_url", "candidate_id"):
        value = data.get(name)
        if isinstance(value, str) and value:
            setattr(config, name, value)

    for name in ("max_retries", "concurrency"):
        value = data.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            setattr(config, name, max(1, int(value)))

    for name in (
        "timeout",
        "retry_delay",
        "rate_limit_delay",
        "inter_call_delay",
        "pattern_delay",
    ):
        value = data.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            setattr(config, name, max(0.0, float(value)))


def load_config(config_dir: Path | None = None) -> MegaverseConfig:
    """Load configuration from .megaverse/config.yaml or defaults.

    Looks for config in:
    1. Provided config_dir
    2. Nearest .megaverse directory walking up
    3. ~/.megaverse/config.yaml
    4. Defaults
    """
    config = MegaverseConfig()

    if config_dir is None:
        config_dir = find_config_dir()
    if config_dir is None:
        config_dir = get_global_config_dir()

    config_path = config_dir / CONFIG_FILE_NAME
    if config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})
        _apply(config, data)

    return config
