# Copyright (c) Syntropy Systems
"""Pytest fixtures for megaverse tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml
from helpers import SCENARIO_GRID, RecordingPacer, StubEndpoint

# Store original cwd at module load time
_original_cwd = Path.cwd()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def megaverse_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary megaverse project with instant pacing."""
    config_dir = temp_dir / ".megaverse"
    config_dir.mkdir()
    config = {
        "candidate_id": "test-candidate",
        "base_url": "http://localhost:9999",
        "retry_delay": 0,
        "rate_limit_delay": 0,
        "inter_call_delay": 0,
        "pattern_delay": 0,
    }
    with (config_dir / "config.yaml").open("w") as f:
        yaml.dump(config, f)

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def pacer() -> RecordingPacer:
    """Pacer that never sleeps."""
    return RecordingPacer()


@pytest.fixture
def stub_endpoint() -> StubEndpoint:
    """Endpoint that accepts every call."""
    return StubEndpoint(goal=SCENARIO_GRID)
