"""Pytest fixtures for node pruner tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from node_pruner.config import Settings, override_settings, reset_settings
from node_pruner.core.models import ExclusionSet, RetentionPolicy

# Fixed wall clock for age-boundary tests (2023-11-14T22:13:20Z)
NOW = 1_700_000_000

MINUTE = 60
HOUR = 60 * MINUTE

HOT_SUBDIR = "node_order_statuses_by_block/hourly"


def make_file(root: Path, relative: str, age_seconds: int, now: int = NOW) -> Path:
    """Create a file under root whose mtime is ``age_seconds`` before ``now``."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(relative)
    mtime = now - age_seconds
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def fixed_clock() -> Callable[[], float]:
    """Provide a wall clock frozen at NOW."""
    return lambda: float(NOW)


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Provide an empty data directory."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def default_exclusions() -> ExclusionSet:
    return ExclusionSet.from_names(["visor_child_stderr"])


@pytest.fixture
def hour_policy() -> RetentionPolicy:
    """General retention 60 min, hot subdirectory retention 180 min."""
    return RetentionPolicy(general_retention_minutes=60, hot_subdir_retention_minutes=180)


@pytest.fixture
def test_settings(tmp_path: Path, data_root: Path) -> Generator[Settings, None, None]:
    """Provide test settings pointing at the temp data directory."""
    settings = Settings(
        data_path=data_root,
        lock_path=tmp_path / "locks" / "node-pruner.lock",
        log_level="DEBUG",
    )
    override_settings(settings)
    yield settings
    reset_settings()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep host NODE_PRUNER_* variables out of Settings."""
    for key in list(os.environ):
        if key.startswith("NODE_PRUNER_"):
            monkeypatch.delenv(key)
    yield
    reset_settings()
