"""Unit tests for the cross-process run-lock."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from node_pruner.core.errors import RunLockError
from node_pruner.core.run_lock import RunLock


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    return tmp_path / "locks" / "prune.lock"


@pytest.mark.unit
class TestRunLock:
    """Tests for RunLock behaviour within one process."""

    def test_context_manager_acquires_and_releases(self, lock_path: Path) -> None:
        lock = RunLock(lock_path, timeout=0, poll_interval=0.01)
        with lock:
            assert lock.is_locked
        assert not lock.is_locked

    def test_creates_parent_directory(self, lock_path: Path) -> None:
        RunLock(lock_path)
        assert lock_path.parent.is_dir()

    def test_second_holder_fails_fast(self, lock_path: Path) -> None:
        first = RunLock(lock_path, timeout=0, poll_interval=0.01)
        second = RunLock(lock_path, timeout=0, poll_interval=0.01)
        with first:
            with pytest.raises(RunLockError) as exc_info:
                second.acquire()
        assert exc_info.value.lock_path == str(lock_path)
        assert "Another run holds the lock" in str(exc_info.value)

    def test_lock_is_reusable_after_release(self, lock_path: Path) -> None:
        first = RunLock(lock_path, timeout=0, poll_interval=0.01)
        second = RunLock(lock_path, timeout=0, poll_interval=0.01)
        with first:
            pass
        with second:
            assert second.is_locked

    def test_exception_releases_lock(self, lock_path: Path) -> None:
        lock = RunLock(lock_path, timeout=0, poll_interval=0.01)
        with pytest.raises(RuntimeError):
            with lock:
                raise RuntimeError("boom")
        assert not lock.is_locked

    def test_disabled_is_noop(self, lock_path: Path) -> None:
        holder = RunLock(lock_path, timeout=0)
        disabled = RunLock(lock_path, timeout=0, enabled=False)
        with holder:
            with disabled:
                assert not disabled.is_locked

    def test_unwritable_location_falls_back_to_disabled(self, lock_path: Path) -> None:
        with patch("pathlib.Path.mkdir", side_effect=PermissionError("read-only")):
            lock = RunLock(lock_path)
        assert lock.enabled is False
        with lock:
            pass
