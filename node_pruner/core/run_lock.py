"""Cross-process run-lock.

Keeps two scheduled invocations from sweeping the same directory at the
same time. The lock file must live outside the data directory, otherwise
the sweep itself could unlink it while it is held.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from filelock import FileLock
from filelock import Timeout as FileLockTimeout

from node_pruner.core.errors import RunLockError

logger = logging.getLogger(__name__)


class RunLock:
    """Non-reentrant file lock around one pruning run.

    Example:
        lock = RunLock(Path("/tmp/node-pruner.lock"), timeout=0)
        with lock:
            service.sweep(...)
    """

    def __init__(
        self,
        lock_path: Path,
        timeout: float = 0.0,
        poll_interval: float = 0.1,
        enabled: bool = True,
    ) -> None:
        """Initialize the run lock.

        Args:
            lock_path: Path to the lock file.
            timeout: Seconds to wait for a running invocation to finish.
                0 means fail immediately.
            poll_interval: Seconds between lock acquisition attempts.
            enabled: If False, all lock operations are no-ops.
        """
        self.lock_path = lock_path
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.enabled = enabled

        self._lock: FileLock | None = None
        if enabled:
            try:
                lock_path.parent.mkdir(parents=True, exist_ok=True)
                self._lock = FileLock(str(lock_path), timeout=timeout)
            except OSError as e:
                logger.warning(
                    f"Could not create run lock at {lock_path}: {e}. "
                    "Continuing without cross-process exclusion."
                )
                self.enabled = False

    @property
    def is_locked(self) -> bool:
        return self._lock is not None and self._lock.is_locked

    def acquire(self) -> None:
        """Acquire the lock.

        Raises:
            RunLockError: If another process holds the lock past the timeout.
        """
        if not self.enabled or self._lock is None:
            return
        try:
            self._lock.acquire(timeout=self.timeout, poll_interval=self.poll_interval)
        except FileLockTimeout:
            raise RunLockError(
                lock_path=self.lock_path,
                timeout=self.timeout,
                message=(
                    f"Another run holds the lock at {self.lock_path} "
                    f"(waited {self.timeout}s)"
                ),
            )

    def release(self) -> None:
        if self._lock is not None and self._lock.is_locked:
            self._lock.release()

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()
