"""Service factory for dependency injection and initialization.

Builds the retention service and its collaborators from Settings, so the
CLI and tests wire things the same way.

Usage:
    from node_pruner.factory import ServiceFactory

    factory = ServiceFactory(settings)
    service = factory.create_retention_service()
    report = service.run_once()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from node_pruner.config import Settings
from node_pruner.core.filesystem import (
    NETWORK_FILESYSTEM_TYPES,
    detect_filesystem_type,
    get_filesystem_warning_message,
)
from node_pruner.core.models import ExclusionSet
from node_pruner.core.run_lock import RunLock
from node_pruner.services.retention import RetentionConfig, RetentionService
from node_pruner.services.sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Factory for creating and wiring the retention service.

    Example:
        factory = ServiceFactory(settings, stop_event=shutdown)
        service = factory.create_retention_service()
    """

    def __init__(
        self,
        settings: Settings,
        stop_event: threading.Event | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the factory.

        Args:
            settings: Application settings.
            stop_event: Signals a running sweep to stop early.
            clock: Wall-clock source for file ages (overridable for testing).
        """
        self._settings = settings
        self._stop_event = stop_event
        self._clock = clock

    def create_config(self) -> RetentionConfig:
        return RetentionConfig(
            data_path=self._settings.data_path,
            exclusions=ExclusionSet.from_names(self._settings.exclusions),
            hot_subdir=self._settings.hot_subdir,
        )

    def create_sweeper(self) -> RetentionSweeper:
        return RetentionSweeper(
            clock=self._clock,
            dry_run=self._settings.dry_run,
            stop_event=self._stop_event,
            max_runtime_seconds=self._settings.max_runtime_seconds,
        )

    def create_run_lock(self) -> RunLock | None:
        """Create the run-lock, warning when it sits on a network filesystem.

        Returns:
            RunLock instance, or None when run locking is disabled.
        """
        if not self._settings.run_lock_enabled:
            return None

        lock_path = self._settings.lock_path
        if not self._settings.acknowledge_network_fs_risk:
            fs_type = detect_filesystem_type(lock_path.parent)
            if fs_type in NETWORK_FILESYSTEM_TYPES:
                logger.warning(get_filesystem_warning_message(fs_type, lock_path))

        return RunLock(
            lock_path=lock_path,
            timeout=self._settings.lock_timeout_seconds,
        )

    def create_retention_service(self) -> RetentionService:
        return RetentionService(
            config=self.create_config(),
            sweeper=self.create_sweeper(),
            run_lock=self.create_run_lock(),
        )
