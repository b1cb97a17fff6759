"""Retention service: one complete pruning run.

Ties the disk-pressure classifier to the sweeper:

    check data path ─► run-lock ─► disk usage % ─► classify() ─► sweep() ─► summary

Each call to ``run_once()`` is independent. Nothing is kept between runs
apart from the filesystem itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from node_pruner.core.classifier import classify, describe
from node_pruner.core.errors import DataPathMissingError
from node_pruner.core.filesystem import disk_usage_percent, format_bytes, measure_tree
from node_pruner.core.logging import run_context
from node_pruner.core.models import (
    DEFAULT_HOT_SUBDIR,
    ExclusionSet,
    RetentionPolicy,
    SweepReport,
    TreeStats,
)
from node_pruner.core.run_lock import RunLock
from node_pruner.services.sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


@dataclass
class RetentionConfig:
    """Static configuration for retention runs.

    Attributes:
        data_path: Root data directory.
        exclusions: Path-suffix patterns that are never swept.
        hot_subdir: Relative path of the high-churn subdirectory.
    """

    data_path: Path
    exclusions: ExclusionSet = field(default_factory=ExclusionSet)
    hot_subdir: str = DEFAULT_HOT_SUBDIR


@dataclass
class RetentionStatus:
    """Read-only view of what a run would do right now."""

    data_path: Path
    usage_percent: int | None
    policy: RetentionPolicy
    tree: TreeStats | None


class RetentionService:
    """Runs the classify-then-sweep cycle against one data directory."""

    def __init__(
        self,
        config: RetentionConfig,
        sweeper: RetentionSweeper | None = None,
        run_lock: RunLock | None = None,
        usage_probe: Callable[[Path], int | None] | None = None,
    ) -> None:
        """Initialize the retention service.

        Args:
            config: Data path, exclusions and hot subdirectory.
            sweeper: Sweeper to run. Defaults to a plain RetentionSweeper.
            run_lock: Lock held for the duration of a run. None disables it.
            usage_probe: Returns the used percentage of a path's volume.
                Defaults to disk_usage_percent.
        """
        self._config = config
        self._sweeper = sweeper or RetentionSweeper()
        self._run_lock = run_lock
        self._usage_probe = usage_probe or disk_usage_percent

    @property
    def config(self) -> RetentionConfig:
        return self._config

    def _require_data_path(self) -> Path:
        data_path = self._config.data_path
        if not data_path.is_dir():
            logger.error(f"Error: Data directory {data_path} does not exist.")
            raise DataPathMissingError(data_path)
        return data_path

    def current_policy(self) -> RetentionPolicy:
        """Classify the current disk usage of the data volume.

        Raises:
            DataPathMissingError: If the data directory does not exist.
        """
        data_path = self._require_data_path()
        usage = self._usage_probe(data_path)
        if usage is None:
            logger.warning("Current disk usage: unknown (using lowest-pressure policy)")
        else:
            logger.info(f"Current disk usage: {usage}%")
        policy = classify(usage)
        logger.info(f"{describe(policy)} (disk usage {_percent(usage)})")
        return policy

    def status(self) -> RetentionStatus:
        """Report usage, policy and tree size without deleting anything."""
        data_path = self._require_data_path()
        usage = self._usage_probe(data_path)
        return RetentionStatus(
            data_path=data_path,
            usage_percent=usage,
            policy=classify(usage),
            tree=measure_tree(data_path),
        )

    def run_once(self) -> SweepReport:
        """Execute one pruning run.

        Returns:
            The sweep report, with disk usage after pruning filled in.

        Raises:
            DataPathMissingError: If the data directory does not exist.
                Nothing is deleted.
            RunLockError: If another run holds the run-lock.
        """
        with run_context(self._config.data_path):
            logger.info("Prune run started")
            data_path = self._require_data_path()

            if self._run_lock is None:
                return self._run_locked(data_path)
            with self._run_lock:
                return self._run_locked(data_path)

    def _run_locked(self, data_path: Path) -> SweepReport:
        policy = self.current_policy()

        logger.info("Starting pruning process")
        report = self._sweeper.sweep(
            data_path,
            policy,
            self._config.exclusions,
            hot_subdir=self._config.hot_subdir,
        )

        report.disk_usage_after = self._usage_probe(data_path)
        logger.info(f"Disk usage after pruning: {_percent(report.disk_usage_after)}")

        verb = "Would remove" if report.dry_run else "Removed"
        logger.info(
            f"{verb} {report.files_deleted} files "
            f"({report.hot_files_deleted} from {self._config.hot_subdir}, "
            f"{report.general_files_deleted} elsewhere), "
            f"{format_bytes(report.bytes_deleted)} freed, {report.errors} errors"
        )
        removed = report.files_removed
        logger.info(
            f"Pruning completed. Reduced from {format_bytes(report.size_before)} "
            f"to {format_bytes(report.size_after)} "
            f"({'unknown' if removed is None else removed} files removed)."
        )
        return report


def _percent(value: int | None) -> str:
    return "unknown" if value is None else f"{value}%"
