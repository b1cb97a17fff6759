"""Retention sweeper.

Deletes regular files older than a retention window from the node's data
directory. One pass per run:

    sweep(root, policy, exclusions)
            │
            ▼
    measure_tree(root)                 ← size / file count before
            │
            ▼
    hot subdirectory pass              ← hot_subdir_retention_minutes
            │
            ▼
    general pass over root             ← general_retention_minutes,
            │                            prunes excluded subtrees and
            ▼                            the hot subdirectory
    measure_tree(root)                 ← size / file count after

Directories are never removed, only files inside them. Symlinks are
neither deleted nor followed. A file is deleted only when it is strictly
older than the window; per-entry failures are logged and skipped.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from node_pruner.core.errors import ConfigurationError, DataPathMissingError
from node_pruner.core.filesystem import allocated_bytes, format_bytes, measure_tree
from node_pruner.core.models import (
    DEFAULT_HOT_SUBDIR,
    ExclusionSet,
    RetentionPolicy,
    SweepReport,
)

logger = logging.getLogger(__name__)


def _count(value: int | None) -> str:
    return "unknown" if value is None else str(value)


def hot_subdir_parts(hot_subdir: str) -> tuple[str, ...]:
    """Split a hot subdirectory into path segments relative to the data root.

    Raises:
        ConfigurationError: If the path is absolute, empty, or contains
            ``..``, so it could name the root itself or a place outside it.
    """
    path = Path(hot_subdir)
    if path.is_absolute() or path.anchor:
        raise ConfigurationError(
            f"Hot subdirectory must be relative to the data root: {hot_subdir!r}"
        )
    parts = tuple(p for p in path.parts if p != ".")
    if not parts:
        raise ConfigurationError("Hot subdirectory must not be empty")
    if ".." in parts:
        raise ConfigurationError(f"Hot subdirectory must not contain '..': {hot_subdir!r}")
    return parts


@dataclass
class _PassResult:
    deleted: int = 0
    bytes_deleted: int = 0
    errors: int = 0
    cancelled: bool = False


class RetentionSweeper:
    """Age-based file sweeper for a single data directory.

    The sweeper holds no state between calls to ``sweep()``; running it
    twice over an unchanged tree deletes nothing the second time.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        dry_run: bool = False,
        stop_event: threading.Event | None = None,
        max_runtime_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the sweeper.

        Args:
            clock: Wall-clock source compared against file mtimes. Read once
                per file at the time it is checked.
            dry_run: Count and log eligible files without deleting them.
            stop_event: When set, the sweep stops before the next entry.
            max_runtime_seconds: Time budget for one sweep, after which it
                stops the same way as for ``stop_event``.
            monotonic: Clock used for the time budget.
        """
        self._clock = clock
        self._dry_run = dry_run
        self._stop_event = stop_event
        self._max_runtime = max_runtime_seconds
        self._monotonic = monotonic
        self._deadline: float | None = None

    def sweep(
        self,
        root: Path | str,
        policy: RetentionPolicy,
        exclusions: ExclusionSet,
        hot_subdir: str = DEFAULT_HOT_SUBDIR,
    ) -> SweepReport:
        """Run one retention pass over ``root``.

        Args:
            root: Data directory. Must exist.
            policy: Retention windows for this run.
            exclusions: Path-suffix patterns that are never swept.
            hot_subdir: Path, relative to root, pruned with the hot-subdirectory
                window and skipped by the general pass.

        Returns:
            SweepReport with before/after metrics and deletion counts.

        Raises:
            DataPathMissingError: If ``root`` is not an existing directory.
                Nothing is measured or deleted in that case.
            ConfigurationError: If ``hot_subdir`` is not a path below ``root``.
                Also raised before any measurement or deletion.
        """
        root = Path(root)
        if not root.is_dir():
            raise DataPathMissingError(root)
        hot_parts = hot_subdir_parts(hot_subdir)

        self._deadline = (
            self._monotonic() + self._max_runtime if self._max_runtime is not None else None
        )
        report = SweepReport(dry_run=self._dry_run)

        before = measure_tree(root)
        if before is not None:
            report.size_before = before.size_bytes
            report.file_count_before = before.file_count
        logger.info(
            f"Size before pruning: {format_bytes(report.size_before)} "
            f"with {_count(report.file_count_before)} files"
        )

        hot_path = root.joinpath(*hot_parts)
        if self._is_sweepable_dir(root, hot_parts, exclusions):
            logger.info(
                f"Pruning {hot_subdir}/ "
                f"({policy.hot_subdir_retention_minutes} minute retention)"
            )
            hot = self._prune(
                hot_path,
                hot_parts,
                policy.hot_subdir_retention_seconds,
                exclusions,
                skip_parts=None,
            )
            report.hot_files_deleted = hot.deleted
            report.bytes_deleted += hot.bytes_deleted
            report.errors += hot.errors
            report.cancelled = hot.cancelled

        if not report.cancelled:
            general = self._prune(
                root,
                (),
                policy.general_retention_seconds,
                exclusions,
                skip_parts=hot_parts,
            )
            report.general_files_deleted = general.deleted
            report.bytes_deleted += general.bytes_deleted
            report.errors += general.errors
            report.cancelled = general.cancelled

        if report.cancelled:
            logger.warning("Sweep stopped before completion; partial progress kept")

        after = measure_tree(root)
        if after is not None:
            report.size_after = after.size_bytes
            report.file_count_after = after.file_count
        logger.info(
            f"Size after pruning: {format_bytes(report.size_after)} "
            f"with {_count(report.file_count_after)} files"
        )

        return report

    def _should_stop(self) -> bool:
        if self._stop_event is not None and self._stop_event.is_set():
            return True
        return self._deadline is not None and self._monotonic() >= self._deadline

    @staticmethod
    def _is_sweepable_dir(
        root: Path, rel_parts: tuple[str, ...], exclusions: ExclusionSet
    ) -> bool:
        """Check that every component of root/rel_parts is a real, non-excluded directory."""
        for i in range(1, len(rel_parts) + 1):
            prefix = rel_parts[:i]
            if exclusions.matches(prefix):
                return False
            path = root.joinpath(*prefix)
            if path.is_symlink() or not path.is_dir():
                return False
        return True

    def _prune(
        self,
        start: Path,
        start_parts: tuple[str, ...],
        max_age_seconds: int,
        exclusions: ExclusionSet,
        skip_parts: tuple[str, ...] | None,
    ) -> _PassResult:
        """Delete files older than ``max_age_seconds`` below ``start``.

        ``start`` itself is never deleted. Excluded entries and the
        ``skip_parts`` path are pruned from the walk entirely.
        """
        result = _PassResult()
        pending: list[tuple[str, tuple[str, ...]]] = [(str(start), start_parts)]

        while pending:
            dir_path, dir_parts = pending.pop()
            try:
                with os.scandir(dir_path) as it:
                    entries = list(it)
            except FileNotFoundError:
                logger.debug(f"Directory vanished before listing: {dir_path}")
                continue
            except OSError as e:
                logger.warning(f"Cannot list {dir_path}: {e}")
                result.errors += 1
                continue

            for entry in entries:
                if self._should_stop():
                    result.cancelled = True
                    return result

                rel_parts = dir_parts + (entry.name,)
                if exclusions.matches(rel_parts) or rel_parts == skip_parts:
                    continue

                try:
                    if entry.is_symlink():
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        pending.append((entry.path, rel_parts))
                        continue
                    if not entry.is_file(follow_symlinks=False):
                        continue
                except OSError as e:
                    logger.debug(f"Skipping {entry.path}: {e}")
                    continue

                self._delete_if_expired(entry, max_age_seconds, result)

        return result

    def _delete_if_expired(
        self, entry: os.DirEntry[str], max_age_seconds: int, result: _PassResult
    ) -> None:
        try:
            st = entry.stat(follow_symlinks=False)
        except FileNotFoundError:
            logger.debug(f"File vanished before check: {entry.path}")
            return
        except OSError as e:
            logger.warning(f"Cannot stat {entry.path}: {e}")
            result.errors += 1
            return

        age = self._clock() - st.st_mtime
        if age <= max_age_seconds:
            return

        if self._dry_run:
            logger.debug(f"Would delete {entry.path} (age {age / 60:.1f} min)")
        else:
            try:
                os.unlink(entry.path)
            except FileNotFoundError:
                logger.debug(f"File vanished before delete: {entry.path}")
                return
            except OSError as e:
                logger.warning(f"Cannot delete {entry.path}: {e}")
                result.errors += 1
                return

        result.deleted += 1
        result.bytes_deleted += allocated_bytes(st)


def sweep(
    root: Path | str,
    policy: RetentionPolicy,
    exclusions: ExclusionSet,
    hot_subdir: str = DEFAULT_HOT_SUBDIR,
    **kwargs: object,
) -> SweepReport:
    """Run one sweep with a default-configured RetentionSweeper.

    Keyword arguments are passed to ``RetentionSweeper``.
    """
    return RetentionSweeper(**kwargs).sweep(  # type: ignore[arg-type]
        root, policy, exclusions, hot_subdir=hot_subdir
    )
