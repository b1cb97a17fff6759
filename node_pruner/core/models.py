"""Data models for the node data pruner."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum


DEFAULT_HOT_SUBDIR = "node_order_statuses_by_block/hourly"


class PressureTier(str, Enum):
    """Disk-pressure band selected from the current usage percentage."""

    EMERGENCY = "emergency"  # >= 90%
    HIGH = "high"  # >= 80%
    MEDIUM = "medium"  # >= 70%
    NORMAL = "normal"  # >= 60%
    LOW = "low"  # < 60%


@dataclass(frozen=True)
class RetentionPolicy:
    """Retention windows for one run, in minutes.

    Attributes:
        general_retention_minutes: Maximum age for files in the general sweep.
        hot_subdir_retention_minutes: Maximum age for files in the hot subdirectory.
        tier: Band the general retention was selected from.
        usage_percent: Usage percentage the policy was computed for, if known.
    """

    general_retention_minutes: int
    hot_subdir_retention_minutes: int
    tier: PressureTier = PressureTier.LOW
    usage_percent: int | None = None

    @property
    def general_retention_seconds(self) -> int:
        return self.general_retention_minutes * 60

    @property
    def hot_subdir_retention_seconds(self) -> int:
        return self.hot_subdir_retention_minutes * 60


def _split_pattern(pattern: str) -> tuple[str, ...]:
    return tuple(part for part in pattern.replace("\\", "/").split("/") if part)


@dataclass(frozen=True)
class ExclusionSet:
    """Ordered, immutable set of path-suffix patterns that are never swept.

    A pattern is one or more path segments. An entry matches when the
    trailing segments of its path relative to the data root equal the
    pattern, so ``"visor_child_stderr"`` matches a directory of that name
    at any depth, the same way ``find -path "*/visor_child_stderr"`` does.
    """

    patterns: tuple[tuple[str, ...], ...] = ()

    @classmethod
    def from_names(cls, names: Iterable[str]) -> ExclusionSet:
        seen: list[tuple[str, ...]] = []
        for name in names:
            parts = _split_pattern(name)
            if parts and parts not in seen:
                seen.append(parts)
        return cls(patterns=tuple(seen))

    def matches(self, relative_parts: Sequence[str]) -> bool:
        """Check whether a path (given as segments relative to root) is excluded."""
        for pattern in self.patterns:
            n = len(pattern)
            if n <= len(relative_parts) and tuple(relative_parts[-n:]) == pattern:
                return True
        return False

    def names(self) -> list[str]:
        return ["/".join(p) for p in self.patterns]

    def __len__(self) -> int:
        return len(self.patterns)


@dataclass(frozen=True)
class TreeStats:
    """Size and regular-file count of a directory tree."""

    size_bytes: int
    file_count: int


@dataclass
class SweepReport:
    """Observational output of one sweep.

    Before/after values are ``None`` when they could not be measured.
    They are best-effort under concurrent writers and never drive deletion.
    """

    size_before: int | None = None
    size_after: int | None = None
    file_count_before: int | None = None
    file_count_after: int | None = None
    hot_files_deleted: int = 0
    general_files_deleted: int = 0
    bytes_deleted: int = 0
    errors: int = 0
    cancelled: bool = False
    dry_run: bool = False
    disk_usage_after: int | None = None

    @property
    def files_deleted(self) -> int:
        return self.hot_files_deleted + self.general_files_deleted

    @property
    def files_removed(self) -> int | None:
        """Difference in file count between the before and after snapshots."""
        if self.file_count_before is None or self.file_count_after is None:
            return None
        return self.file_count_before - self.file_count_after

    @property
    def size_reduction(self) -> int | None:
        if self.size_before is None or self.size_after is None:
            return None
        return self.size_before - self.size_after
