"""Filesystem measurement utilities.

Disk usage of the data volume, recursive size and file counts of the data
tree (the ``df`` / ``du -s`` / ``find -type f | wc -l`` figures reported by
each run), and detection of network filesystems where the run-lock file
may not be reliable.

All measurement here is diagnostic. Failures are logged and reported as
``None`` rather than raised.
"""

from __future__ import annotations

import logging
import math
import os
import shutil
import stat
from enum import Enum
from pathlib import Path

from node_pruner.core.models import TreeStats

logger = logging.getLogger(__name__)

_UNITS = ("B", "K", "M", "G", "T", "P")


def disk_usage_percent(path: Path) -> int | None:
    """Get the used percentage of the filesystem containing ``path``.

    Computed like ``df``'s Use% column: used / (used + available), rounded
    up, so blocks reserved for root do not hide pressure.

    Args:
        path: Any path on the volume to check.

    Returns:
        Integer percentage, or None if the query failed.
    """
    try:
        usage = shutil.disk_usage(path)
    except OSError as e:
        logger.warning(f"Disk usage query failed for {path}: {e}")
        return None

    denominator = usage.used + usage.free
    if denominator <= 0:
        return None
    return math.ceil(usage.used * 100 / denominator)


def allocated_bytes(st: os.stat_result) -> int:
    blocks = getattr(st, "st_blocks", None)
    if blocks is None:
        return st.st_size
    return blocks * 512


def measure_tree(root: Path) -> TreeStats | None:
    """Measure allocated size and regular-file count of a directory tree.

    Symlinks are counted for their own size but never followed. Entries
    that vanish or cannot be read during the walk are skipped.

    Args:
        root: Directory to measure.

    Returns:
        TreeStats, or None if the root itself could not be read.
    """
    try:
        size = allocated_bytes(os.stat(root))
        root_entries = list(os.scandir(root))
    except OSError as e:
        logger.warning(f"Could not measure {root}: {e}")
        return None

    files = 0
    pending = [root_entries]
    while pending:
        for entry in pending.pop():
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            size += allocated_bytes(st)
            if stat.S_ISREG(st.st_mode):
                files += 1
            elif stat.S_ISDIR(st.st_mode):
                try:
                    pending.append(list(os.scandir(entry.path)))
                except OSError as e:
                    logger.debug(f"Skipping unreadable directory {entry.path}: {e}")
    return TreeStats(size_bytes=size, file_count=files)


def format_bytes(num_bytes: int | None) -> str:
    """Format a byte count the way ``du -h`` does (e.g. ``1.5G``).

    Returns ``"unknown"`` for None.
    """
    if num_bytes is None:
        return "unknown"
    value = float(num_bytes)
    for unit in _UNITS:
        if abs(value) < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)}B"
            return f"{value:.1f}{unit}"
        value /= 1024
    return f"{num_bytes}B"


# =============================================================================
# Network filesystem detection (run-lock reliability)
# =============================================================================


class FilesystemType(Enum):
    """Types of filesystems that can be detected."""

    LOCAL = "local"
    NFS = "nfs"
    SMB = "smb"
    CIFS = "cifs"
    NETWORK_UNKNOWN = "network_unknown"
    UNKNOWN = "unknown"


_NETWORK_FS_TYPES = {
    "nfs": FilesystemType.NFS,
    "nfs4": FilesystemType.NFS,
    "cifs": FilesystemType.CIFS,
    "smb3": FilesystemType.SMB,
    "smbfs": FilesystemType.SMB,
    "fuse.sshfs": FilesystemType.NETWORK_UNKNOWN,
}

NETWORK_FILESYSTEM_TYPES = frozenset(_NETWORK_FS_TYPES.values())


def detect_filesystem_type(path: Path, mounts_file: Path = Path("/proc/mounts")) -> FilesystemType:
    """Detect the filesystem type of ``path`` from the mount table.

    Picks the longest mount point that is a prefix of the resolved path.

    Args:
        path: Path to check.
        mounts_file: Mount table to read (Linux ``/proc/mounts`` format).

    Returns:
        The detected type, LOCAL for anything not known to be networked,
        or UNKNOWN when the mount table cannot be read.
    """
    try:
        resolved = path.resolve()
        lines = mounts_file.read_text().splitlines()
    except OSError as e:
        logger.debug(f"Filesystem detection failed for {path}: {e}")
        return FilesystemType.UNKNOWN

    best_mount = ""
    best_type = ""
    for line in lines:
        parts = line.split()
        if len(parts) < 3:
            continue
        mount_point, fs_type = parts[1], parts[2].lower()
        if resolved == Path(mount_point) or Path(mount_point) in resolved.parents:
            if len(mount_point) > len(best_mount):
                best_mount, best_type = mount_point, fs_type

    return _NETWORK_FS_TYPES.get(best_type, FilesystemType.LOCAL)


def get_filesystem_warning_message(fs_type: FilesystemType, path: Path) -> str:
    """Generate a warning message for a run-lock on a network filesystem."""
    return (
        f"WARNING: Run-lock path appears to be on a network filesystem ({fs_type.value}). "
        f"Path: {path}\n"
        f"File-based locking does not work reliably on network filesystems, so "
        f"overlapping runs may not be excluded. "
        f"To suppress this warning, set NODE_PRUNER_ACKNOWLEDGE_NETWORK_FS_RISK=true "
        f"or use a local lock path."
    )
