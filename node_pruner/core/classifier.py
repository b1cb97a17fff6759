"""Disk-pressure classifier.

Maps the usage percentage of the volume holding the data directory to a
retention policy. Two independent threshold evaluations are made:

    usage >= | general retention | tier
    ---------+-------------------+----------
       90    |   60 min (1h)     | EMERGENCY
       80    |  360 min (6h)     | HIGH
       70    |  720 min (12h)    | MEDIUM
       60    | 1440 min (24h)    | NORMAL
     < 60    | 2160 min (36h)    | LOW

    usage >= | hot subdirectory retention
    ---------+---------------------------
       80    | 180 min (3h)
     < 80    | 360 min (6h)

Usage outside [0, 100] is clamped to the nearest band. An unknown usage
(``None`` or NaN) is classified as 0%, the LOW band, which deletes the least.
"""

from __future__ import annotations

import math

from node_pruner.core.models import PressureTier, RetentionPolicy

# Ordered from most to least severe; first match wins.
GENERAL_THRESHOLDS: tuple[tuple[int, int, PressureTier], ...] = (
    (90, 60, PressureTier.EMERGENCY),
    (80, 360, PressureTier.HIGH),
    (70, 720, PressureTier.MEDIUM),
    (60, 1440, PressureTier.NORMAL),
)
GENERAL_DEFAULT_MINUTES = 2160

HOT_SUBDIR_THRESHOLDS: tuple[tuple[int, int], ...] = ((80, 180),)
HOT_SUBDIR_DEFAULT_MINUTES = 360

TIER_DESCRIPTIONS = {
    PressureTier.EMERGENCY: "EMERGENCY MODE - pruning to 1 hour retention",
    PressureTier.HIGH: "HIGH USAGE - pruning to 6 hours retention",
    PressureTier.MEDIUM: "MEDIUM USAGE - pruning to 12 hours retention",
    PressureTier.NORMAL: "NORMAL USAGE - pruning to 24 hours retention",
    PressureTier.LOW: "LOW USAGE - keeping full 36 hours retention",
}


def _is_unknown(usage_percent: int | float | None) -> bool:
    return usage_percent is None or math.isnan(usage_percent)


def clamp_usage(usage_percent: int | float | None) -> int:
    """Coerce a usage reading into an integer percentage in [0, 100].

    Args:
        usage_percent: Raw usage reading, or None when it could not be read.

    Returns:
        The clamped percentage. None and NaN map to 0.
    """
    if usage_percent is None or math.isnan(usage_percent):
        return 0
    return int(max(0, min(100, usage_percent)))


def general_retention_for(usage_percent: int) -> tuple[int, PressureTier]:
    for threshold, minutes, tier in GENERAL_THRESHOLDS:
        if usage_percent >= threshold:
            return minutes, tier
    return GENERAL_DEFAULT_MINUTES, PressureTier.LOW


def hot_subdir_retention_for(usage_percent: int) -> int:
    for threshold, minutes in HOT_SUBDIR_THRESHOLDS:
        if usage_percent >= threshold:
            return minutes
    return HOT_SUBDIR_DEFAULT_MINUTES


def classify(usage_percent: int | float | None) -> RetentionPolicy:
    """Compute the retention policy for a disk usage percentage.

    Args:
        usage_percent: Current utilization of the data volume (0-100).
            Out-of-range values (including infinities) are clamped; None
            and NaN are treated as 0.

    Returns:
        RetentionPolicy with general and hot-subdirectory windows.

    Example:
        >>> classify(80).general_retention_minutes
        360
        >>> classify(80).hot_subdir_retention_minutes
        180
    """
    usage = clamp_usage(usage_percent)
    general_minutes, tier = general_retention_for(usage)
    return RetentionPolicy(
        general_retention_minutes=general_minutes,
        hot_subdir_retention_minutes=hot_subdir_retention_for(usage),
        tier=tier,
        usage_percent=None if _is_unknown(usage_percent) else usage,
    )


def describe(policy: RetentionPolicy) -> str:
    """Human-readable banner for a policy's tier."""
    return TIER_DESCRIPTIONS[policy.tier]
