"""Tests for the disk-pressure classifier."""

from __future__ import annotations

import math

import pytest

from node_pruner.core.classifier import (
    GENERAL_DEFAULT_MINUTES,
    HOT_SUBDIR_DEFAULT_MINUTES,
    clamp_usage,
    classify,
    describe,
)
from node_pruner.core.models import PressureTier


@pytest.mark.unit
class TestGeneralBands:
    """General retention by usage band."""

    @pytest.mark.parametrize("usage", range(90, 101))
    def test_emergency_band(self, usage: int) -> None:
        policy = classify(usage)
        assert policy.general_retention_minutes == 60
        assert policy.tier == PressureTier.EMERGENCY

    @pytest.mark.parametrize("usage", range(0, 60))
    def test_low_band(self, usage: int) -> None:
        policy = classify(usage)
        assert policy.general_retention_minutes == 2160
        assert policy.hot_subdir_retention_minutes == 360
        assert policy.tier == PressureTier.LOW

    @pytest.mark.parametrize(
        "usage,minutes,tier",
        [
            (89, 360, PressureTier.HIGH),
            (80, 360, PressureTier.HIGH),
            (79, 720, PressureTier.MEDIUM),
            (70, 720, PressureTier.MEDIUM),
            (69, 1440, PressureTier.NORMAL),
            (60, 1440, PressureTier.NORMAL),
            (59, 2160, PressureTier.LOW),
        ],
    )
    def test_band_edges(self, usage: int, minutes: int, tier: PressureTier) -> None:
        policy = classify(usage)
        assert policy.general_retention_minutes == minutes
        assert policy.tier == tier


@pytest.mark.unit
class TestHotSubdirRetention:
    """Hot subdirectory retention is its own threshold, not part of the band table."""

    def test_boundary_at_80(self) -> None:
        policy = classify(80)
        assert policy.general_retention_minutes == 360
        assert policy.hot_subdir_retention_minutes == 180

    def test_boundary_at_79(self) -> None:
        policy = classify(79)
        assert policy.general_retention_minutes == 720
        assert policy.hot_subdir_retention_minutes == 360

    def test_emergency_band_keeps_180(self) -> None:
        """Above 90% the general window drops to 60 but hot stays at 180."""
        policy = classify(95)
        assert policy.general_retention_minutes == 60
        assert policy.hot_subdir_retention_minutes == 180

    @pytest.mark.parametrize("usage", [0, 42, 60, 70, 79])
    def test_below_80_is_default(self, usage: int) -> None:
        assert classify(usage).hot_subdir_retention_minutes == HOT_SUBDIR_DEFAULT_MINUTES


@pytest.mark.unit
class TestOutOfRange:
    """Malformed readings are clamped rather than raising."""

    @pytest.mark.parametrize("usage", [101, 150, 10_000])
    def test_above_100_is_emergency(self, usage: int) -> None:
        policy = classify(usage)
        assert policy.tier == PressureTier.EMERGENCY
        assert policy.usage_percent == 100

    @pytest.mark.parametrize("usage", [-1, -50])
    def test_negative_is_low(self, usage: int) -> None:
        policy = classify(usage)
        assert policy.general_retention_minutes == GENERAL_DEFAULT_MINUTES
        assert policy.usage_percent == 0

    def test_unknown_usage_is_most_conservative(self) -> None:
        policy = classify(None)
        assert policy.tier == PressureTier.LOW
        assert policy.general_retention_minutes == 2160
        assert policy.usage_percent is None

    def test_float_is_truncated(self) -> None:
        assert clamp_usage(89.9) == 89
        assert classify(89.9).tier == PressureTier.HIGH

    @pytest.mark.parametrize(
        "usage,tier,reported",
        [
            (math.inf, PressureTier.EMERGENCY, 100),
            (-math.inf, PressureTier.LOW, 0),
            (math.nan, PressureTier.LOW, None),
        ],
    )
    def test_non_finite_readings(
        self, usage: float, tier: PressureTier, reported: int | None
    ) -> None:
        policy = classify(usage)
        assert policy.tier == tier
        assert policy.usage_percent == reported


@pytest.mark.unit
class TestDescribe:
    def test_each_tier_has_banner(self) -> None:
        assert "EMERGENCY" in describe(classify(99))
        assert "1 hour" in describe(classify(99))
        assert "36 hours" in describe(classify(10))

    def test_policy_seconds(self) -> None:
        policy = classify(85)
        assert policy.general_retention_seconds == 360 * 60
        assert policy.hot_subdir_retention_seconds == 180 * 60
