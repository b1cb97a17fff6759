"""Core components for the node data pruner."""

from node_pruner.core.classifier import classify
from node_pruner.core.errors import (
    ConfigurationError,
    DataPathMissingError,
    PrunerError,
    RunLockError,
)
from node_pruner.core.models import (
    ExclusionSet,
    PressureTier,
    RetentionPolicy,
    SweepReport,
    TreeStats,
)
from node_pruner.core.run_lock import RunLock

__all__ = [
    # Errors
    "PrunerError",
    "ConfigurationError",
    "DataPathMissingError",
    "RunLockError",
    # Models
    "RetentionPolicy",
    "PressureTier",
    "ExclusionSet",
    "SweepReport",
    "TreeStats",
    # Services
    "RunLock",
    "classify",
]
