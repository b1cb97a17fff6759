"""Node Data Pruner - disk-pressure aware retention for a node data directory."""

__version__ = "0.1.0"

# Re-export core components for convenience
from node_pruner.config import Settings, get_settings
from node_pruner.core import (
    ConfigurationError,
    DataPathMissingError,
    ExclusionSet,
    PressureTier,
    PrunerError,
    RetentionPolicy,
    RunLockError,
    SweepReport,
    classify,
)
from node_pruner.services.retention import RetentionConfig, RetentionService
from node_pruner.services.sweeper import RetentionSweeper, sweep

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
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
    # Operations
    "classify",
    "sweep",
    "RetentionSweeper",
    "RetentionConfig",
    "RetentionService",
]
