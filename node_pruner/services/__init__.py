"""Service layer for the node data pruner."""

from node_pruner.services.retention import RetentionConfig, RetentionService, RetentionStatus
from node_pruner.services.sweeper import RetentionSweeper, sweep

__all__ = [
    "RetentionConfig",
    "RetentionService",
    "RetentionStatus",
    "RetentionSweeper",
    "sweep",
]
