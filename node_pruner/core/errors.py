"""Custom exceptions for the node data pruner."""

from pathlib import Path


class PrunerError(Exception):
    """Base exception for all pruner errors."""

    pass


class ConfigurationError(PrunerError):
    """Raised when configuration is invalid."""

    pass


class DataPathMissingError(ConfigurationError):
    """Raised when the root data directory does not exist.

    This is the only fatal condition of a run: nothing is measured or
    deleted once it is raised.
    """

    def __init__(self, data_path: str | Path) -> None:
        self.data_path = Path(data_path)
        super().__init__(f"Data directory {self.data_path} does not exist")


# =============================================================================
# Cross-Process Locking Error
# =============================================================================


class RunLockError(PrunerError):
    """Raised when another run already holds the run-lock."""

    def __init__(
        self,
        lock_path: str | Path,
        timeout: float,
        message: str | None = None,
    ) -> None:
        self.lock_path = str(lock_path)
        self.timeout = timeout
        self.message = message or (
            f"Failed to acquire run lock at {self.lock_path} after {timeout}s"
        )
        super().__init__(self.message)
