"""Configuration system for the node data pruner."""

import json
import tempfile
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from node_pruner.core.models import DEFAULT_HOT_SUBDIR


class Settings(BaseSettings):
    """Node Data Pruner Configuration."""

    # Storage
    data_path: Path = Field(
        default=Path("/home/hluser/hl/data"),
        description=(
            "Absolute path of the root data directory written by the node "
            "(defaults to the standard node deployment location)"
        ),
    )
    exclusions: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["visor_child_stderr"],
        description="Directory names (or path suffixes) that are never pruned",
    )
    hot_subdir: str = Field(
        default=DEFAULT_HOT_SUBDIR,
        description="Relative path of the high-churn subdirectory with its own retention",
    )

    # Run control
    dry_run: bool = Field(
        default=False,
        description="Log what would be deleted without deleting anything",
    )
    max_runtime_seconds: float | None = Field(
        default=None,
        gt=0.0,
        description="Stop the sweep cleanly once this many seconds have elapsed",
    )
    interval_seconds: float = Field(
        default=300.0,
        ge=1.0,
        description="Seconds between runs in watch mode",
    )

    # Run lock
    run_lock_enabled: bool = Field(
        default=True,
        description="Prevent overlapping runs with a cross-process file lock",
    )
    lock_path: Path = Field(
        default=Path(tempfile.gettempdir()) / "node-pruner.lock",
        description="Run-lock file (must be outside the data directory)",
    )
    lock_timeout_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds to wait for an overlapping run before skipping",
    )
    acknowledge_network_fs_risk: bool = Field(
        default=False,
        description="Suppress the warning for a run-lock on a network filesystem",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit one JSON object per log line",
    )
    log_file: Path | None = Field(
        default=None,
        description="Append log lines to this file as well as stderr",
    )

    model_config = {
        "env_prefix": "NODE_PRUNER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("data_path")
    @classmethod
    def _validate_data_path(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"data_path must be an absolute path, got {value}")
        return value

    @field_validator("exclusions", mode="before")
    @classmethod
    def _split_exclusions(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return stripped.split(",")
        return value

    @field_validator("exclusions")
    @classmethod
    def _normalize_exclusions(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for name in value:
            name = name.strip().strip("/")
            if name and name not in normalized:
                normalized.append(name)
        return normalized

    @field_validator("hot_subdir")
    @classmethod
    def _validate_hot_subdir(cls, value: str) -> str:
        value = value.strip().strip("/")
        if not value:
            raise ValueError("hot_subdir must not be empty")
        if ".." in Path(value).parts:
            raise ValueError("hot_subdir must not contain '..'")
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value


# Settings singleton with dependency injection support
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the settings instance (lazy-loaded singleton).

    Returns:
        The Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def override_settings(new_settings: Settings) -> None:
    """Override the settings instance (for testing and CLI flags).

    Args:
        new_settings: The new Settings instance to use.
    """
    global _settings
    _settings = new_settings


def reset_settings() -> None:
    """Reset settings to None (forces reload on next get_settings call)."""
    global _settings
    _settings = None
