"""Entry point for the node data pruner CLI."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, NoReturn

from pydantic import ValidationError

logger = logging.getLogger(__name__)


def _load_settings(args: argparse.Namespace) -> Any:
    """Build Settings from the environment plus any CLI overrides."""
    from node_pruner.config import Settings, override_settings

    overrides: dict[str, Any] = {}
    if getattr(args, "data_path", None):
        overrides["data_path"] = Path(args.data_path)
    if getattr(args, "exclude", None):
        overrides["exclusions"] = args.exclude
    if getattr(args, "dry_run", False):
        overrides["dry_run"] = True
    if getattr(args, "max_runtime", None) is not None:
        overrides["max_runtime_seconds"] = args.max_runtime
    if getattr(args, "interval", None) is not None:
        overrides["interval_seconds"] = args.interval
    if getattr(args, "verbose", False):
        overrides["log_level"] = "DEBUG"

    settings = Settings(**overrides)
    override_settings(settings)
    return settings


def _setup(args: argparse.Namespace) -> Any:
    from node_pruner.core.logging import configure_logging

    settings = _load_settings(args)
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        log_file=settings.log_file,
    )
    return settings


def run_prune(args: argparse.Namespace, stop_event: threading.Event | None = None) -> int:
    """Run a single pruning pass.

    Args:
        args: Parsed command line arguments.
        stop_event: Optional signal to stop the sweep early.

    Returns:
        Exit code (1 only when the data directory or configuration is invalid).
    """
    from node_pruner.core.errors import ConfigurationError, RunLockError
    from node_pruner.factory import ServiceFactory

    try:
        settings = _setup(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    service = ServiceFactory(settings, stop_event=stop_event).create_retention_service()
    try:
        service.run_once()
    except ConfigurationError as e:
        logger.error(f"Prune aborted: {e}")
        return 1
    except RunLockError as e:
        logger.warning(f"Prune skipped: {e}")
    return 0


def run_classify(args: argparse.Namespace) -> int:
    """Print the retention policy for a usage percentage."""
    from node_pruner.core.classifier import classify, describe

    policy = classify(args.percent)
    print(f"Usage:              {policy.usage_percent}%")
    print(f"Tier:               {policy.tier.value} ({describe(policy)})")
    print(f"General retention:  {policy.general_retention_minutes} minutes")
    print(f"Hot retention:      {policy.hot_subdir_retention_minutes} minutes")
    return 0


def run_status(args: argparse.Namespace) -> int:
    """Show what a run would do right now without deleting anything."""
    from node_pruner.core.errors import ConfigurationError
    from node_pruner.core.filesystem import format_bytes
    from node_pruner.factory import ServiceFactory

    try:
        settings = _setup(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    factory = ServiceFactory(settings)
    config = factory.create_config()
    service = factory.create_retention_service()
    try:
        status = service.status()
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    usage = "unknown" if status.usage_percent is None else f"{status.usage_percent}%"
    print(f"Data path:          {status.data_path}")
    print(f"Disk usage:         {usage}")
    print(f"Tier:               {status.policy.tier.value}")
    print(f"General retention:  {status.policy.general_retention_minutes} minutes")
    print(f"Hot retention:      {status.policy.hot_subdir_retention_minutes} minutes")
    print(f"Hot subdirectory:   {config.hot_subdir}")
    print(f"Exclusions:         {', '.join(config.exclusions.names()) or '(none)'}")
    if status.tree is None:
        print("Tree size:          unknown")
    else:
        print(f"Tree size:          {format_bytes(status.tree.size_bytes)}")
        print(f"Files:              {status.tree.file_count}")
    return 0


def run_watch(args: argparse.Namespace, shutdown: threading.Event | None = None) -> int:
    """Run pruning passes on a fixed interval until interrupted.

    Args:
        args: Parsed command line arguments.
        shutdown: Event that ends the loop. SIGINT and SIGTERM set it.

    Returns:
        Exit code (1 only when the configuration is invalid).
    """
    from node_pruner.core.errors import ConfigurationError, RunLockError
    from node_pruner.factory import ServiceFactory

    try:
        settings = _setup(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    stop = shutdown if shutdown is not None else threading.Event()

    def _handle_signal(signum: int, _frame: Any) -> None:
        logger.info(f"Received signal {signum}, stopping after current entry")
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    service = ServiceFactory(settings, stop_event=stop).create_retention_service()
    logger.info(f"Watching {settings.data_path} every {settings.interval_seconds:g}s")
    while not stop.is_set():
        try:
            service.run_once()
        except ConfigurationError as e:
            logger.error(f"Prune aborted: {e}")
        except RunLockError as e:
            logger.warning(f"Prune skipped: {e}")
        stop.wait(settings.interval_seconds)

    logger.info("Watch stopped")
    return 0


def run_version() -> None:
    """Print version information."""
    from node_pruner import __version__

    print(f"node-pruner {__version__}")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data-path",
        default=None,
        help="Root data directory (default: NODE_PRUNER_DATA_PATH or /home/hluser/hl/data)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="NAME",
        help="Directory name to never prune (repeatable, replaces the configured list)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )


def _add_sweep_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log what would be deleted without deleting anything",
    )
    parser.add_argument(
        "--max-runtime",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Stop the sweep cleanly after this many seconds",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="node-pruner",
        description="Disk-pressure aware retention pruning for a node data directory",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
    )

    run_parser = subparsers.add_parser(
        "run",
        help="Run one pruning pass (default)",
        description=(
            "Measures disk usage, selects a retention window and deletes files "
            "older than it. Exits non-zero only if the data directory is missing."
        ),
    )
    _add_common_arguments(run_parser)
    _add_sweep_arguments(run_parser)

    classify_parser = subparsers.add_parser(
        "classify",
        help="Show the retention policy for a disk usage percentage",
    )
    classify_parser.add_argument(
        "percent",
        type=int,
        help="Disk usage percentage (values outside 0-100 are clamped)",
    )

    status_parser = subparsers.add_parser(
        "status",
        help="Show current disk usage, policy and data size without deleting",
    )
    _add_common_arguments(status_parser)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Run pruning passes on a fixed interval until interrupted",
    )
    _add_common_arguments(watch_parser)
    _add_sweep_arguments(watch_parser)
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Seconds between runs (default: NODE_PRUNER_INTERVAL_SECONDS or 300)",
    )

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point with subcommand support."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        run_version()
        sys.exit(0)

    if args.command == "classify":
        sys.exit(run_classify(args))
    elif args.command == "status":
        sys.exit(run_status(args))
    elif args.command == "watch":
        sys.exit(run_watch(args))
    elif args.command == "run" or args.command is None:
        sys.exit(run_prune(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
