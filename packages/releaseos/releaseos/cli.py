"""Command-line entry point: ``releaseos [options] TARGET [TARGET ...]``."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from buildos.core.errors import BuildOSError, ConfigurationError, ExternalToolError
from buildos.runtime.event_log import SQLiteEventLog
from releaseos.settings import CONFIG_ENV_VAR, SettingsManager, resolve_config_path
from releaseos.workflows.release import TARGETS, run_targets

logger = logging.getLogger(__name__)

# Exit status for failures that did not come from a delegated process.
EXIT_PIPELINE_ERROR = 2


def exit_status(exc: BaseException) -> int:
    """Exit status for a failed run: the first failing sub-process's own status if any.

    A child killed by signal N reports -N; that maps to 128 + N as in the shell.
    """
    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, ExternalToolError):
            if current.returncode < 0:
                return 128 - current.returncode
            return current.returncode or EXIT_PIPELINE_ERROR
        current = current.__cause__
    return EXIT_PIPELINE_ERROR


def build_parser() -> argparse.ArgumentParser:
    targets_help = "\n".join(f"  {name:<10} {text}" for name, text in TARGETS.items())
    parser = argparse.ArgumentParser(
        prog="releaseos",
        description="Build, test and publish the installer package.",
        epilog=f"targets:\n{targets_help}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("targets", nargs="*", metavar="TARGET",
                        help="Target(s) to bring up to date, in order")
    parser.add_argument("--root", default=".", help="Source tree root (default: current directory)")
    parser.add_argument("--config", default=None,
                        help="Settings file (default: $RELEASEOS_CONFIG, then <root>/release.json)")
    parser.add_argument("--destdir", default=None,
                        help="Install root for 'install' (default: $DESTDIR, then /)")
    parser.add_argument("--event-log", default=None,
                        help="SQLite file to record run events in (default: in memory)")
    parser.add_argument("--jobs", "-j", type=int, default=1,
                        help="Independent tasks to run in parallel")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--list", action="store_true", help="List targets and exit")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        for name, text in TARGETS.items():
            print(f"{name:<10} {text}")
        return 0
    if not args.targets:
        parser.error("no target given (use --list to see them)")
    unknown = [t for t in args.targets if t not in TARGETS]
    if unknown:
        parser.error(f"unknown target(s): {', '.join(unknown)}")
    if args.jobs < 1:
        parser.error("--jobs must be at least 1")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    root = Path(args.root).resolve()
    manager = SettingsManager(resolve_config_path(args.config, root))
    try:
        # A file named on the command line or in the environment must be valid.
        settings = manager.load(strict=bool(args.config or os.environ.get(CONFIG_ENV_VAR)))
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_PIPELINE_ERROR
    destdir = args.destdir or os.environ.get("DESTDIR") or "/"

    event_log = SQLiteEventLog(args.event_log or ":memory:")
    try:
        run_targets(
            settings,
            args.targets,
            root=root,
            destdir=destdir,
            event_log=event_log,
            max_parallel=args.jobs,
        )
    except BuildOSError as exc:
        status = exit_status(exc)
        logger.error("%s (exit status %d)", exc, status)
        return status
    finally:
        event_log.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
