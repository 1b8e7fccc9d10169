# src/main.py — v2
"""CLI entry point — restore and state commands.

Usage:
    tiercache restore [-v]
    tiercache state

Inputs are read from INPUT_* environment variables, as set by the runner
for an action step.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys

from tiercache.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="tiercache",
        description=f"tiercache v{__version__} — tiered build-cache restore",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- restore ---
    p_restore = subparsers.add_parser(
        "restore", help="Restore the cache for the configured key",
    )
    p_restore.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    p_restore.set_defaults(func=_cmd_restore)

    # --- state ---
    p_state = subparsers.add_parser(
        "state", help="Show the non-secret state saved for the save step",
    )
    p_state.set_defaults(func=_cmd_state)

    return parser


def _cmd_restore(args: argparse.Namespace) -> int:
    """Execute the restore step."""
    from tiercache.config.settings import load_runner_environment
    from tiercache.logging.logger import setup_logging
    from tiercache.restore.action import run_restore

    env = load_runner_environment()
    level = "DEBUG" if args.verbose or env.debug_enabled else "INFO"
    setup_logging(level=level, log_format=_log_format_hint())
    return asyncio.run(run_restore(env=env))


def _cmd_state(args: argparse.Namespace) -> int:
    """Print the saved primary and matched keys."""
    from tiercache.runtime.state import read_saved_state

    state = read_saved_state()
    print(json.dumps(state.model_dump(include={"primary_key", "matched_key"}), indent=2))
    return 0


def _log_format_hint() -> str:
    """Log format input, read before full settings validation."""
    value = os.environ.get("INPUT_LOG-FORMAT", "").strip().lower()
    return value if value in ("actions", "json", "text") else "actions"


if __name__ == "__main__":
    sys.exit(main())
