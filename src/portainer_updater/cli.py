"""Portainer Updater CLI entry point.

Usage:
    portainer-updater               Update if a newer image is published
    portainer-updater --force       Replace the container even if up to date
    portainer-updater --verbose     Show debug logging
    portainer-updater --version     Show version

Set CONFIG_PATH to use a settings file other than ./portainer-upd.conf.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Optional

from portainer_updater import __version__
from portainer_updater.context import ExecutionContext
from portainer_updater.plugin import CANCELLED_EXIT_CODE, ResultStatus, ToolParam, ToolPlugin
from portainer_updater.utils.console import (
    print_error,
    print_header,
    print_info,
    print_run_details,
    print_success,
    print_warning,
)

logger = logging.getLogger(__name__)

# Map ToolParam.type strings to Python types for argparse
TYPE_MAP: dict[str, type] = {
    "str": str,
    "int": int,
    "bool": bool,
    "path": Path,
}

# Result data shown after a run, as (label, key)
RESULT_DETAILS: tuple[tuple[str, str], ...] = (
    ("Container", "container"),
    ("Remote digest", "remote_digest"),
    ("Local digest", "local_digest"),
    ("Stopped for ports", "stopped_conflicts"),
    ("Backup", "backup"),
    ("Version", "version"),
    ("Removed backups", "removed_backups"),
)


def add_params_to_parser(
    parser: argparse.ArgumentParser, params: list[ToolParam]
) -> None:
    """Add ToolParam declarations to an argparse.ArgumentParser."""
    for param in params:
        flag = f"--{param.name}"
        kwargs: dict[str, Any] = {
            "help": param.description,
        }

        if param.type == "bool":
            kwargs["action"] = "store_true"
        else:
            kwargs["type"] = TYPE_MAP.get(param.type, str)
            if param.default is not None:
                kwargs["default"] = param.default

        parser.add_argument(flag, **kwargs)


def _console_progress(fraction: float, message: str) -> None:
    """Print progress to stderr."""
    pct = int(fraction * 100)
    print(f"  [{pct:3d}%] {message}", file=sys.stderr, flush=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for a CLI run."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def run_plugin(plugin: ToolPlugin, args: dict[str, Any]) -> int:
    """Run the tool in-process and return an exit code.

    Returns:
        0 on SUCCESS, 130 on CANCELLED, and on FAILURE the exit code carried
        by the result (the failing command's status) or 1.
    """
    ctx = ExecutionContext(
        on_progress=_console_progress,
        cancel_event=threading.Event(),
    )

    try:
        result = plugin.run(args, ctx)
    except KeyboardInterrupt:
        ctx.cancel_event.set()
        print_error("Cancelled.")
        return CANCELLED_EXIT_CODE
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print_error(f"Error: {e}")
        return 1

    if result.status is ResultStatus.SUCCESS:
        print_success(result.summary)
    elif result.status is ResultStatus.CANCELLED:
        print_warning(result.summary)
    else:
        print_error(f"Error: {result.summary}")
    print_run_details(result.data, RESULT_DETAILS)

    return result.exit_code


def build_parser(plugin: ToolPlugin) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=plugin.name, description=plugin.description)
    add_params_to_parser(parser, plugin.get_params())
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    parser.add_argument(
        "--version", "-V", action="version", version=f"{plugin.name} {__version__}"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    from portainer_updater.updater import create_plugin

    plugin = create_plugin()
    parser = build_parser(plugin)
    args, unknown = parser.parse_known_args(argv)
    setup_logging(args.verbose)
    if unknown:
        logger.debug(f"Ignoring unrecognised arguments: {' '.join(unknown)}")

    print_header(f"Portainer Updater v{__version__}")
    if args.force:
        print_warning("Force update enabled: proceeding even if up to date.")
    else:
        print_info("Checking for a newer image...")

    sys.exit(run_plugin(plugin, vars(args)))


if __name__ == "__main__":
    main()
