"""msc-tasks entry point.

Usage:
    msc-tasks [lint|format|test]

The task defaults to "test". Any command failure ends the process with
exit status 1.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

from .config import Config, load_config
from .errors import ProcessFailure
from .style import format_sources, lint
from .workflow import run_tests

__all__ = ["TASKS", "main", "parse_args", "run_task"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

TASKS: dict[str, Callable[[Config], Awaitable[None]]] = {
    "lint": lint,
    "format": format_sources,
    "test": run_tests,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="msc-tasks",
        description="Lint, format, build and test libmediasoupclient",
    )
    parser.add_argument(
        "task",
        nargs="?",
        choices=sorted(TASKS),
        default="test",
        help="Task to run (default: test)",
    )
    return parser.parse_args(argv)


def _setup_logging(config: Config) -> None:
    if config.log_debug and config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
        log_level = logging.DEBUG
    else:
        handler = logging.StreamHandler(sys.stderr)
        log_level = logging.INFO
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Third-party loggers stay at WARNING
    logging.basicConfig(level=logging.WARNING, handlers=[handler])
    logging.getLogger("msc_tasks").setLevel(log_level)


def run_task(task: str, config: Config) -> int:
    """Run one task to completion and map the result to an exit status."""
    logger.info(f"Running task '{task}' in {config.root}")
    try:
        asyncio.run(TASKS[task](config))
    except ProcessFailure as e:
        logger.error(f"Task '{task}' failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning(f"Task '{task}' interrupted")
        return 130  # 128 + SIGINT(2)
    logger.info(f"Task '{task}' finished")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    config = load_config()
    _setup_logging(config)

    if config.log_debug:
        print(f"Debug log: {config.log_file}", file=sys.stderr)

    sys.exit(run_task(args.task, config))


if __name__ == "__main__":
    main()
