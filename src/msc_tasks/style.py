"""Lint and format tasks backed by clang-format.

Both tasks run clang-format once over every C++ source and header matching
SOURCE_GLOBS, using the project's .clang-format file.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from .config import Config
from .runtime.process_runner import Command, ProcessRunner
from .workflow import CommandRunner

__all__ = ["SOURCE_GLOBS", "collect_sources", "format_sources", "lint"]

logger = logging.getLogger(__name__)

SOURCE_GLOBS = (
    "src/**/*.cpp",
    "include/**/*.hpp",
    "test/src/**/*.cpp",
    "test/include/**/*.hpp",
)


def collect_sources(root: Path) -> list[str]:
    """Relative POSIX paths of all files matching SOURCE_GLOBS, sorted."""
    found: set[str] = set()
    for pattern in SOURCE_GLOBS:
        for path in root.glob(pattern):
            if path.is_file():
                found.add(path.relative_to(root).as_posix())
    return sorted(found)


def _clang_format_command(config: Config, flags: list[str], files: list[str]) -> Command:
    argv = [config.clang_format, "--style=file", *flags, *files]
    return Command(shlex.join(argv), cwd=config.root)


async def lint(config: Config, runner: CommandRunner | None = None) -> None:
    """Check formatting without touching files.

    Raises:
        ProcessFailure: If clang-format reports a violation
    """
    files = collect_sources(config.root)
    if not files:
        logger.warning(f"No sources to lint under {config.root}")
        return

    runner = runner or ProcessRunner()
    await runner.run(_clang_format_command(config, ["--dry-run", "--Werror"], files))


async def format_sources(config: Config, runner: CommandRunner | None = None) -> None:
    """Rewrite sources in place."""
    files = collect_sources(config.root)
    if not files:
        logger.warning(f"No sources to format under {config.root}")
        return

    runner = runner or ProcessRunner()
    await runner.run(_clang_format_command(config, ["-i"], files))
