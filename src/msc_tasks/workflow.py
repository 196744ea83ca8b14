"""Test workflow: configure, build and run the libmediasoupclient tests.

Sequence (fail fast, strictly one command at a time):

    [REBUILD=true] remove build/ -> cmake configure
    cmake --build build
    locate test binary for the host platform
    run it with TEST_ARGS appended

The first ProcessFailure aborts the remaining steps and propagates unchanged.
"""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path
from typing import Protocol

import anyio

from .config import Config
from .runtime.process_runner import Command, ProcessRunner

__all__ = [
    "CommandRunner",
    "build_configure_command",
    "build_test_command",
    "run_tests",
    "select_test_executable",
]

logger = logging.getLogger(__name__)

BUILD_DIR = "build"
BUILD_COMMAND = f"cmake --build {BUILD_DIR}"

TEST_EXECUTABLE = f"{BUILD_DIR}/test/test_mediasoupclient"
TEST_EXECUTABLE_DARWIN = (
    f"{BUILD_DIR}/test/test_mediasoupclient.app/Contents/MacOS/test_mediasoupclient"
)


class CommandRunner(Protocol):
    """Anything that can run a Command to completion."""

    async def run(self, command: Command) -> None: ...


def build_configure_command(config: Config) -> str:
    """CMake configure invocation for a fresh build directory.

    Unset libwebrtc paths are interpolated as empty strings; CMake reports
    the problem when it runs.
    """
    sources = config.libwebrtc_sources or ""
    binary = config.libwebrtc_binary or ""

    return (
        f"cmake . -B{BUILD_DIR}"
        f" -DLIBWEBRTC_INCLUDE_PATH:PATH={sources}"
        f" -DLIBWEBRTC_BINARY_PATH:PATH={binary}"
        ' -DMEDIASOUPCLIENT_BUILD_TESTS="true"'
        ' -DCMAKE_CXX_FLAGS="-fvisibility=hidden"'
    )


def select_test_executable(platform: str) -> str:
    """Relative path of the test binary for a platform identity.

    macOS builds the tests as an app bundle; everything else gets a flat
    executable.
    """
    if platform == "darwin":
        return TEST_EXECUTABLE_DARWIN
    return TEST_EXECUTABLE


def build_test_command(executable: str, test_args: str | None) -> str:
    if test_args:
        return f"{executable} {test_args}"
    return executable


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f"Could not remove {path}: {e}")


async def run_tests(
    config: Config,
    runner: CommandRunner | None = None,
    platform: str | None = None,
) -> None:
    """Configure (optionally), build and run the native test suite.

    Args:
        config: Task configuration
        runner: Command runner (default: ProcessRunner)
        platform: Host platform identity (default: sys.platform)

    Raises:
        ProcessFailure: From the first command that does not exit cleanly
    """
    if runner is None:
        runner = ProcessRunner()
    if platform is None:
        platform = sys.platform

    if config.rebuild:
        build_dir = config.root / BUILD_DIR
        logger.info(f"REBUILD is set, removing {build_dir}")
        await anyio.to_thread.run_sync(_remove_tree, build_dir)

        await runner.run(Command(build_configure_command(config), cwd=config.root))

    await runner.run(Command(BUILD_COMMAND, cwd=config.root))

    executable = select_test_executable(platform)
    logger.debug(f"Test executable for platform={platform}: {executable}")

    await runner.run(
        Command(build_test_command(executable, config.test_args), cwd=config.root)
    )
