"""Environment configuration for msc-tasks.

Environment variables:
    REBUILD: Wipe and reconfigure the CMake build before building
        - only the exact string "true" enables it

    PATH_TO_LIBWEBRTC_SOURCES: libwebrtc include path passed to CMake
    PATH_TO_LIBWEBRTC_BINARY: libwebrtc binary path passed to CMake
        - only used when REBUILD is "true", never validated

    TEST_ARGS: Extra arguments appended verbatim to the test command

    CLANG_FORMAT: clang-format executable used by lint/format
        - default "clang-format"

    MSC_LOG_DEBUG: Debug logging
        - true/1/yes/on = DEBUG level, written to a temp file
        - false/0/no = INFO level on stderr (default)
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

__all__ = ["Config", "load_config"]

DEFAULT_CLANG_FORMAT = "clang-format"


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Task configuration, read once at startup.

    Attributes:
        rebuild: Reconfigure the build directory before building
        libwebrtc_sources: Value of PATH_TO_LIBWEBRTC_SOURCES (None if unset)
        libwebrtc_binary: Value of PATH_TO_LIBWEBRTC_BINARY (None if unset)
        test_args: Value of TEST_ARGS (None if unset)
        clang_format: clang-format executable
        root: Project root, commands run from here
        log_debug: Debug logging to file
        log_file: Log file path (set when log_debug is True)
    """

    rebuild: bool = False
    libwebrtc_sources: str | None = None
    libwebrtc_binary: str | None = None
    test_args: str | None = None
    clang_format: str = DEFAULT_CLANG_FORMAT
    root: Path = field(default_factory=Path.cwd)
    log_debug: bool = False
    log_file: str | None = None


def _generate_log_file_path() -> str:
    """Build a timestamped log file path under the system temp dir."""
    log_dir = Path(tempfile.gettempdir()) / "msc-tasks"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"msc_tasks_{timestamp}.log"

    return str(log_file.resolve())


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        environ: Variables to read (default: os.environ)
    """
    if environ is None:
        environ = os.environ

    log_debug = _parse_bool(environ.get("MSC_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        rebuild=environ.get("REBUILD") == "true",
        libwebrtc_sources=environ.get("PATH_TO_LIBWEBRTC_SOURCES"),
        libwebrtc_binary=environ.get("PATH_TO_LIBWEBRTC_BINARY"),
        test_args=environ.get("TEST_ARGS"),
        clang_format=environ.get("CLANG_FORMAT") or DEFAULT_CLANG_FORMAT,
        root=Path.cwd(),
        log_debug=log_debug,
        log_file=log_file,
    )
