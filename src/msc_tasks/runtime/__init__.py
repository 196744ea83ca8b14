"""Runtime module for shell command execution.

Runs external commands (CMake, clang-format, the test binary) with tagged
output streaming and exit code / signal classification.
"""

from __future__ import annotations

from .process_runner import Command, ProcessOutcome, ProcessRunner

__all__ = [
    "Command",
    "ProcessOutcome",
    "ProcessRunner",
]
