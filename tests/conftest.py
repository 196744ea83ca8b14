"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from msc_tasks.errors import ProcessFailure  # noqa: E402
from msc_tasks.runtime.process_runner import Command  # noqa: E402


class RecordingRunner:
    """Records commands instead of spawning them.

    A command containing one of the keys of `failures` raises the mapped
    ProcessFailure.
    """

    def __init__(self, failures: dict[str, ProcessFailure] | None = None) -> None:
        self.commands: list[Command] = []
        self.failures = failures or {}

    async def run(self, command: Command) -> None:
        self.commands.append(command)
        for needle, failure in self.failures.items():
            if needle in command.command:
                raise failure

    @property
    def command_lines(self) -> list[str]:
        return [c.command for c in self.commands]


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Create temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()
