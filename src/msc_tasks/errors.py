"""Task runner exceptions.

msc-tasks v0.1.0
"""

from __future__ import annotations

__all__ = [
    "TaskError",
    "ProcessFailure",
]


class TaskError(Exception):
    """Base exception for msc-tasks."""
    pass


class ProcessFailure(TaskError):
    """A command did not terminate cleanly.

    Attributes:
        code: Exit code, None when the process was killed by a signal
        signal: Signal name (e.g. "SIGKILL"), None on a normal exit
        command: The shell command that failed
    """

    def __init__(
        self,
        code: int | None,
        signal: str | None,
        command: str = "",
    ) -> None:
        self.code = code
        self.signal = signal
        self.command = command
        super().__init__(f"command exited with code {code} and signal {signal}")
