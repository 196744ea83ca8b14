"""Shell command runner with tagged output streaming.

msc-tasks runtime module v0.1.0

This module provides:
- Shell command execution in an isolated session/process group
- Stdout/stderr streaming, one tagged log line per newline-delimited fragment
- Outcome classification (exit code vs. termination signal)
- Cancel-safe cleanup using asyncio.shield

Key design points:
- Output is split per received chunk; a line that straddles two chunks is
  emitted as two fragments
- No timeout and no retry: run() returns only once the child has terminated
- Cancellation from outside terminates the process group, not just the shell
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ProcessFailure

__all__ = [
    "Command",
    "OutputSink",
    "ProcessOutcome",
    "ProcessRunner",
    "STDERR",
    "STDOUT",
    "log_output",
    "split_chunk",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

# Default timeouts, only used when tearing down a cancelled run
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after SIGTERM
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL

DEFAULT_CHUNK_SIZE = 4096

STDOUT = "stdout"
STDERR = "stderr"

# (stream, line) -> None
OutputSink = Callable[[str, str], None]


@dataclass(frozen=True)
class Command:
    """A shell command to run.

    Attributes:
        command: Shell invocation string, parsed by the host shell
        cwd: Working directory (None = inherit from this process)
        env: Environment variables (None = inherit parent)
    """

    command: str
    cwd: Path | None = None
    env: Mapping[str, str] | None = None


@dataclass(frozen=True)
class ProcessOutcome:
    """Termination status of a finished process.

    Attributes:
        code: Exit code, None if the process was terminated by a signal
        signal: Signal name, None if the process exited normally
    """

    code: int | None
    signal: str | None

    @property
    def ok(self) -> bool:
        """True only for a normal exit with code 0."""
        return self.code == 0 and self.signal is None

    @classmethod
    def from_returncode(cls, returncode: int | None) -> "ProcessOutcome":
        """Build an outcome from an asyncio returncode.

        On POSIX a negative returncode -N means the child was killed by
        signal N.
        """
        if returncode is None:
            return cls(code=None, signal=None)
        if returncode < 0 and not IS_WINDOWS:
            try:
                name = signal.Signals(-returncode).name
            except ValueError:
                name = f"SIG{-returncode}"
            return cls(code=None, signal=name)
        return cls(code=returncode, signal=None)


def split_chunk(text: str) -> list[str]:
    """Split a decoded chunk on newlines, dropping empty fragments."""
    return [fragment for fragment in text.split("\n") if fragment]


def log_output(stream: str, line: str) -> None:
    """Default output sink: stdout at INFO, stderr at ERROR."""
    if stream == STDERR:
        logger.error(f"({STDERR}) {line}")
    else:
        logger.info(f"({STDOUT}) {line}")


@dataclass
class ProcessRunner:
    """Runs one shell command to completion and reports how it ended.

    Example:
        runner = ProcessRunner()
        await runner.run(Command("cmake --build build"))

    run() returns None on a clean exit and raises ProcessFailure otherwise.
    """

    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    on_output: OutputSink | None = None

    async def run(
        self,
        command: Command,
        *,
        on_output: OutputSink | None = None,
    ) -> None:
        """Run a shell command, streaming its output.

        Args:
            command: Command to run
            on_output: Optional sink for tagged lines (overrides the
                runner-level sink, defaults to log_output)

        Raises:
            ProcessFailure: If the command exits non-zero or is killed
        """
        sink = on_output or self.on_output or log_output
        process: asyncio.subprocess.Process | None = None
        pumps: list[asyncio.Task[None]] = []

        logger.info(f"runCommand() [command:{command.command}]")

        kwargs = self._build_subprocess_kwargs(command)

        try:
            process = await asyncio.create_subprocess_shell(
                command.command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=command.cwd,
                **kwargs,
            )

            logger.debug(f"Started subprocess pid={process.pid} cwd={command.cwd}")

            # stdout and stderr are drained independently. Both must reach EOF
            # before wait(), so a background grandchild holding the pipes
            # delays completion until it exits.
            pumps = [
                asyncio.create_task(self._pump(process.stdout, STDOUT, sink)),
                asyncio.create_task(self._pump(process.stderr, STDERR, sink)),
            ]
            await asyncio.gather(*pumps)

            returncode = await process.wait()

        finally:
            await self._safe_cleanup(process, pumps)

        outcome = ProcessOutcome.from_returncode(returncode)
        logger.debug(
            f"Subprocess completed pid={process.pid} "
            f"code={outcome.code} signal={outcome.signal}"
        )

        if not outcome.ok:
            raise ProcessFailure(outcome.code, outcome.signal, command.command)

    def _build_subprocess_kwargs(self, command: Command) -> dict[str, Any]:
        """Build platform-specific subprocess kwargs."""
        kwargs: dict[str, Any] = {}

        if command.env is not None:
            kwargs["env"] = dict(command.env)

        if IS_WINDOWS:
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            # POSIX: start_new_session (equivalent to setsid)
            kwargs["start_new_session"] = True

        return kwargs

    async def _pump(
        self,
        stream: asyncio.StreamReader | None,
        name: str,
        sink: OutputSink,
    ) -> None:
        """Read a stream chunk by chunk and emit its non-empty lines.

        Args:
            stream: Child stdout or stderr
            name: Stream tag passed to the sink
            sink: Output sink
        """
        if stream is None:
            return

        # Keeps multi-byte characters intact across chunk boundaries
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        while True:
            chunk = await stream.read(self.chunk_size)
            if not chunk:
                break
            for line in split_chunk(decoder.decode(chunk)):
                sink(name, line)

        for line in split_chunk(decoder.decode(b"", final=True)):
            sink(name, line)

    async def _safe_cleanup(
        self,
        process: asyncio.subprocess.Process | None,
        pumps: list[asyncio.Task[None]],
    ) -> None:
        """Cleanup subprocess and pump tasks, shielded from cancellation."""
        try:
            await asyncio.shield(self._do_cleanup(process, pumps))
        except asyncio.CancelledError:
            # If shield itself is cancelled, still try cleanup
            await self._do_cleanup(process, pumps)
            raise

    async def _do_cleanup(
        self,
        process: asyncio.subprocess.Process | None,
        pumps: list[asyncio.Task[None]],
    ) -> None:
        """Perform actual cleanup."""
        for task in pumps:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        # Only reached with a live child when the run was interrupted
        if process is not None and process.returncode is None:
            await self._terminate_process(process)

    async def _terminate_process(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Terminate subprocess gracefully, then forcefully if needed.

        Termination strategy:
        1. Send SIGTERM (or CTRL_BREAK_EVENT on Windows)
        2. Wait up to term_timeout for graceful exit
        3. If still running, send SIGKILL (or kill() on Windows)
        4. Wait up to kill_timeout for forced exit
        """
        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            if IS_WINDOWS:
                await self._windows_terminate(process)
            else:
                await self._posix_signal(process, signal.SIGTERM)

            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                logger.debug(
                    f"Subprocess terminated gracefully pid={pid} "
                    f"returncode={process.returncode}"
                )
                return
            except asyncio.TimeoutError:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            if IS_WINDOWS:
                process.kill()
            else:
                await self._posix_signal(process, signal.SIGKILL)

            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")
        except OSError as e:
            logger.warning(f"Error terminating subprocess pid={pid}: {e}")

    async def _posix_signal(
        self,
        process: asyncio.subprocess.Process,
        sig: signal.Signals,
    ) -> None:
        """Send a signal to the child's process group on POSIX systems."""
        try:
            pgid = os.getpgid(process.pid)
            os.killpg(pgid, sig)
            logger.debug(f"Sent {sig.name} to process group pgid={pgid}")
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.debug(f"killpg failed, falling back to send_signal: {e}")
            process.send_signal(sig)

    async def _windows_terminate(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Send CTRL_BREAK_EVENT on Windows."""
        try:
            # Works because of CREATE_NEW_PROCESS_GROUP
            os.kill(process.pid, signal.CTRL_BREAK_EVENT)
            logger.debug(f"Sent CTRL_BREAK_EVENT to pid={process.pid}")
        except (ProcessLookupError, OSError) as e:
            logger.debug(f"CTRL_BREAK_EVENT failed, falling back: {e}")
            process.terminate()
