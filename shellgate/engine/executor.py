"""
shellgate/engine/executor.py
Runs one allowed command through a shell, under a deadline, with a cap on
how much output we keep.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from shellgate.base.config import ExecutionConfig

logger = logging.getLogger(__name__)

# Conventional exit status for "killed by timeout" (same as coreutils timeout)
TIMEOUT_EXIT_CODE = 124

TRUNCATION_NOTICE = "\n... (output truncated due to size limit)"

READ_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ExecutionRecord:
    """Immutable audit entry for one command attempt."""
    command: str
    shell: str
    output: str
    exit_code: int
    started_at: datetime
    finished_at: datetime
    duration_ms: int
    timed_out: bool = False
    truncated: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "shell": self.shell,
            "output": self.output,
            "exitCode": self.exit_code,
            "startTime": self.started_at.isoformat(),
            "endTime": self.finished_at.isoformat(),
            "executionMs": self.duration_ms,
            "timedOut": self.timed_out,
            "truncated": self.truncated,
        }


class _OutputBuffer:
    """Keeps the first `cap` bytes of a stream and remembers if more arrived."""

    def __init__(self, cap: int):
        self.cap = cap
        self.size = 0
        self.truncated = False
        self._chunks: List[bytes] = []

    def feed(self, data: bytes) -> None:
        room = self.cap - self.size
        if len(data) > room:
            self.truncated = True
            data = data[:max(room, 0)]
        if data:
            self._chunks.append(data)
            self.size += len(data)

    def text(self) -> str:
        out = b"".join(self._chunks).decode("utf-8", errors="replace")
        if self.truncated:
            out += TRUNCATION_NOTICE
        return out


class ExecutionEngine:
    """
    Spawns `<shell> -c <command>` and turns whatever happens into an
    ExecutionRecord.

    run() never raises for execution problems: an unsupported shell, a failed
    launch, a non-zero exit and a timeout all come back as records. The only
    exception that escapes is CancelledError, after the child has been killed
    and reaped.

    Each child gets its own process group so that a timeout or cancellation
    takes down everything the shell started, not just the shell.
    """

    def __init__(self, config: Optional[ExecutionConfig] = None):
        self.config = config or ExecutionConfig()

    async def run(
        self,
        command: str,
        shell: Optional[str] = None,
        timeout: Optional[float] = None,
        output_cap: Optional[int] = None,
    ) -> ExecutionRecord:
        shell = shell or self.config.default_shell
        timeout = self.config.command_timeout if timeout is None else timeout
        output_cap = self.config.max_output_bytes if output_cap is None else output_cap

        started_at = datetime.now(timezone.utc)
        start = time.monotonic()

        if shell not in self.config.supported_shells:
            logger.warning(f"[executor] Refusing unsupported shell '{shell}'")
            supported = " and ".join(self.config.supported_shells)
            return self._record(
                command, shell,
                f"Error: Unsupported shell '{shell}'. Only {supported} are supported.",
                1, started_at, start,
            )

        buffer = _OutputBuffer(output_cap)
        try:
            proc = await asyncio.create_subprocess_exec(
                shell, "-c", command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            logger.warning(f"[executor] Failed to launch {shell}: {exc}")
            return self._record(
                command, shell, f"\n\nError: {exc}", 1, started_at, start,
            )

        logger.debug(f"[executor] pid={proc.pid} {shell} -c {command!r}")

        timed_out = False
        try:
            exit_code = await asyncio.wait_for(self._communicate(proc, buffer), timeout=timeout)
        except asyncio.TimeoutError:
            timed_out = True
            logger.warning(f"[executor] pid={proc.pid} exceeded {timeout:g}s; killing process group")
            await self._kill(proc)
            exit_code = TIMEOUT_EXIT_CODE
        except asyncio.CancelledError:
            logger.info(f"[executor] pid={proc.pid} cancelled; killing process group")
            await self._kill(proc)
            raise

        output = buffer.text()
        if timed_out:
            output += f"\n\nError: Command execution timed out after {timeout:g} seconds."

        record = self._record(
            command, shell, output, exit_code, started_at, start,
            timed_out=timed_out, truncated=buffer.truncated,
        )
        logger.info(
            f"[executor] {shell} -c {command!r} exited {record.exit_code} "
            f"in {record.duration_ms} ms ({buffer.size} bytes captured)"
        )
        return record

    async def _communicate(self, proc: asyncio.subprocess.Process, buffer: _OutputBuffer) -> int:
        # Keep draining past the cap so the child never blocks on a full pipe.
        while True:
            chunk = await proc.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            buffer.feed(chunk)
        return _normalize_exit_code(await proc.wait())

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        """SIGKILL the whole process group and reap the shell."""
        self._signal_group(proc, signal.SIGKILL)
        await proc.wait()

    @staticmethod
    def _signal_group(proc: asyncio.subprocess.Process, sig: int) -> None:
        try:
            os.killpg(proc.pid, sig)
        except ProcessLookupError:
            pass

    @staticmethod
    def _record(
        command: str,
        shell: str,
        output: str,
        exit_code: int,
        started_at: datetime,
        start: float,
        timed_out: bool = False,
        truncated: bool = False,
    ) -> ExecutionRecord:
        # finished_at is derived from monotonic elapsed time, never from a second wall-clock read.
        elapsed = max(time.monotonic() - start, 0.0)
        duration_ms = int(elapsed * 1000)
        return ExecutionRecord(
            command=command,
            shell=shell,
            output=output,
            exit_code=exit_code,
            started_at=started_at,
            finished_at=started_at + timedelta(milliseconds=duration_ms),
            duration_ms=duration_ms,
            timed_out=timed_out,
            truncated=truncated,
        )


def _normalize_exit_code(returncode: int) -> int:
    # asyncio reports death-by-signal as -N; shells report it as 128+N.
    if returncode < 0:
        return 128 + (-returncode)
    return returncode
