"""
youcast.extract.supervisor - Spawns and watches the external processes.

One Supervisor exists per request. It owns every process it starts, drains
their stderr into bounded buffers, turns non-zero exits into failures on
the request's FailureLatch, and tears everything down on failure or
cancellation.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any

from youcast.exceptions import ProcessFailure, SpawnError, YoucastError
from youcast.extract.diagnostics import DiagnosticBuffer, forward_line
from youcast.extract.latch import TERMINAL_STATES, TRANSITIONS, FailureLatch, RequestState

logger = logging.getLogger(__name__)

STDERR_CHUNK = 4096
TERMINATE_GRACE_SECONDS = 5.0


@dataclass
class ProcessRecord:
    """A running external process and its captured diagnostics."""

    name: str
    process: asyncio.subprocess.Process
    diagnostics: DiagnosticBuffer
    drain_task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    def signal_terminate(self) -> None:
        if self.process.returncode is None:
            try:
                self.process.terminate()
            except ProcessLookupError:
                pass


class Supervisor:
    """Owns the processes, state and failure latch of a single request."""

    def __init__(self, source_id: str, diagnostic_limit: int = 8192) -> None:
        self.source_id = source_id
        self.diagnostic_limit = diagnostic_limit
        self.records: list[ProcessRecord] = []
        self.latch = FailureLatch()
        self.state = RequestState.SPAWNING
        self._watchers: list[asyncio.Task] = []

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, target: RequestState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal state transition {self.state.value} -> {target.value}")
        logger.debug("%s: %s -> %s", self.source_id, self.state.value, target.value)
        self.state = target

    async def spawn(
        self,
        name: str,
        binary: str,
        args: list[str],
        stdin: Any = subprocess.DEVNULL,
        stdout: Any = subprocess.PIPE,
    ) -> ProcessRecord:
        """Start a process with stderr drained in the background.

        Raises:
            SpawnError: If the OS could not start the binary
        """
        logger.debug("Spawning %s: %s %s", name, binary, " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                binary,
                *args,
                stdin=stdin,
                stdout=stdout,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            error = SpawnError(binary, e.strerror or str(e))
            if self.latch.fail(error):
                logger.error("%s: %s", self.source_id, error)
            raise error from e

        record = ProcessRecord(
            name=name,
            process=process,
            diagnostics=DiagnosticBuffer(name, self.diagnostic_limit),
        )
        record.drain_task = asyncio.create_task(self._drain(record))
        self.records.append(record)
        return record

    async def _drain(self, record: ProcessRecord) -> None:
        stream = record.process.stderr
        while True:
            chunk = await stream.read(STDERR_CHUNK)
            if not chunk:
                break
            for line in record.diagnostics.feed(chunk):
                forward_line(record.name, line)
        for line in record.diagnostics.flush():
            forward_line(record.name, line)

    def watch(self, record: ProcessRecord, error_cls: type[ProcessFailure]) -> None:
        """Latch ``error_cls`` if the process exits non-zero, then stop the others."""
        self._watchers.append(asyncio.create_task(self._watch(record, error_cls)))

    async def _watch(self, record: ProcessRecord, error_cls: type[ProcessFailure]) -> None:
        code = await record.process.wait()
        if record.drain_task is not None:
            await record.drain_task
        logger.debug("%s: %s exited with code %s", self.source_id, record.name, code)

        if code == 0 or self.state is RequestState.CANCELLED:
            return

        if record.diagnostics.truncated:
            logger.debug(
                "%s: %s stderr truncated, kept last %d of %d chars",
                self.source_id,
                record.name,
                len(record.diagnostics.text),
                record.diagnostics.total_chars,
            )
        excerpt = record.diagnostics.excerpt()
        message = f"{record.name} failed with exit code {code}"
        if excerpt:
            message = f"{message}: {excerpt}"
        error = error_cls(message, exit_code=code, diagnostics=record.diagnostics.text)
        if self.latch.fail(error):
            logger.error(
                "%s: %s failed (exit code %s): %s",
                self.source_id,
                record.name,
                code,
                excerpt[:300],
            )
            self.terminate_all()

    def terminate_all(self) -> None:
        """Signal every owned process that is still running."""
        for record in self.records:
            record.signal_terminate()

    async def finish(self) -> YoucastError | None:
        """Wait for every process to exit; return the winning failure, if any."""
        await asyncio.gather(*self._watchers)
        return self.latch.error

    async def reap(self) -> None:
        """Wait for owned processes to exit, killing any that ignore SIGTERM."""
        for record in self.records:
            try:
                await asyncio.wait_for(record.process.wait(), TERMINATE_GRACE_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("%s: %s ignored SIGTERM, killing", self.source_id, record.name)
                try:
                    record.process.kill()
                except ProcessLookupError:
                    pass
                await record.process.wait()
        await asyncio.gather(*self._watchers, return_exceptions=True)
