"""
youcast.extract.stream - The byte stream handed to callers.

AudioStream hides the topology: it reads the final stage's stdout, and
once that reaches EOF it waits for every process to exit before deciding
between a clean end and an error.
"""

from __future__ import annotations

import asyncio
import logging

from youcast.exceptions import ExtractionError, ProcessFailure, TranscodeError
from youcast.extract.latch import RequestState
from youcast.extract.supervisor import Supervisor

logger = logging.getLogger(__name__)


class AudioStream:
    """Async iterator of audio chunks with a single terminal transition.

    Iteration ends on DONE, raises the request's failure once on FAILED,
    and yields nothing further after CANCELLED.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        supervisor: Supervisor,
        chunk_size: int = 64 * 1024,
        first_chunk: bytes = b"",
    ) -> None:
        self._reader = reader
        self._supervisor = supervisor
        self._chunk_size = chunk_size
        self._pending = first_chunk
        self.bytes_delivered = 0

    @property
    def state(self) -> RequestState:
        return self._supervisor.state

    @property
    def closed(self) -> bool:
        return self._supervisor.terminal

    @property
    def returncodes(self) -> dict[str, int | None]:
        """Exit code per owned process; None while it is still running."""
        return {record.name: record.returncode for record in self._supervisor.records}

    def __aiter__(self) -> AudioStream:
        return self

    async def __anext__(self) -> bytes:
        chunk = await self.read()
        if not chunk:
            raise StopAsyncIteration
        return chunk

    async def read(self) -> bytes:
        """Return the next chunk, or b"" once the stream has ended.

        Raises:
            YoucastError: The request's failure, exactly once
        """
        if self.closed:
            return b""

        if self._pending:
            chunk, self._pending = self._pending, b""
        else:
            chunk = await self._reader.read(self._chunk_size)

        if self.closed:
            # cancelled while we were waiting on the pipe
            return b""
        if chunk:
            self.bytes_delivered += len(chunk)
            return chunk

        await self._finish()
        return b""

    async def _finish(self) -> None:
        error = await self._supervisor.finish()
        if self.closed:
            return
        if error is None and self.bytes_delivered == 0:
            error = self._empty_output_error()
        if error is not None:
            self._supervisor.transition(RequestState.FAILED)
            raise error
        self._supervisor.transition(RequestState.DONE)
        logger.info(
            "Completed stream for %s (%d bytes)",
            self._supervisor.source_id,
            self.bytes_delivered,
        )

    def _empty_output_error(self) -> ProcessFailure:
        last = self._supervisor.records[-1]
        error_cls = TranscodeError if last.name == "ffmpeg" else ExtractionError
        error = error_cls(
            f"{last.name} exited without producing any audio",
            exit_code=last.returncode,
            diagnostics=last.diagnostics.text,
        )
        if self._supervisor.latch.fail(error):
            logger.error("%s: %s", self._supervisor.source_id, error)
        return error

    def cancel(self) -> None:
        """Tear down all owned processes now; the consumer has gone away."""
        if self.closed:
            return
        self._supervisor.transition(RequestState.CANCELLED)
        logger.info("Consumer disconnected from %s, stopping", self._supervisor.source_id)
        self._supervisor.terminate_all()

    async def aclose(self) -> None:
        """Cancel if still streaming, then wait for the processes to exit."""
        self.cancel()
        await self._supervisor.reap()

    async def __aenter__(self) -> AudioStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
