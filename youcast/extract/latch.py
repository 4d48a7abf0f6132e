"""
youcast.extract.latch - Per-request state and first-failure-wins latch.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from youcast.exceptions import YoucastError


class RequestState(str, Enum):
    SPAWNING = "spawning"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


TRANSITIONS: dict[RequestState, set[RequestState]] = {
    RequestState.SPAWNING: {RequestState.STREAMING, RequestState.REJECTED, RequestState.CANCELLED},
    RequestState.STREAMING: {RequestState.DONE, RequestState.FAILED, RequestState.CANCELLED},
    RequestState.DONE: set(),
    RequestState.FAILED: set(),
    RequestState.REJECTED: set(),
    RequestState.CANCELLED: set(),
}

TERMINAL_STATES = frozenset(state for state, targets in TRANSITIONS.items() if not targets)


class FailureLatch:
    """Single-assignment holder for the first failure of a request.

    Backed by an asyncio.Future: the check and the assignment happen in one
    loop step, so concurrent process callbacks cannot both win.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[YoucastError] = asyncio.get_running_loop().create_future()

    def fail(self, error: YoucastError) -> bool:
        """Record ``error`` if nothing failed yet. Returns True if it won."""
        if self._future.done():
            return False
        self._future.set_result(error)
        return True

    @property
    def failed(self) -> bool:
        return self._future.done()

    @property
    def error(self) -> YoucastError | None:
        return self._future.result() if self._future.done() else None
