"""
Best-effort forwarding of manual reorders to persistence.

The local reorder is applied before submit() is called and is never rolled
back. submit() returns immediately; the persistence call runs detached on an
event loop. There is no retry and no cancellation of superseded moves, so two
quick reorders may reach the collaborator in either order.
"""

import asyncio
import json
import logging
import threading
import urllib.request
from concurrent.futures import Future, wait
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..errors import ReorderSyncError
from .event_bus import EventBus, EventType, get_event_bus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReorderMove:
    """A committed manual-order move, as emitted by the drag source."""
    encounter_id: int
    old_index: int
    new_index: int

    def to_payload(self) -> dict:
        """Wire body for POST /reorder."""
        return {"oldIndex": self.old_index, "newIndex": self.new_index}


# -----------------------------------------------------------------------------
# Persistence collaborators
# -----------------------------------------------------------------------------

@runtime_checkable
class ReorderPersistence(Protocol):
    """
    Storage side of a reorder.

    Implementations:
    - MemoryReorderPersistence: records moves in memory (testing, offline)
    - HttpReorderPersistence: POST /reorder to a tracker server
    """

    async def persist(self, move: ReorderMove) -> None:
        ...


class MemoryReorderPersistence:
    """Records every move it receives. Can be told to fail."""

    def __init__(self, fail_with: BaseException | None = None):
        self.moves: list[ReorderMove] = []
        self.fail_with = fail_with

    async def persist(self, move: ReorderMove) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.moves.append(move)


class HttpReorderPersistence:
    """
    Forwards moves to a tracker server's /reorder endpoint.

    The blocking urllib call runs in a worker thread so the loop stays free.
    """

    def __init__(self, base_url: str = "http://127.0.0.1:8000", timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, move: ReorderMove) -> dict:
        req = urllib.request.Request(
            f"{self.base_url}/reorder",
            data=json.dumps(move.to_payload()).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:
            return json.loads(resp.read().decode("utf-8"))

    async def persist(self, move: ReorderMove) -> None:
        ack = await asyncio.to_thread(self._post, move)
        logger.debug("Reorder acknowledged: %s", ack)


# -----------------------------------------------------------------------------
# Sync
# -----------------------------------------------------------------------------

class _BackgroundLoop:
    """Event loop on a daemon thread, for callers without a running loop."""

    def __init__(self):
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = threading.Lock()

    def get(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=loop.run_forever,
                    name="reorder-sync",
                    daemon=True,
                )
                thread.start()
                self._loop = loop
            return self._loop


class ReorderSync:
    """
    Fire-and-forget forwarding of reorders.

    Failures are logged, kept in `errors`, and emitted as
    REORDER_SYNC_FAILED. Successful moves emit REORDER_SYNCED.
    """

    def __init__(
        self,
        persistence: ReorderPersistence,
        bus: EventBus | None = None,
    ):
        self.persistence = persistence
        self.errors: list[ReorderSyncError] = []
        self._bus = bus or get_event_bus()
        self._tasks: set[asyncio.Task] = set()
        self._futures: set[Future] = set()
        self._background = _BackgroundLoop()

    def submit(self, move: ReorderMove) -> None:
        """Schedule persistence of a move and return immediately."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(self._forward(move))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            future = asyncio.run_coroutine_threadsafe(
                self._forward(move), self._background.get()
            )
            self._futures.add(future)
            future.add_done_callback(self._futures.discard)

    async def _forward(self, move: ReorderMove) -> None:
        try:
            await self.persistence.persist(move)
        except Exception as e:
            error = ReorderSyncError(move, e)
            self.errors.append(error)
            logger.warning("%s", error)
            self._bus.emit(
                EventType.REORDER_SYNC_FAILED,
                encounter_id=move.encounter_id,
                old_index=move.old_index,
                new_index=move.new_index,
                error=str(e),
            )
            return

        self._bus.emit(
            EventType.REORDER_SYNCED,
            encounter_id=move.encounter_id,
            old_index=move.old_index,
            new_index=move.new_index,
        )

    @property
    def pending(self) -> int:
        return len(self._tasks) + len(self._futures)

    async def drain(self) -> None:
        """Wait for moves scheduled on the running loop."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def wait_idle(self, timeout: float | None = None) -> None:
        """Block until moves scheduled on the background loop finish."""
        wait(list(self._futures), timeout=timeout)
