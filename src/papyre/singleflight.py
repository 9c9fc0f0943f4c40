"""Single-flight job queue — serializes every render pass of a watch session.

Compiler recompiles and file-system changes arrive independently, but both
mutate and read the same live entry set. Routing both through one queue
guarantees that at most one pass runs at a time.

Ordering and coalescing:

- jobs run one after another, in the order their keys were first submitted;
- submitting a key that is already pending replaces that job in place, so a
  burst of triggers for the same thing (a recompile, one file path) collapses
  into a single pass that runs with the latest job;
- a key that is currently running is not pending, so resubmitting it queues
  exactly one follow-up pass.

"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable

    type Job = Callable[[], Awaitable[object]]


class SingleFlightQueue:
    """Runs async jobs one at a time with per-key coalescing.

    The worker task is created lazily on the running loop by ``submit()``
    and exits when the queue drains. A failing job is reported to stderr and
    does not stop the jobs behind it.

    Args:
        name: Name given to the worker task.

    """

    __slots__ = ("_active", "_closed", "_idle", "_name", "_pending", "_task")

    def __init__(self, name: str = "papyre-queue") -> None:
        self._name = name
        self._pending: dict[Hashable, Job] = {}
        self._task: asyncio.Task[None] | None = None
        self._active = False
        self._closed = False
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def busy(self) -> bool:
        """True while a job is running."""
        return self._active

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_keys(self) -> tuple[Hashable, ...]:
        return tuple(self._pending)

    def submit(self, key: Hashable, job: Job) -> bool:
        """Queue *job* under *key*.

        Returns False when the job was coalesced into an already pending one
        or the queue is closed, True when it took a new slot.

        """
        if self._closed:
            return False
        coalesced = key in self._pending
        self._pending[key] = job
        self._idle.clear()
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._drain(), name=self._name)
        return not coalesced

    async def join(self) -> None:
        """Wait until no job is running or pending."""
        await self._idle.wait()

    def close(self) -> None:
        """Drop pending jobs and refuse new ones. A running job finishes."""
        self._closed = True
        self._pending.clear()
        if not self._active:
            self._idle.set()

    async def _drain(self) -> None:
        try:
            while self._pending and not self._closed:
                key = next(iter(self._pending))
                job = self._pending.pop(key)
                self._active = True
                try:
                    await job()
                except Exception as exc:
                    print(f"  Queued job {key!r} failed: {exc}", file=sys.stderr)
                finally:
                    self._active = False
        finally:
            self._idle.set()
