"""File watcher — reports content changes below a directory.

Uses watchfiles in a background thread and bridges batches of changes into
an asyncio queue owned by the event loop that started the watcher. Handlers
are connected per change kind with :meth:`ContentWatcher.on`; events with no
connected handler are dropped.
"""

from __future__ import annotations

import asyncio
import inspect
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchfiles import Change, DefaultFilter

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterable

    from papyre._types import ChangeKind


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A file change detected by the watcher.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: ChangeKind


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "add",
    Change.modified: "change",
    Change.deleted: "unlink",
}


class ExtensionFilter(DefaultFilter):
    """DefaultFilter narrowed to (or excluding) a set of file suffixes."""

    def __init__(self, extensions: Iterable[str], *, include: bool = True) -> None:
        super().__init__()
        self.extensions = tuple(extensions)
        self.include = include

    def __call__(self, change: Change, path: str) -> bool:
        if not super().__call__(change, path):
            return False
        return path.endswith(self.extensions) == self.include


class ContentWatcher:
    """Watches a directory tree and dispatches change events to handlers.

    ``start()`` must be called from a running event loop: the background
    thread hands each batch of changes to that loop with
    ``call_soon_threadsafe``, and a dispatch task on the loop invokes the
    connected handlers in arrival order.

    Args:
        root: Directory to watch.
        debounce: Milliseconds watchfiles waits to group changes into a batch.
        watch_filter: Optional watchfiles filter; defaults to DefaultFilter.

    """

    def __init__(
        self,
        root: Path,
        *,
        debounce: int = 300,
        watch_filter: Callable[[Change, str], bool] | None = None,
    ) -> None:
        self._root = root
        self._debounce = debounce
        self._filter = watch_filter if watch_filter is not None else DefaultFilter()
        self._queue: asyncio.Queue[tuple[ChangeEvent, ...]] = asyncio.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._dispatch_task: asyncio.Task[None] | None = None
        self._handlers: dict[ChangeKind, list[Callable[[Path], Any]]] = {
            "add": [],
            "change": [],
            "unlink": [],
        }

    @property
    def root(self) -> Path:
        return self._root

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def on(self, kind: ChangeKind, handler: Callable[[Path], Any]) -> None:
        """Connect *handler* to events of *kind*. It may return an awaitable."""
        self._handlers[kind].append(handler)

    def start(self) -> None:
        """Start watching in a background thread and dispatching on the running loop."""
        if self.is_running:
            return

        self._loop = asyncio.get_running_loop()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="papyre-watcher",
            daemon=True,
        )
        self._thread.start()
        self._dispatch_task = self._loop.create_task(self._dispatch())

    def stop(self) -> None:
        """Stop the thread, cancel dispatching and disconnect all handlers."""
        self._stop_event.set()
        for handlers in self._handlers.values():
            handlers.clear()
        if self._dispatch_task is not None:
            self._dispatch_task.cancel()
            self._dispatch_task = None
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    async def batches(self) -> AsyncIterator[tuple[ChangeEvent, ...]]:
        """Yield batches of changes as watchfiles reports them.

        Ends once the watcher is stopped and the queue is drained.

        """
        while self.is_running or not self._queue.empty():
            try:
                yield await asyncio.wait_for(self._queue.get(), timeout=0.5)
            except TimeoutError:
                if not self.is_running:
                    break

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Yield individual change events in arrival order."""
        async for batch in self.batches():
            for event in batch:
                yield event

    async def emit(self, event: ChangeEvent) -> None:
        """Invoke the handlers connected to ``event.kind``."""
        for handler in tuple(self._handlers[event.kind]):
            result = handler(event.path)
            if inspect.isawaitable(result):
                await result

    async def _dispatch(self) -> None:
        async for event in self.changes():
            try:
                await self.emit(event)
            except Exception as exc:
                print(f"  Watch handler error ({event.path.name}): {exc}", file=sys.stderr)

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and hand batches to the event loop."""
        from watchfiles import watch

        for raw_changes in watch(
            self._root,
            watch_filter=self._filter,
            stop_event=self._stop_event,
            debounce=self._debounce,
            step=100,
        ):
            batch = tuple(
                ChangeEvent(path=Path(path_str), kind=_CHANGE_KIND_MAP.get(change, "change"))
                for change, path_str in sorted(raw_changes, key=lambda c: c[1])
            )
            if batch and self._loop is not None and not self._loop.is_closed():
                self._loop.call_soon_threadsafe(self._queue.put_nowait, batch)
