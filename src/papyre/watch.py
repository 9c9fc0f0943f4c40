"""Watch mode — incremental rebuilds driven by two event sources.

Two independent producers feed the orchestrator:

- the compiler's watch mode reports every recompilation of the bundle;
- a :class:`ContentWatcher` reports per-path changes in the entry directory.

Both are funnelled through one :class:`SingleFlightQueue`, so only one
render pass reads or mutates the live entry set at a time. State machine::

    AWAITING_FIRST_BUILD --recompiled--> BUILDING --done--> IDLE
    IDLE --recompiled / file changed--> BUILDING --done--> IDLE
    any --deinit()--> STOPPED

File events are ignored until the first successful full build has been
reported; only then are the watcher's ``add``/``change``/``unlink``
handlers connected. Code files are left to the compiler's own cycle.
"""

from __future__ import annotations

import asyncio
import enum
import sys
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any

from papyre._errors import CompileError
from papyre.compiler.bundler import Compiler
from papyre.config import reconcile
from papyre.content.loader import relative_path
from papyre.content.watcher import ContentWatcher
from papyre.pipeline import BuildSession, deliver
from papyre.singleflight import SingleFlightQueue

if TYPE_CHECKING:
    from collections.abc import Coroutine, Mapping

    from papyre._types import ChangeKind, OnBuilt
    from papyre.compiler.bundler import CompileStats, Watching
    from papyre.compiler.sandbox import Sandbox
    from papyre.config import BuildConfig
    from papyre.content.entry import Entry
    from papyre.observability.collector import BuildCollector
    from papyre.pipeline import BuildResult
    from papyre.render.publics import Publics

# Queue key shared by all compiler notifications: the latest one wins.
_COMPILE_KEY = "compile"


class WatchState(enum.Enum):
    AWAITING_FIRST_BUILD = "awaiting_first_build"
    BUILDING = "building"
    IDLE = "idle"
    STOPPED = "stopped"


class WatchOrchestrator:
    """Reconciles recompiles and file changes into serialized render passes.

    Args:
        config: Effective build configuration.
        on_built: Callback receiving ``(error, None)`` or ``(None, result)``
            after every pass.
        compiler: Compiler to put in watch mode. Created from *config* when omitted.
        watcher: Content watcher for the entry directory. Created when omitted.
        sandbox: Sandbox for evaluating bundles. Created when omitted.
        collector: Optional telemetry collector.
        verbose: Print a timing line to stderr after every pass.

    """

    def __init__(
        self,
        config: BuildConfig,
        on_built: OnBuilt,
        *,
        compiler: Compiler | None = None,
        watcher: ContentWatcher | None = None,
        sandbox: Sandbox | None = None,
        collector: BuildCollector | None = None,
        verbose: bool = False,
    ) -> None:
        self.config = config
        self._on_built = on_built
        self.watcher = watcher if watcher is not None else ContentWatcher(
            config.entry_dir, debounce=config.debounce_ms,
        )
        self._session = BuildSession(
            config,
            compiler=compiler if compiler is not None else Compiler(config),
            sandbox=sandbox,
            collector=collector,
            verbose=verbose,
        )
        self._queue = SingleFlightQueue(name="papyre-watch")
        self._state = WatchState.AWAITING_FIRST_BUILD
        self._connected = False
        self.compiler_watching: Watching | None = None

    @property
    def compiler(self) -> Compiler:
        return self._session.compiler

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def connected(self) -> bool:
        """Whether file events are wired to incremental rebuilds."""
        return self._connected

    @property
    def entries(self) -> tuple[Entry, ...]:
        """Snapshot of the live entry set."""
        return self._session.live.snapshot()

    @property
    def publics(self) -> Publics | None:
        return self._session.publics

    def start(self) -> None:
        """Arm the content watcher and put the compiler into watch mode."""
        self.watcher.start()
        self.compiler_watching = self.compiler.watch(self.handle_compiled)

    async def idle(self) -> None:
        """Wait until every queued pass has finished."""
        await self._queue.join()

    def deinit(self) -> None:
        """Stop both event sources. A pass already running is not reported."""
        self._state = WatchState.STOPPED
        self.watcher.stop()
        if self.compiler_watching is not None:
            self.compiler_watching.close()
        self._queue.close()
        self._session.close()

    # ------------------------------------------------------------------
    # Event sources
    # ------------------------------------------------------------------

    def handle_compiled(self, error: BaseException | None, stats: CompileStats | None) -> None:
        """Compiler notification: queue a full rebuild, or the compile error."""
        if self._state is WatchState.STOPPED:
            return
        if error is not None:
            self._queue.submit(_COMPILE_KEY, partial(self._report, error, None))
            return
        if stats is None:
            msg = "Compiler reported neither an error nor stats"
            raise CompileError(msg)
        self._queue.submit(_COMPILE_KEY, partial(self._rebuild, stats))

    def handle_path_event(self, kind: ChangeKind, path: str | Path) -> bool:
        """File notification: queue an incremental rebuild for a content file.

        Returns True if a rebuild was queued (or coalesced into a pending one).

        """
        if not self._connected or self._state is WatchState.STOPPED:
            return False
        path = Path(path)
        if path.suffix in self.config.code_extensions or path.is_dir():
            return False
        try:
            rel = relative_path(self.config.entry_dir, path)
        except ValueError:
            return False
        self._queue.submit(("entry", rel), partial(self._rebuild_entry, path))
        return True

    # ------------------------------------------------------------------
    # Passes (run by the queue, never concurrently)
    # ------------------------------------------------------------------

    async def _rebuild(self, stats: CompileStats) -> None:
        await self._run_pass(self._session.full(stats), connect=True)

    async def _rebuild_entry(self, path: Path) -> None:
        await self._run_pass(self._session.incremental(path), connect=False)

    async def _run_pass(self, work: Coroutine[Any, Any, BuildResult], *, connect: bool) -> None:
        if self._state is WatchState.STOPPED:
            work.close()
            return
        self._state = WatchState.BUILDING
        try:
            try:
                result = await work
            except Exception as exc:
                await self._report(exc, None)
                return
            await self._report(None, result)
            if connect and not self._connected and self._state is not WatchState.STOPPED:
                self._connect()
        finally:
            if self._state is WatchState.BUILDING:
                self._state = WatchState.IDLE

    def _connect(self) -> None:
        self._connected = True
        for kind in ("add", "change", "unlink"):
            self.watcher.on(kind, partial(self.handle_path_event, kind))

    async def _report(self, error: BaseException | None, result: BuildResult | None) -> None:
        if self._state is WatchState.STOPPED:
            return
        try:
            await deliver(self._on_built, error, result)
        except Exception as exc:
            print(f"  on_built error: {exc}", file=sys.stderr)


@dataclass(frozen=True, slots=True)
class WatchHandle:
    """Controls for a running watch session.

    Attributes:
        content_watcher: File-system watcher for the entry directory.
        compiler_watching: The compiler's continuous compilation.
        orchestrator: The state machine tying both together.

    """

    content_watcher: ContentWatcher
    compiler_watching: Watching | None
    orchestrator: WatchOrchestrator

    def deinit(self) -> None:
        """Stop both watchers; no callbacks fire afterwards."""
        self.orchestrator.deinit()


def watch(
    config: Mapping[str, Any],
    on_built: OnBuilt,
    *,
    collector: BuildCollector | None = None,
    verbose: bool = False,
) -> WatchHandle:
    """Start watch mode. Must be called from a running event loop.

    Raises:
        ConfigError: If *config* is invalid.
        TypeError: If *on_built* is not callable.
        RuntimeError: If no event loop is running.

    """
    if not callable(on_built):
        msg = f"on_built must be callable, got {on_built!r}"
        raise TypeError(msg)
    build_config = reconcile(config)
    asyncio.get_running_loop()

    orchestrator = WatchOrchestrator(build_config, on_built, collector=collector, verbose=verbose)
    orchestrator.start()
    return WatchHandle(
        content_watcher=orchestrator.watcher,
        compiler_watching=orchestrator.compiler_watching,
        orchestrator=orchestrator,
    )
