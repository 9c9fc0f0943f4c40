"""Build pipeline — compile, evaluate, load and render.

``build()`` is the one-shot mode::

    async def on_built(error, result):
        if error is not None:
            raise SystemExit(str(error))
        await write_entries("dist", result.entries)

    await papyre.build({"entry": "site/site.py"}, on_built)

The callback is the single reporting surface. It is invoked exactly once
per ``build()`` call, either as ``on_built(error, None)`` or as
``on_built(None, BuildResult(...))``. Configuration errors are raised
directly, before anything is compiled.

:class:`BuildSession` holds the state a watch session keeps between passes
(the compiler, the evaluated publics, the live entry set) and runs the full
and incremental passes for both modes.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from papyre._errors import CompileError, EntryReadError, PapyreError
from papyre.compiler.bundler import Compiler
from papyre.compiler.sandbox import Sandbox
from papyre.config import reconcile
from papyre.content.live_set import LiveEntrySet
from papyre.content.loader import read_entries_from_dir, read_entry, relative_path
from papyre.observability.profiler import BuildProfiler, format_timing
from papyre.render.dispatch import build_entries

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from papyre._types import OnBuilt
    from papyre.compiler.bundler import CompileStats
    from papyre.config import BuildConfig
    from papyre.content.entry import Entry
    from papyre.observability.collector import BuildCollector
    from papyre.render.publics import Publics


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of one successful render pass.

    Attributes:
        entries: Rendered entries, in source order. Entries without a render
            function are not included.
        timing: Human-readable stage timing, e.g.
            ``"Bundle: 41.02ms, eval: 1.37ms, build: 8.90ms"``.

    """

    entries: tuple[Entry, ...]
    timing: str


async def deliver(
    on_built: OnBuilt,
    error: BaseException | None,
    result: BuildResult | None = None,
) -> None:
    """Invoke *on_built* and await it if it returned an awaitable."""
    outcome = on_built(error, result)
    if inspect.isawaitable(outcome):
        await outcome


class BuildSession:
    """Compiler, sandbox, publics and live entries for one build or watch session.

    Args:
        config: Effective build configuration.
        compiler: Compiler to read bundles from. Created from *config* when omitted.
        sandbox: Sandbox evaluating bundles. Created when omitted.
        collector: Optional telemetry collector.
        verbose: Print a timing line to stderr after every pass.

    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        compiler: Compiler | None = None,
        sandbox: Sandbox | None = None,
        collector: BuildCollector | None = None,
        verbose: bool = False,
    ) -> None:
        self.config = config
        self.compiler = compiler if compiler is not None else Compiler(config)
        self.sandbox = sandbox if sandbox is not None else Sandbox()
        self.collector = collector
        self.live = LiveEntrySet()
        self.publics: Publics | None = None
        self._profiler = BuildProfiler(
            collector.log if collector is not None else None, verbose=verbose,
        )

    async def full(self, stats: CompileStats) -> BuildResult:
        """Evaluate the compiled bundle, reload every entry and render them all.

        Publics and the live set are replaced as soon as each is available,
        so a render failure still leaves the session on the new bundle.

        """
        profiler = self._profiler
        profiler.begin("full")
        profiler.record("bundle", stats.time_ms)
        if self.collector is not None:
            self.collector.record_compile(stats)

        profiler.start("eval")
        self.publics = self.sandbox.evaluate(
            self.compiler.output_filesystem,
            self.config.bundle_path,
            self.config.module_paths,
        )
        profiler.stop("eval")

        profiler.start("build")
        self.live.reset(await read_entries_from_dir(self.config.entry_dir))
        if self.collector is not None:
            self.collector.record_read(str(self.config.entry_dir), kind="full", count=len(self.live))
        output = await build_entries(self.live.snapshot(), self.publics, collector=self.collector)
        profiler.stop("build")

        profile = profiler.finish(entries_rendered=len(output))
        return BuildResult(entries=tuple(output), timing=format_timing(profile))

    async def incremental(self, path: Path) -> BuildResult:
        """Re-read one changed file into the live set and re-render with the current publics.

        A file that no longer exists is removed from the live set.

        """
        if self.publics is None:
            msg = "Cannot rebuild incrementally before the bundle has been evaluated"
            raise PapyreError(msg)

        rel = relative_path(self.config.entry_dir, path)
        profiler = self._profiler
        profiler.begin("incremental", rel)
        profiler.start("build")
        try:
            entry = await read_entry(self.config.entry_dir, path)
        except EntryReadError as exc:
            if not exc.missing:
                raise
            self.live.remove(rel)
            if self.collector is not None:
                self.collector.record_read(rel, kind="removed", count=0)
        else:
            self.live.upsert(entry)
            if self.collector is not None:
                self.collector.record_read(rel, kind="incremental")

        output = await build_entries(self.live.snapshot(), self.publics, collector=self.collector)
        profiler.stop("build")

        profile = profiler.finish(entries_rendered=len(output))
        return BuildResult(entries=tuple(output), timing=format_timing(profile))

    def close(self) -> None:
        self.sandbox.close()


async def build(
    config: Mapping[str, Any],
    on_built: OnBuilt,
    *,
    collector: BuildCollector | None = None,
    verbose: bool = False,
) -> None:
    """Compile the bundle once, render every entry and report through *on_built*.

    Raises:
        ConfigError: If *config* is invalid (before compiling).
        TypeError: If *on_built* is not callable.

    Exceptions raised by *on_built* itself propagate to the caller.

    """
    if not callable(on_built):
        msg = f"on_built must be callable, got {on_built!r}"
        raise TypeError(msg)
    session = BuildSession(reconcile(config), collector=collector, verbose=verbose)

    try:
        stats = await asyncio.to_thread(session.compiler.run)
    except CompileError as exc:
        await deliver(on_built, exc)
        return

    error: Exception | None = None
    result: BuildResult | None = None
    try:
        result = await session.full(stats)
    except Exception as exc:
        error = exc
    finally:
        session.close()

    await deliver(on_built, error, result)
