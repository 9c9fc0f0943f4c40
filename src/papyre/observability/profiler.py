"""Build profiler — per-stage timing for build and watch cycles.

Times the ``bundle``, ``eval`` and ``build`` stages of a cycle, emits a
``BuildProfile`` event and formats the timing string delivered with every
build result::

    Bundle: 41.02ms, eval: 1.37ms, build: 8.90ms    # full cycle
    Build: 2.15ms                                   # incremental cycle

"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from papyre.observability.events import BuildProfile, now_ns

if TYPE_CHECKING:
    from papyre.observability.log import EventLog

STAGES = ("bundle", "eval", "build")


def ms(milliseconds: float) -> str:
    """Format a duration the way timing strings show it."""
    return f"{milliseconds:.2f}ms"


def format_timing(profile: BuildProfile) -> str:
    """Timing string for *profile*."""
    if profile.kind == "incremental":
        return f"Build: {ms(profile.build_ms)}"
    return (
        f"Bundle: {ms(profile.bundle_ms)}, "
        f"eval: {ms(profile.eval_ms)}, "
        f"build: {ms(profile.build_ms)}"
    )


@dataclass(slots=True)
class _Timer:
    """Accumulates timing for a named stage."""

    name: str
    _start: float = 0.0
    elapsed_ms: float = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        if self._start > 0:
            self.elapsed_ms += (time.perf_counter() - self._start) * 1000
            self._start = 0.0


class BuildProfiler:
    """Records per-stage timing for one cycle.

    Usage::

        profiler = BuildProfiler(event_log)

        profiler.begin("full")
        profiler.record("bundle", stats.time_ms)
        profiler.start("eval")
        # ... evaluate ...
        profiler.stop("eval")
        profiler.start("build")
        # ... load + render ...
        profiler.stop("build")
        profile = profiler.finish(entries_rendered=3)
        timing = format_timing(profile)

    Args:
        log: Optional event log receiving the ``BuildProfile``.
        verbose: Print a one-line summary to stderr on ``finish()``.

    """

    __slots__ = ("_kind", "_log", "_timers", "_trigger_path", "_verbose")

    def __init__(self, log: EventLog | None = None, *, verbose: bool = False) -> None:
        self._log = log
        self._verbose = verbose
        self._kind: Literal["full", "incremental"] = "full"
        self._trigger_path = ""
        self._timers = {name: _Timer(name=name) for name in STAGES}

    def begin(self, kind: Literal["full", "incremental"] = "full", trigger_path: str = "") -> None:
        """Reset all stages for a new cycle."""
        self._kind = kind
        self._trigger_path = trigger_path
        for timer in self._timers.values():
            timer.elapsed_ms = 0.0
            timer._start = 0.0

    def start(self, stage: str) -> None:
        self._timers[stage].start()

    def stop(self, stage: str) -> None:
        self._timers[stage].stop()

    def record(self, stage: str, elapsed_ms: float) -> None:
        """Set a stage measured elsewhere (e.g. the compiler's own timing)."""
        self._timers[stage].elapsed_ms = elapsed_ms

    def finish(self, *, entries_rendered: int = 0) -> BuildProfile:
        """Close the cycle, emit the ``BuildProfile`` and return it."""
        profile = BuildProfile(
            kind=self._kind,
            trigger_path=self._trigger_path,
            entries_rendered=entries_rendered,
            bundle_ms=self._timers["bundle"].elapsed_ms,
            eval_ms=self._timers["eval"].elapsed_ms,
            build_ms=self._timers["build"].elapsed_ms,
            timestamp_ns=now_ns(),
        )
        if self._log is not None:
            self._log.append(profile)
        if self._verbose:
            self._print_summary(profile)
        return profile

    def _print_summary(self, p: BuildProfile) -> None:
        """Print a one-line timing summary to stderr."""
        name = p.trigger_path.rsplit("/", 1)[-1] if p.trigger_path else "bundle"
        entries = "entry" if p.entries_rendered == 1 else "entries"
        print(
            f"  {name} -> {p.entries_rendered} {entries} rendered ({format_timing(p)})",
            file=sys.stderr,
        )
