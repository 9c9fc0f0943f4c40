"""Build collector — the recording API the pipeline talks to.

Wraps an :class:`EventLog` with one method per event kind so the compile,
load, render and write stages record telemetry without building event
objects themselves.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from papyre.observability.events import (
    BuildProfile,
    BundleCompiled,
    EntryRead,
    EntryRendered,
    OutputWritten,
    now_ns,
)
from papyre.observability.log import EventLog

if TYPE_CHECKING:
    from papyre.compiler.bundler import CompileStats


class BuildCollector:
    """Records build events into an event log.

    Args:
        log: The EventLog to store events in. A fresh one is created when omitted.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Compile -----

    def record_compile(self, stats: CompileStats) -> None:
        self._log.append(
            BundleCompiled(
                modules=len(stats.modules),
                externals=len(stats.externals),
                hash=stats.hash,
                compile_ms=stats.time_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Content -----

    def record_read(self, path: str, *, kind: str = "full", count: int = 1) -> None:
        self._log.append(
            EntryRead(
                path=path,
                kind=kind,  # type: ignore[arg-type]
                count=count,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Render / write -----

    def record_render(self, path: str, function: str, *, duration_ms: float = 0.0) -> None:
        self._log.append(
            EntryRendered(
                path=path,
                function=function,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_write(self, path: str, target: str, *, size_bytes: int = 0) -> None:
        self._log.append(
            OutputWritten(
                path=path,
                target=target,
                size_bytes=size_bytes,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Profiles -----

    def record_profile(self, profile: BuildProfile) -> None:
        self._log.append(profile)
