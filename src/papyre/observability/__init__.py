"""Build observability — events, event log, collector and profiler.

Quick Start:
    >>> from papyre.observability import BuildCollector, EventLog
    >>> log = EventLog()
    >>> collector = BuildCollector(log)
    >>> # Pass collector to papyre.build(...) or papyre.watch(...)
    >>> # and inspect log.query(event_type=EntryRendered) afterwards.

"""

from papyre.observability.collector import BuildCollector
from papyre.observability.events import (
    BuildProfile,
    BundleCompiled,
    EntryRead,
    EntryRendered,
    OutputWritten,
    StackEvent,
    now_ns,
)
from papyre.observability.log import EventLog
from papyre.observability.profiler import BuildProfiler, format_timing, ms

__all__ = [
    "BuildCollector",
    "BuildProfile",
    "BuildProfiler",
    "BundleCompiled",
    "EntryRead",
    "EntryRendered",
    "EventLog",
    "OutputWritten",
    "StackEvent",
    "format_timing",
    "ms",
    "now_ns",
]
