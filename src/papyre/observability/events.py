"""Unified event model for build observability.

Defines event types for the compile, content and render stages.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Compile events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BundleCompiled:
    """The bundle was compiled.

    Attributes:
        modules: Number of inlined modules.
        externals: Number of requests left to the host import system.
        hash: Bundle content hash.
        compile_ms: Compile time in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    modules: int
    externals: int
    hash: str
    compile_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Content events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EntryRead:
    """Entries were (re)read from disk.

    Attributes:
        path: Entry path for a single read, or the directory for a full load.
        kind: ``full`` for a directory load, ``incremental`` for one file,
            ``removed`` when the file was gone.
        count: Number of entries read.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    kind: Literal["full", "incremental", "removed"]
    count: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Render events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EntryRendered:
    """One entry was rendered.

    Attributes:
        path: Entry path.
        function: Name of the render function.
        duration_ms: Render time in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    function: str
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class OutputWritten:
    """A rendered entry was written to disk.

    Attributes:
        path: Entry path.
        target: Absolute output file path.
        size_bytes: Bytes written.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    target: str
    size_bytes: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class BuildProfile:
    """Per-stage timing of one build or watch cycle.

    Attributes:
        kind: ``full`` (compile, evaluate, render) or ``incremental`` (render only).
        trigger_path: File that triggered an incremental cycle, else ``""``.
        entries_rendered: Number of entries in the output.
        bundle_ms: Compile time.
        eval_ms: Bundle evaluation time.
        build_ms: Entry loading plus rendering time.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: Literal["full", "incremental"]
    trigger_path: str
    entries_rendered: int
    bundle_ms: float
    eval_ms: float
    build_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type StackEvent = (
    BundleCompiled
    | EntryRead
    | EntryRendered
    | OutputWritten
    | BuildProfile
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
