"""Tests for papyre.observability — events, event log, collector and profiler."""

from __future__ import annotations

import re

import pytest

from papyre.compiler.bundler import CompileStats
from papyre.observability import (
    BuildCollector,
    BuildProfile,
    BuildProfiler,
    BundleCompiled,
    EntryRead,
    EntryRendered,
    EventLog,
    OutputWritten,
    format_timing,
    ms,
    now_ns,
)


def _rendered(path: str, ts: int = 0) -> EntryRendered:
    return EntryRendered(path=path, function="render", duration_ms=1.0, timestamp_ns=ts or now_ns())


def _profile(kind: str = "full", **overrides: object) -> BuildProfile:
    fields = {
        "kind": kind,
        "trigger_path": "",
        "entries_rendered": 2,
        "bundle_ms": 41.024,
        "eval_ms": 1.366,
        "build_ms": 8.9,
        "timestamp_ns": now_ns(),
    }
    fields.update(overrides)
    return BuildProfile(**fields)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    def test_frozen(self) -> None:
        event = _rendered("a.md")
        with pytest.raises(AttributeError):
            event.path = "b.md"  # type: ignore[misc]

    def test_now_ns_is_monotonic(self) -> None:
        assert now_ns() <= now_ns()


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    def test_query_newest_first(self) -> None:
        log = EventLog()
        for path in ("a.md", "b.md", "c.md"):
            log.append(_rendered(path))
        assert [e.path for e in log.query()] == ["c.md", "b.md", "a.md"]

    def test_query_filters(self) -> None:
        log = EventLog()
        log.append(_rendered("docs/a.md", ts=10))
        log.append(EntryRead(path="docs/a.md", kind="incremental", count=1, timestamp_ns=20))
        log.append(_rendered("b.md", ts=30))

        assert [e.path for e in log.query(event_type=EntryRendered)] == ["b.md", "docs/a.md"]
        assert len(log.query(path="docs/")) == 2
        assert [e.timestamp_ns for e in log.query(since_ns=20)] == [30, 20]
        assert len(log.query(limit=1)) == 1

    def test_bounded(self) -> None:
        log = EventLog(max_events=2)
        for path in ("a.md", "b.md", "c.md"):
            log.append(_rendered(path))
        assert len(log) == 2
        assert [e.path for e in log.recent()] == ["b.md", "c.md"]

    def test_recent_zero(self) -> None:
        log = EventLog()
        log.append(_rendered("a.md"))
        assert log.recent(0) == []

    def test_last_profile(self) -> None:
        log = EventLog()
        assert log.last_profile() is None
        profile = _profile()
        log.append(profile)
        log.append(_rendered("a.md"))
        assert log.last_profile() is profile

    def test_clear_and_stats(self) -> None:
        log = EventLog(max_events=5)
        log.append(_rendered("a.md"))
        log.append(_profile())
        assert log.stats() == {
            "total": 2,
            "max_events": 5,
            "by_type": {"EntryRendered": 1, "BuildProfile": 1},
        }
        assert log.clear() == 2
        assert len(log) == 0


# ---------------------------------------------------------------------------
# BuildCollector
# ---------------------------------------------------------------------------


class TestBuildCollector:
    def test_creates_log(self) -> None:
        assert isinstance(BuildCollector().log, EventLog)

    def test_record_compile(self) -> None:
        collector = BuildCollector()
        collector.record_compile(
            CompileStats(time_ms=5.0, modules=("site.py", "helpers.py"), externals=("yaml",), hash="abc"),
        )
        (event,) = collector.log.query(event_type=BundleCompiled)
        assert (event.modules, event.externals, event.hash, event.compile_ms) == (2, 1, "abc", 5.0)

    def test_record_read_render_write(self) -> None:
        log = EventLog()
        collector = BuildCollector(log)
        collector.record_read("a.md", kind="removed", count=0)
        collector.record_render("a.md", "render_a", duration_ms=2.0)
        collector.record_write("a.md", "/dist/a.md", size_bytes=3)
        read, rendered, written = log.recent()
        assert isinstance(read, EntryRead) and read.kind == "removed"
        assert isinstance(rendered, EntryRendered) and rendered.function == "render_a"
        assert isinstance(written, OutputWritten) and written.size_bytes == 3


# ---------------------------------------------------------------------------
# Profiler
# ---------------------------------------------------------------------------


class TestFormatTiming:
    def test_ms(self) -> None:
        assert ms(1.005) in ("1.00ms", "1.01ms")
        assert ms(12) == "12.00ms"

    def test_full(self) -> None:
        assert format_timing(_profile()) == "Bundle: 41.02ms, eval: 1.37ms, build: 8.90ms"

    def test_incremental(self) -> None:
        assert format_timing(_profile("incremental", build_ms=2.149)) == "Build: 2.15ms"


class TestBuildProfiler:
    def test_stages(self) -> None:
        log = EventLog()
        profiler = BuildProfiler(log)
        profiler.begin("full")
        profiler.record("bundle", 12.5)
        profiler.start("eval")
        profiler.stop("eval")
        profiler.start("build")
        profiler.stop("build")
        profile = profiler.finish(entries_rendered=3)

        assert profile.kind == "full"
        assert profile.bundle_ms == 12.5
        assert profile.eval_ms >= 0
        assert profile.entries_rendered == 3
        assert log.last_profile() is profile

    def test_begin_resets(self) -> None:
        profiler = BuildProfiler()
        profiler.begin("full")
        profiler.record("bundle", 99.0)
        profiler.finish()
        profiler.begin("incremental", "docs/a.md")
        profile = profiler.finish()
        assert profile.bundle_ms == 0.0
        assert profile.trigger_path == "docs/a.md"
        assert profile.kind == "incremental"

    def test_stop_without_start(self) -> None:
        profiler = BuildProfiler()
        profiler.begin()
        profiler.stop("build")
        assert profiler.finish().build_ms == 0.0

    def test_verbose_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        profiler = BuildProfiler(verbose=True)
        profiler.begin("incremental", "docs/a.md")
        profiler.finish(entries_rendered=1)
        err = capsys.readouterr().err
        assert re.search(r"a\.md -> 1 entry rendered \(Build: \d+\.\d{2}ms\)", err)
