"""Tests for papyre.singleflight — serialized, coalescing job queue."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import pytest

from papyre.singleflight import SingleFlightQueue


def _job(log: list[str], name: str) -> Callable[[], Awaitable[None]]:
    async def run() -> None:
        log.append(f"start {name}")
        await asyncio.sleep(0)
        log.append(f"end {name}")

    return run


class TestSingleFlightQueue:
    @pytest.mark.asyncio
    async def test_runs_jobs_one_at_a_time_in_order(self) -> None:
        log: list[str] = []
        queue = SingleFlightQueue()
        assert queue.submit("a", _job(log, "a")) is True
        assert queue.submit("b", _job(log, "b")) is True
        await queue.join()
        assert log == ["start a", "end a", "start b", "end b"]

    @pytest.mark.asyncio
    async def test_pending_key_coalesces_in_place(self) -> None:
        log: list[str] = []
        queue = SingleFlightQueue()
        queue.submit("a", _job(log, "a1"))
        queue.submit("b", _job(log, "b"))
        assert queue.submit("a", _job(log, "a2")) is False
        assert queue.pending_keys == ("a", "b")
        await queue.join()
        assert log == ["start a2", "end a2", "start b", "end b"]

    @pytest.mark.asyncio
    async def test_running_key_queues_one_follow_up(self) -> None:
        log: list[str] = []
        queue = SingleFlightQueue()

        async def first() -> None:
            log.append("first")
            assert queue.busy
            queue.submit("a", _job(log, "again"))
            queue.submit("a", _job(log, "latest"))

        queue.submit("a", first)
        await queue.join()
        assert log == ["first", "start latest", "end latest"]
        assert not queue.busy

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_the_queue(self, capsys: pytest.CaptureFixture[str]) -> None:
        log: list[str] = []
        queue = SingleFlightQueue()

        async def broken() -> None:
            raise RuntimeError("boom")

        queue.submit("bad", broken)
        queue.submit("good", _job(log, "good"))
        await queue.join()
        assert log == ["start good", "end good"]
        assert "Queued job 'bad' failed: boom" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_close_drops_pending_and_refuses_new(self) -> None:
        log: list[str] = []
        queue = SingleFlightQueue()
        queue.submit("a", _job(log, "a"))
        queue.close()
        assert queue.closed
        assert queue.pending_keys == ()
        assert queue.submit("b", _job(log, "b")) is False
        await queue.join()
        await asyncio.sleep(0)
        assert log == []

    @pytest.mark.asyncio
    async def test_close_lets_running_job_finish(self) -> None:
        log: list[str] = []
        queue = SingleFlightQueue()
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow() -> None:
            started.set()
            await release.wait()
            log.append("slow done")

        queue.submit("slow", slow)
        queue.submit("next", _job(log, "next"))
        await started.wait()
        queue.close()
        release.set()
        await queue.join()
        assert log == ["slow done"]

    @pytest.mark.asyncio
    async def test_join_when_idle_returns_immediately(self) -> None:
        await asyncio.wait_for(SingleFlightQueue().join(), timeout=1)

    @pytest.mark.asyncio
    async def test_restarts_after_draining(self) -> None:
        log: list[str] = []
        queue = SingleFlightQueue()
        queue.submit("a", _job(log, "a"))
        await queue.join()
        queue.submit("a", _job(log, "b"))
        await queue.join()
        assert log == ["start a", "end a", "start b", "end b"]
