"""Event log — bounded, lock-protected store of build events.

Keeps the most recent ``max_events`` events of a build or watch session so
they can be inspected after the fact (per-entry render times, which file
triggered which cycle, how long compiles took).

Thread Safety:
    Every method takes ``threading.Lock``. The compiler records from worker
    threads while the event loop records render events.

"""

import threading
from collections import Counter, deque
from typing import Any

from papyre.observability.events import BuildProfile, StackEvent


def _event_path(event: StackEvent) -> str:
    return getattr(event, "path", None) or getattr(event, "trigger_path", None) or ""


class EventLog:
    """Ring buffer of events with simple filtering.

    Args:
        max_events: Oldest events are discarded beyond this many.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: StackEvent) -> None:
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        path: str | None = None,
        since_ns: int = 0,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Newest-first events matching every given filter.

        ``path`` matches as a substring of the event's entry or trigger path.
        """
        with self._lock:
            snapshot = list(self._events)

        matches: list[StackEvent] = []
        for event in reversed(snapshot):
            if len(matches) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if since_ns and event.timestamp_ns < since_ns:
                continue
            if path is not None and path not in _event_path(event):
                continue
            matches.append(event)
        return matches

    def recent(self, n: int = 20) -> list[StackEvent]:
        """The *n* most recent events, oldest first."""
        with self._lock:
            items = list(self._events)
        return items[-n:] if n > 0 else []

    def last_profile(self) -> BuildProfile | None:
        """The most recent BuildProfile, if any cycle has finished."""
        profiles = self.query(event_type=BuildProfile, limit=1)
        return profiles[0] if profiles else None  # type: ignore[return-value]

    def clear(self) -> int:
        """Drop all events; returns how many were dropped."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
        return count

    def stats(self) -> dict[str, Any]:
        with self._lock:
            counts = Counter(type(event).__name__ for event in self._events)
            total = len(self._events)
        return {"total": total, "max_events": self._max_events, "by_type": dict(counts)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
