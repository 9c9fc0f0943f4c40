"""Live entry set — the current content of a watched directory.

Owned by the watch orchestrator. Holds at most one entry per relative path
and keeps insertion order. Readers only ever see immutable snapshots.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from papyre._types import EntryPath
    from papyre.content.entry import Entry


class LiveEntrySet:
    """Ordered, path-unique collection of entries.

    Mutations replace the internal tuple wholesale, so a snapshot handed to a
    render pass is never affected by later changes.

    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self._entries: tuple[Entry, ...] = ()
        self.reset(entries)

    def reset(self, entries: Iterable[Entry]) -> None:
        """Replace the whole set. Later duplicates of a path win, in place."""
        self._entries = ()
        for entry in entries:
            self.upsert(entry)

    def upsert(self, entry: Entry) -> bool:
        """Replace the entry with the same path, or append. Returns True if appended."""
        for i, existing in enumerate(self._entries):
            if existing.path == entry.path:
                self._entries = (*self._entries[:i], entry, *self._entries[i + 1:])
                return False
        self._entries = (*self._entries, entry)
        return True

    def remove(self, path: EntryPath) -> bool:
        """Drop the entry at *path*. Returns True if something was removed."""
        kept = tuple(e for e in self._entries if e.path != path)
        removed = len(kept) != len(self._entries)
        self._entries = kept
        return removed

    def snapshot(self) -> tuple[Entry, ...]:
        return self._entries

    @property
    def paths(self) -> tuple[EntryPath, ...]:
        return tuple(e.path for e in self._entries)

    def __contains__(self, path: object) -> bool:
        return any(e.path == path for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)
