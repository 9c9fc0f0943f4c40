"""Content layer — entries, the directory loader and file watching.

Handles reading content files into entries, nesting them into a tree,
tracking the live set during watch mode, and reporting file changes.
"""

from papyre.content.entry import Entry, entries_to_tree
from papyre.content.live_set import LiveEntrySet
from papyre.content.loader import read_entries_from_dir, read_entry
from papyre.content.watcher import ChangeEvent, ContentWatcher

__all__ = [
    "ChangeEvent",
    "ContentWatcher",
    "Entry",
    "LiveEntrySet",
    "entries_to_tree",
    "read_entries_from_dir",
    "read_entry",
]
