"""In-memory filesystem for compiled bundles.

A flat POSIX path -> text store. Compilation output is swapped in
atomically with :meth:`MemoryFS.replace_all`, so a reader never sees half of
one compilation and half of the next within a single call.

Thread Safety:
    All methods are protected by a ``threading.Lock``. The compiler writes
    from a worker thread while the event loop reads.

"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from pathlib import PurePosixPath


def _key(path: str | PurePosixPath) -> str:
    key = str(PurePosixPath(path))
    if not key.startswith("/"):
        msg = f"MemoryFS paths must be absolute, got {path!r}"
        raise ValueError(msg)
    return key


class MemoryFS:
    """Virtual filesystem holding text files keyed by absolute POSIX path."""

    __slots__ = ("_files", "_lock")

    def __init__(self, files: Mapping[str, str] | None = None) -> None:
        self._files: dict[str, str] = {}
        self._lock = threading.Lock()
        if files:
            self.replace_all(files)

    def write_text(self, path: str | PurePosixPath, text: str) -> None:
        with self._lock:
            self._files[_key(path)] = text

    def read_text(self, path: str | PurePosixPath) -> str:
        """Return the file at *path*. Raises FileNotFoundError if absent."""
        key = _key(path)
        with self._lock:
            try:
                return self._files[key]
            except KeyError:
                raise FileNotFoundError(key) from None

    def is_file(self, path: str | PurePosixPath) -> bool:
        key = _key(path)
        with self._lock:
            return key in self._files

    def is_dir(self, path: str | PurePosixPath) -> bool:
        prefix = _key(path).rstrip("/") + "/"
        with self._lock:
            return any(name.startswith(prefix) for name in self._files)

    def listdir(self) -> list[str]:
        """All file paths, sorted."""
        with self._lock:
            return sorted(self._files)

    def replace_all(self, files: Mapping[str, str]) -> None:
        """Swap the whole content for *files* in one step."""
        fresh = {_key(path): text for path, text in files.items()}
        with self._lock:
            self._files = fresh

    def clear(self) -> None:
        with self._lock:
            self._files = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)
