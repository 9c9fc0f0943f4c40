"""Output writer — persist rendered entries under a directory.

All entries are written concurrently; they target disjoint paths. Each
file's parent directories are created right before that file is written.
The core never calls this on its own: callers write a build's output
after receiving it.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from papyre._errors import WriteError
from papyre.content.entry import Entry

if TYPE_CHECKING:
    from papyre.observability.collector import BuildCollector


@dataclass(frozen=True, slots=True)
class WrittenFile:
    """Record of a single file written.

    Attributes:
        entry_path: Relative entry path.
        output_path: Absolute filesystem path of the written file.
        size_bytes: Size of the written file in bytes.

    """

    entry_path: str
    output_path: Path
    size_bytes: int


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Aggregate result of one ``write_entries`` call.

    Attributes:
        files: Written files, in entry order.
        duration_ms: Wall-clock time for the whole write.
        output_dir: Absolute path of the output directory.

    """

    files: tuple[WrittenFile, ...]
    duration_ms: float
    output_dir: Path


def _target(output_dir: Path, entry: Entry) -> Path:
    """Output path for *entry*, refusing paths that leave *output_dir*."""
    rel = Path(entry.path)
    target = (output_dir / rel).resolve()
    if rel.is_absolute() or not target.is_relative_to(output_dir):
        msg = f"Entry path {entry.path!r} escapes the output directory {output_dir}"
        raise WriteError(msg)
    return target


def _write_file(entry_path: str, path: Path, content: str) -> WrittenFile:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to write {path}: {exc}"
        raise WriteError(msg) from exc
    return WrittenFile(
        entry_path=entry_path,
        output_path=path,
        size_bytes=len(content.encode("utf-8")),
    )


async def write_entries(
    dirname: str | Path,
    entries: Iterable[Entry],
    *,
    collector: BuildCollector | None = None,
) -> WriteResult:
    """Write each entry's body to ``dirname / entry.path``.

    Raises:
        TypeError: If *dirname* is not a path or an item is not an Entry.
        WriteError: If an entry path escapes *dirname* or a write fails.

    """
    if not isinstance(dirname, (str, Path)):
        msg = f"Expected an output directory path, got {dirname!r}"
        raise TypeError(msg)
    entries = tuple(entries)
    for entry in entries:
        if not isinstance(entry, Entry) or not isinstance(entry.body, str):
            msg = f"Expected an Entry with a string body, got {entry!r}"
            raise TypeError(msg)

    start = time.perf_counter()
    output_dir = Path(dirname).resolve()
    targets = [_target(output_dir, entry) for entry in entries]

    files = await asyncio.gather(*(
        asyncio.to_thread(_write_file, entry.path, target, entry.body)
        for entry, target in zip(entries, targets, strict=True)
    ))

    if collector is not None:
        for written in files:
            collector.record_write(
                written.entry_path, str(written.output_path), size_bytes=written.size_bytes,
            )

    return WriteResult(
        files=tuple(files),
        duration_ms=(time.perf_counter() - start) * 1000,
        output_dir=output_dir,
    )
