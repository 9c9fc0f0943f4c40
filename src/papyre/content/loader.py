"""Directory entry loader — read content files into entries.

Every file under the entry directory becomes an Entry: its front matter
(split with python-frontmatter) becomes the metadata, the rest the body.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import frontmatter
import yaml

from papyre._errors import EntryReadError
from papyre.content.entry import Entry

# Directory names never treated as content
_SKIP_DIRS = frozenset({"__pycache__"})


def file_paths(dirname: Path) -> list[Path]:
    """All files below *dirname*, sorted, skipping bytecode caches."""
    return sorted(
        path
        for path in dirname.rglob("*")
        if path.is_file() and not _SKIP_DIRS.intersection(path.relative_to(dirname).parts)
    )


def relative_path(dirname: Path, path: Path) -> str:
    """POSIX path of *path* relative to *dirname* (the entry's identity)."""
    return path.relative_to(dirname).as_posix()


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split *text* into front matter and body.

    The body is everything after the closing delimiter line, verbatim.
    Text without a complete front matter block is all body.
    """
    handler = frontmatter.detect_format(text, frontmatter.handlers)
    if handler is None:
        return {}, text
    try:
        raw, body = handler.split(text)
    except ValueError:
        # Opening delimiter without a closing one.
        return {}, text

    metadata = handler.load(raw)
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, Mapping):
        msg = f"Front matter must be a mapping, got {type(metadata).__name__}"
        raise ValueError(msg)
    # The delimiter pattern stops short of the line break ending the closing line.
    return dict(metadata), body.removeprefix("\n")


def parse_entry(rel_path: str, text: str) -> Entry:
    """Split raw *text* into metadata and body."""
    metadata, body = split_front_matter(text)
    return Entry(path=rel_path, body=body, metadata=metadata)


async def read_entry(dirname: Path, path: Path) -> Entry:
    """Read and split one content file.

    Raises:
        EntryReadError: If the file cannot be read or its front matter
            parsed. ``exc.missing`` is True when the file is gone.

    """
    rel = relative_path(dirname, path)
    try:
        # Undecodable bytes (images, fonts) are replaced rather than failing the load.
        text = await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")
        return parse_entry(rel, text)
    except (OSError, yaml.YAMLError, TypeError, ValueError) as exc:
        raise EntryReadError(str(path), exc) from exc


async def read_entries_from_dir(dirname: str | Path) -> list[Entry]:
    """Read every file below *dirname* concurrently, in listing order."""
    if not isinstance(dirname, (str, Path)):
        msg = f"Expected a directory path, got {dirname!r}"
        raise TypeError(msg)
    root = Path(dirname).resolve()
    paths = await asyncio.to_thread(file_paths, root)
    return list(await asyncio.gather(*(read_entry(root, path) for path in paths)))
