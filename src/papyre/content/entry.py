"""Entry model — one content file as relative path, body and front matter.

Entries are frozen snapshots. Rendering never mutates an entry; it derives a
new one with :meth:`Entry.with_body`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from papyre._types import EntryPath, Metadata, Tree

# Front matter key holding papyre's own per-entry settings
METADATA_KEY = "papyre"


@dataclass(frozen=True, slots=True)
class Entry:
    """A single content item.

    Attributes:
        path: Path relative to the entry directory, POSIX separators.
            Unique within a build.
        body: File contents after the front matter (or rendered output).
        metadata: Front matter attributes. Read-only.

    """

    path: EntryPath
    body: str
    metadata: Metadata = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __getitem__(self, key: str) -> Any:
        return self.as_dict()[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.as_dict().get(key, default)

    def with_body(self, body: str) -> Entry:
        """Return a copy of this entry whose body is *body*."""
        return replace(self, body=body)

    def as_dict(self) -> dict[str, Any]:
        """Flat view with the metadata merged over ``path`` and ``body``."""
        return {"path": self.path, "body": self.body, **self.metadata}

    @property
    def render_function_name(self) -> str | None:
        """Name of the render function declared in ``papyre.fn``, if any."""
        settings = self.metadata.get(METADATA_KEY)
        if not isinstance(settings, Mapping):
            return None
        return settings.get("fn") or None


def entries_to_tree(entries: Iterable[Entry]) -> Tree:
    """Nest *entries* by path segment.

    ``docs/guide/intro.md`` lands at ``tree["docs"]["guide"]["intro.md"]``.
    A later entry whose path runs through an earlier leaf replaces that leaf
    with a directory node.

    """
    tree: Tree = {}
    for entry in entries:
        _set_in(tree, entry.path.split("/"), entry)
    return tree


def _set_in(ref: dict[str, Any], path: list[str], value: Any) -> None:
    for key in path[:-1]:
        if not isinstance(ref.get(key), dict):
            ref[key] = {}
        ref = ref[key]
    ref[path[-1]] = value
