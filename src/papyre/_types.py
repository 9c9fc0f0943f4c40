"""Shared type definitions for papyre."""

from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from papyre.pipeline import BuildResult
    from papyre.render.dispatch import RenderContext

# Mode of operation
type PapyreMode = Literal["build", "watch"]

# Relative POSIX path of an entry inside the entry directory (e.g. "docs/a.md")
type EntryPath = str

# Front matter of a content file
type Metadata = Mapping[str, Any]

# Path-segment keyed nesting of entries
type Tree = dict[str, Any]

# File-system change kinds, named after the events they mirror
type ChangeKind = Literal["add", "change", "unlink"]

# Render function exported by the bundle: sync or async, must produce a str
type RenderFunction = Callable[[RenderContext], str | Awaitable[str]]

# Build completion callback: (error, None) or (None, result)
type OnBuilt = Callable[[BaseException | None, BuildResult | None], Any]

# Module externalization policy: None inlines the request, a string externalizes it
type ExternalsPolicy = Callable[[str], str | None]

