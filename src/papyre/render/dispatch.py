"""Render dispatch — run each entry through the render function it names.

For every entry, in order:

1. Read the function name from ``papyre.fn`` in the entry's front matter.
   Entries without one are skipped and left out of the output.
2. Look the name up in the bundle's :class:`Publics`.
3. Call it with a :class:`RenderContext` and await the result if needed.
4. Require a ``str`` and emit the entry with that string as its body.

Any failure aborts the pass as a :class:`RenderError` naming the entry.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from papyre._errors import RenderError, RenderFunctionReturnTypeError
from papyre.content.entry import entries_to_tree
from papyre.render.publics import show

if TYPE_CHECKING:
    from collections.abc import Sequence

    from papyre._types import RenderFunction, Tree
    from papyre.content.entry import Entry
    from papyre.observability.collector import BuildCollector
    from papyre.render.publics import Publics


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Single argument passed to every render function.

    Attributes:
        entries: All entries of this render pass, in order.
        tree: The same entries nested by path segment.
        entry: The entry being rendered.

    """

    entries: Sequence[Entry]
    tree: Tree
    entry: Entry


async def invoke(function: RenderFunction, context: RenderContext) -> Any:
    """Call *function* and resolve its result, whether immediate or awaitable."""
    result = function(context)
    if inspect.isawaitable(result):
        result = await result
    return result


def find_render_function(entry: Entry, publics: Publics) -> RenderFunction | None:
    """The render function *entry* declares, or None when it declares none."""
    name = entry.render_function_name
    if name is None:
        return None
    return publics.lookup(name, path=entry.path)


async def build_entries(
    entries: Sequence[Entry],
    publics: Publics,
    *,
    collector: BuildCollector | None = None,
) -> list[Entry]:
    """Render *entries* one at a time and return those that had a render function.

    Raises:
        RenderError: On the first entry that fails, wrapping the cause.

    """
    entries = tuple(entries)
    tree = entries_to_tree(entries)
    output: list[Entry] = []

    for entry in entries:
        try:
            function = find_render_function(entry, publics)
            if function is None:
                continue
            t0 = time.perf_counter()
            body = await invoke(function, RenderContext(entries=entries, tree=tree, entry=entry))
            if not isinstance(body, str):
                raise RenderFunctionReturnTypeError(function, body)
        except Exception as exc:
            raise RenderError(entry.path, exc) from exc

        if collector is not None:
            collector.record_render(
                entry.path, show(function), duration_ms=(time.perf_counter() - t0) * 1000,
            )
        output.append(entry.with_body(body))

    return output
