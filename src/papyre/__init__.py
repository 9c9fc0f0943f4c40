"""Papyre — a content-build orchestrator.

Compiles a Python bundle that exports render functions, reads a directory
of content files (front matter plus body), and renders every file through
the function its front matter names.

Quick start::

    import asyncio
    import papyre

    async def on_built(error, result):
        if error is not None:
            raise error
        await papyre.write_entries("dist", result.entries)

    asyncio.run(papyre.build({"entry": "site/site.py"}, on_built))

A content file opts into rendering with::

    ---
    papyre:
      fn: render_page
    ---
    Page body...

Two modes::

    await papyre.build(config, on_built)    # compile once, render once
    handle = papyre.watch(config, on_built) # re-render on every change
    handle.deinit()

"""

__version__ = "0.1.0"
__all__ = [
    "BuildResult",
    "Entry",
    "__version__",
    "build",
    "watch",
    "write_entries",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import papyre`` fast while providing a clean top-level API.
    """
    if name == "build":
        from papyre.pipeline import build

        return build

    if name == "BuildResult":
        from papyre.pipeline import BuildResult

        return BuildResult

    if name == "watch":
        from papyre.watch import watch

        return watch

    if name == "write_entries":
        from papyre.export.writer import write_entries

        return write_entries

    if name == "Entry":
        from papyre.content.entry import Entry

        return Entry

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
