"""Papyre application — the command-line facing build and watch runs.

Wraps the core ``build`` / ``watch`` with config-file loading, the banner,
and writing rendered entries to an output directory.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from papyre._errors import PapyreError
from papyre.banner import print_banner, print_built, print_failed
from papyre.config import reconcile
from papyre.config_loader import load_config
from papyre.export.writer import write_entries
from papyre.pipeline import build
from papyre.watch import watch

if TYPE_CHECKING:
    from papyre.export.writer import WriteResult
    from papyre.pipeline import BuildResult


def _prepare(config_path: str | Path, entry: str | None, output: str | Path) -> tuple[dict[str, Any], Path]:
    config = load_config(Path(config_path), entry=entry)
    reconcile(config)  # fail on bad config before printing anything
    return config, Path(output).resolve()


def run_build(
    config_path: str | Path = ".",
    *,
    entry: str | None = None,
    output: str | Path = "dist",
    verbose: bool = False,
) -> WriteResult:
    """Build once and write the rendered entries to *output*.

    Args:
        config_path: Config file, or directory holding ``papyre.yaml``/``.toml``.
        entry: Entry module; overrides the config file.
        output: Output directory.
        verbose: Print per-stage timing.

    Raises:
        PapyreError: On any configuration, compile, evaluation, render or
            write failure.

    """
    config, output_dir = _prepare(config_path, entry, output)
    print_banner("build", Path(str(config["entry"])).resolve(), output_dir)
    return asyncio.run(_build_and_write(config, output_dir, verbose=verbose))


async def _build_and_write(config: dict[str, Any], output_dir: Path, *, verbose: bool) -> WriteResult:
    written: list[WriteResult] = []

    async def on_built(error: BaseException | None, result: BuildResult | None) -> None:
        if error is not None:
            raise error
        if result is not None:
            written.append(await write_entries(output_dir, result.entries))
            print_built(len(result.entries), result.timing, output_dir)

    await build(config, on_built, verbose=verbose)
    if not written:
        msg = "Build finished without a result"
        raise PapyreError(msg)
    return written[0]


def run_watch(
    config_path: str | Path = ".",
    *,
    entry: str | None = None,
    output: str | Path = "dist",
    verbose: bool = True,
) -> None:
    """Watch the bundle and its content, rewriting *output* after every cycle.

    Runs until interrupted. Failed cycles are reported and watching goes on.

    """
    config, output_dir = _prepare(config_path, entry, output)
    print_banner("watch", Path(str(config["entry"])).resolve(), output_dir)
    try:
        asyncio.run(_watch_forever(config, output_dir, verbose=verbose))
    except KeyboardInterrupt:
        print("\n  Stopped watching.", file=sys.stderr)


async def _watch_forever(config: dict[str, Any], output_dir: Path, *, verbose: bool) -> None:
    async def on_built(error: BaseException | None, result: BuildResult | None) -> None:
        if error is not None:
            print_failed(error)
            return
        if result is None:
            return
        await write_entries(output_dir, result.entries)
        print_built(len(result.entries), result.timing, output_dir)

    handle = watch(config, on_built, verbose=verbose)
    try:
        await asyncio.Event().wait()
    finally:
        handle.deinit()
