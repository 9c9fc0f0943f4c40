"""Bundler — collects the entry module's local import graph into memory.

Starting at the configured entry module, every import is classified by the
externalization policy:

- relative requests (``from .helpers import x``) are inlined: the module is
  located below the entry directory, syntax-checked and written into the
  compiler's :class:`MemoryFS`;
- bare requests (``import yaml``) stay external and are resolved by the host
  import system when the bundle is evaluated.

The entry module itself is written to the fixed bundle path
(``/memory-fs/papyre_bundle.py``); inlined modules keep their path relative
to the entry directory. Nothing is written to disk.
"""

from __future__ import annotations

import ast
import asyncio
import hashlib
import inspect
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from papyre._errors import CompileError
from papyre.compiler.memory_fs import MemoryFS
from papyre.content.watcher import ContentWatcher, ExtensionFilter

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from papyre.config import BuildConfig

    type CompileCallback = Callable[[CompileError | None, CompileStats | None], Any]


@dataclass(frozen=True, slots=True)
class CompileStats:
    """Result metadata of one compilation.

    Attributes:
        time_ms: Wall-clock compile time in milliseconds.
        modules: Inlined modules, relative to the entry directory, in
            discovery order (the entry module first).
        externals: Requests left to the host import system, sorted.
        hash: Short content hash of the bundle.

    """

    time_ms: float
    modules: tuple[str, ...]
    externals: tuple[str, ...]
    hash: str

    def to_json(self) -> dict[str, object]:
        return {
            "time": round(self.time_ms),
            "hash": self.hash,
            "modules": list(self.modules),
            "externals": list(self.externals),
        }


@dataclass(frozen=True, slots=True)
class _ParsedModule:
    """Cached parse of a source file, valid while its stat is unchanged."""

    mtime_ns: int
    size: int
    source: str


class Compiler:
    """Compiles a bundle from ``config.entry`` into ``output_filesystem``.

    Args:
        config: Effective build configuration.
        output_filesystem: Virtual filesystem receiving the bundle. A fresh
            MemoryFS is created when omitted.

    """

    def __init__(self, config: BuildConfig, output_filesystem: MemoryFS | None = None) -> None:
        self.config = config
        self.output_filesystem = output_filesystem if output_filesystem is not None else MemoryFS()
        self._cache: dict[Path, _ParsedModule] = {}
        # run() is called from worker threads; compilations never interleave.
        self._lock = threading.Lock()

    def run(self) -> CompileStats:
        """Compile once and swap the result into the output filesystem.

        Raises:
            CompileError: On unreadable sources, syntax errors, unresolvable
                relative imports or imports escaping the entry directory.

        """
        with self._lock:
            t0 = time.perf_counter()
            modules: dict[Path, str] = {}
            externals: set[str] = set()

            self._visit(self.config.entry, modules, externals)
            root_init = self.config.entry_dir / "__init__.py"
            if root_init.is_file():
                self._visit(root_init, modules, externals)

            files = {str(self._virtual_path(path)): source for path, source in modules.items()}
            self.output_filesystem.replace_all(files)

            digest = hashlib.sha256()
            for name in sorted(files):
                digest.update(name.encode())
                digest.update(b"\0")
                digest.update(files[name].encode())

            return CompileStats(
                time_ms=(time.perf_counter() - t0) * 1000,
                modules=tuple(self._relative(path) for path in modules),
                externals=tuple(sorted(externals)),
                hash=digest.hexdigest()[:20],
            )

    def watch(self, callback: CompileCallback, *, debounce: int | None = None) -> Watching:
        """Compile now and again whenever a code file under the entry directory changes.

        Must be called from a running event loop. *callback* receives
        ``(error, stats)`` after every compilation and may be async.

        """
        watching = Watching(
            self,
            callback,
            debounce=self.config.debounce_ms if debounce is None else debounce,
        )
        watching.start()
        return watching

    # ------------------------------------------------------------------
    # Graph walk
    # ------------------------------------------------------------------

    def _visit(self, path: Path, modules: dict[Path, str], externals: set[str]) -> None:
        if path in modules:
            return
        source = self._read(path)
        modules[path] = source
        tree = self._parse(path, source)

        for request, names in _imports(tree):
            if self.config.externals(request) is not None:
                externals.add(request)
                continue
            for dependency in self._resolve(request, names, path):
                self._visit(dependency, modules, externals)

    def _resolve(self, request: str, names: tuple[str, ...], importer: Path) -> list[Path]:
        """Map an inlined request to the module files it pulls into the bundle."""
        root = self.config.entry_dir
        name = request.lstrip(".")
        level = len(request) - len(name)

        base = importer.parent if level else root
        for _ in range(level - 1):
            if base == root:
                msg = (
                    f"Module not found: {request!r} in {self._relative(importer)} "
                    "reaches beyond the entry directory"
                )
                raise CompileError(msg)
            base = base.parent

        target = base.joinpath(*name.split(".")) if name else base
        found = [init for init in _package_inits(root, target) if init.is_file()]

        if name:
            module_file = _module_file(target)
        else:
            module_file = target / "__init__.py" if (target / "__init__.py").is_file() else None
        if module_file is not None:
            found.append(module_file)
        elif name and not target.is_dir():
            msg = f"Module not found: Can't resolve {request!r} in {self._relative(importer.parent) or '.'}"
            raise CompileError(msg)

        # ``from pkg import sub`` may name submodules rather than attributes.
        if module_file is None or module_file.name == "__init__.py":
            for sub in names:
                sub_file = _module_file(target / sub)
                if sub_file is not None:
                    found.append(sub_file)
        return found

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _read(self, path: Path) -> str:
        try:
            stat = path.stat()
            cached = self._cache.get(path)
            if self.config.cache and cached is not None and (
                cached.mtime_ns == stat.st_mtime_ns and cached.size == stat.st_size
            ):
                return cached.source
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Module build failed: cannot read {path}: {exc}"
            raise CompileError(msg) from exc

        if self.config.cache:
            self._cache[path] = _ParsedModule(
                mtime_ns=stat.st_mtime_ns, size=stat.st_size, source=source,
            )
        return source

    def _parse(self, path: Path, source: str) -> ast.Module:
        try:
            tree = ast.parse(source, filename=str(path))
            # Some errors (e.g. ``return`` outside a function) only surface here.
            compile(tree, str(path), "exec", dont_inherit=True)
        except SyntaxError as exc:
            msg = f"Module build failed ({self._relative(path)}): {exc.msg} (line {exc.lineno})"
            raise CompileError(msg) from exc
        return tree

    def _virtual_path(self, path: Path) -> str:
        if path == self.config.entry:
            return str(self.config.bundle_path)
        return str(self.config.output_dir / self._relative(path))

    def _relative(self, path: Path) -> str:
        try:
            rel = path.relative_to(self.config.entry_dir).as_posix()
        except ValueError:
            return str(path)
        return "" if rel == "." else rel


class Watching:
    """Continuous compilation driven by code-file changes.

    Compiles once on start, then once per batch of changes reported by a
    :class:`ContentWatcher` restricted to the configured code extensions.

    """

    def __init__(self, compiler: Compiler, callback: CompileCallback, *, debounce: int) -> None:
        self._compiler = compiler
        self._callback = callback
        self._watcher = ContentWatcher(
            compiler.config.entry_dir,
            debounce=debounce,
            watch_filter=ExtensionFilter(compiler.config.code_extensions),
        )
        self._task: asyncio.Task[None] | None = None
        self.closed = False

    @property
    def watcher(self) -> ContentWatcher:
        return self._watcher

    def start(self) -> None:
        self._watcher.start()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def close(self) -> None:
        """Stop watching. A compilation already running finishes but is not reported."""
        self.closed = True
        self._watcher.stop()
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def invalidate(self) -> None:
        """Recompile now and hand the outcome to the callback."""
        error: CompileError | None = None
        stats: CompileStats | None = None
        try:
            stats = await asyncio.to_thread(self._compiler.run)
        except CompileError as exc:
            error = exc
        if self.closed:
            return
        try:
            result = self._callback(error, stats)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            print(f"  Compile callback error: {exc}", file=sys.stderr)

    async def _run(self) -> None:
        await self.invalidate()
        async for _batch in self._watcher.batches():
            await self.invalidate()


def _imports(tree: ast.Module) -> Iterator[tuple[str, tuple[str, ...]]]:
    """Yield ``(request, imported_names)`` for every import statement in *tree*."""
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name, ()
        elif isinstance(node, ast.ImportFrom):
            request = "." * node.level + (node.module or "")
            yield request, tuple(a.name for a in node.names if a.name != "*")


def _module_file(target: Path) -> Path | None:
    """``target.py`` or ``target/__init__.py``, whichever exists."""
    module = target.parent / f"{target.name}.py"
    if module.is_file():
        return module
    package = target / "__init__.py"
    if package.is_file():
        return package
    return None


def _package_inits(root: Path, target: Path) -> list[Path]:
    """``__init__.py`` candidates of the packages between *root* and *target*."""
    inits: list[Path] = []
    parent = target.parent
    while parent != root and root in parent.parents:
        inits.append(parent / "__init__.py")
        parent = parent.parent
    return list(reversed(inits))
