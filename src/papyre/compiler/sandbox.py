"""Evaluation sandbox — execute a compiled bundle and collect its exports.

Each evaluation gets a fresh synthetic package (``_papyre_bundle_<n>``)
backed by a ``sys.meta_path`` finder that serves module source straight
from the compiler's MemoryFS. Relative imports inside the bundle resolve
against that package; bare imports go to the host import system, with the
configured module search paths prepended to ``sys.path`` while the bundle
executes. The previous generation's modules are purged before the next
evaluation so recompiled code never sees stale submodules.
"""

from __future__ import annotations

import importlib
import importlib.abc
from importlib.machinery import ModuleSpec
import itertools
import linecache
import sys
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from papyre._errors import EvaluationError
from papyre.render.publics import Publics

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence
    from types import ModuleType

    from papyre.compiler.memory_fs import MemoryFS

_generation = itertools.count()


class MemoryLoader(importlib.abc.InspectLoader):
    """Executes module source read from a MemoryFS."""

    def __init__(self, fs: MemoryFS, origin: str | None) -> None:
        self._fs = fs
        self._origin = origin

    def get_source(self, fullname: str) -> str | None:
        if self._origin is None:
            return ""
        return self._fs.read_text(self._origin)

    def exec_module(self, module: ModuleType) -> None:
        if self._origin is None:
            return
        source = self._fs.read_text(self._origin)
        # Register the source so tracebacks show bundle lines.
        linecache.cache[self._origin] = (
            len(source), None, source.splitlines(keepends=True), self._origin,
        )
        code = compile(source, self._origin, "exec", dont_inherit=True)
        exec(code, module.__dict__)  # noqa: S102


class MemoryFinder(importlib.abc.MetaPathFinder):
    """Resolves ``<prefix>`` and its submodules against a MemoryFS directory.

    ``<prefix>.lib.util`` maps to ``<root>/lib/util.py`` or
    ``<root>/lib/util/__init__.py``; a directory without ``__init__.py``
    becomes an empty package.

    """

    def __init__(self, prefix: str, fs: MemoryFS, root: PurePosixPath) -> None:
        self.prefix = prefix
        self._fs = fs
        self._root = root

    def find_spec(
        self,
        fullname: str,
        path: Sequence[str] | None,
        target: ModuleType | None = None,
    ) -> ModuleSpec | None:
        if fullname != self.prefix and not fullname.startswith(self.prefix + "."):
            return None

        parts = fullname.split(".")[1:]
        base = self._root.joinpath(*parts)
        module_file = base.parent / f"{base.name}.py" if parts else None
        package_init = base / "__init__.py"

        if module_file is not None and self._fs.is_file(module_file):
            return self._spec(fullname, str(module_file), is_package=False)
        if self._fs.is_file(package_init):
            return self._spec(fullname, str(package_init), is_package=True, location=base)
        if not parts or self._fs.is_dir(base):
            return self._spec(fullname, None, is_package=True, location=base)
        return None

    def _spec(
        self,
        fullname: str,
        origin: str | None,
        *,
        is_package: bool,
        location: PurePosixPath | None = None,
    ) -> ModuleSpec:
        spec = ModuleSpec(
            fullname,
            MemoryLoader(self._fs, origin),
            origin=origin,
            is_package=is_package,
        )
        if origin is not None:
            spec.has_location = True
        if is_package and location is not None:
            spec.submodule_search_locations = [str(location)]
        return spec


@contextmanager
def module_search_path(paths: Iterable[Path]) -> Iterator[None]:
    """Prepend *paths* to ``sys.path`` for the duration of the block."""
    added = [str(p) for p in paths if str(p) not in sys.path]
    sys.path[:0] = added
    try:
        yield
    finally:
        for entry in added:
            try:
                sys.path.remove(entry)
            except ValueError:
                pass


class Sandbox:
    """Evaluates compiled bundles, one live generation at a time."""

    __slots__ = ("_finder",)

    def __init__(self) -> None:
        self._finder: MemoryFinder | None = None

    @property
    def prefix(self) -> str | None:
        """Package name of the live generation, if any."""
        return self._finder.prefix if self._finder is not None else None

    def evaluate(
        self,
        fs: MemoryFS,
        bundle_path: PurePosixPath,
        module_paths: Iterable[Path] = (),
    ) -> Publics:
        """Execute the bundle at *bundle_path* and return its exports.

        Raises:
            EvaluationError: If the bundle is missing or raises while executing.

        """
        self.close()
        prefix = f"_papyre_bundle_{next(_generation)}"
        self._finder = MemoryFinder(prefix, fs, bundle_path.parent)
        sys.meta_path.insert(0, self._finder)

        module_name = f"{prefix}.{bundle_path.stem}"
        try:
            with module_search_path(module_paths):
                module = importlib.import_module(module_name)
        except Exception as exc:
            msg = f"Failed to evaluate bundle {bundle_path}: {exc}"
            raise EvaluationError(msg) from exc
        return Publics.from_module(module)

    def close(self) -> None:
        """Forget the live generation: uninstall its finder and drop its modules."""
        finder = self._finder
        if finder is None:
            return
        self._finder = None
        if finder in sys.meta_path:
            sys.meta_path.remove(finder)
        for name in [n for n in sys.modules if n == finder.prefix or n.startswith(finder.prefix + ".")]:
            module = sys.modules.pop(name)
            origin = getattr(getattr(module, "__spec__", None), "origin", None)
            if origin:
                linecache.cache.pop(origin, None)
