"""Publics — the table of render functions exported by an evaluated bundle.

A typed registry: names map to exported bindings, and :meth:`Publics.lookup`
either returns a callable or raises :class:`RenderFunctionNotFound`.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from papyre._errors import RenderFunctionNotFound

if TYPE_CHECKING:
    from types import ModuleType

    from papyre._types import RenderFunction


def show(value: Any) -> str:
    """Describe *value* for error messages: a function's name, else its repr."""
    if callable(value):
        return getattr(value, "__qualname__", None) or getattr(value, "__name__", None) or repr(value)
    return repr(value)


class Publics(Mapping[str, Any]):
    """Immutable mapping of exported bindings.

    Replaced wholesale on every compilation; never mutated.

    """

    __slots__ = ("_bindings",)

    def __init__(self, bindings: Mapping[str, Any] | None = None) -> None:
        self._bindings: Mapping[str, Any] = MappingProxyType(dict(bindings or {}))

    @classmethod
    def from_module(cls, module: ModuleType) -> Publics:
        """Exports of *module*: ``__all__`` when defined, else every public name."""
        namespace = vars(module)
        names = namespace.get("__all__")
        if names is None:
            names = [name for name in namespace if not name.startswith("_")]
        return cls({name: namespace[name] for name in names if name in namespace})

    def lookup(self, name: str, *, path: str | None = None) -> RenderFunction:
        """Return the render function exported as *name*.

        Raises:
            RenderFunctionNotFound: If *name* is not exported or not callable.

        """
        value = self._bindings.get(name)
        if not callable(value):
            raise RenderFunctionNotFound(name, value, path=path)
        return value

    def __getitem__(self, name: str) -> Any:
        return self._bindings[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"Publics({sorted(self._bindings)!r})"
