"""Papyre error hierarchy.

All papyre-specific errors inherit from PapyreError for easy catching.
"""

from __future__ import annotations

from typing import Any


class PapyreError(Exception):
    """Base error for all papyre operations."""


class ConfigError(PapyreError):
    """Invalid or missing build configuration."""


class CompileError(PapyreError):
    """The bundle could not be compiled."""


class EvaluationError(PapyreError):
    """The compiled bundle raised while it was being executed."""


class EntryReadError(PapyreError):
    """A content file could not be read or split into metadata and body.

    Attributes:
        path: Absolute path of the file that failed.

    """

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read entry {path}: {cause}")

    @property
    def missing(self) -> bool:
        """True when the file no longer exists (treated as a removal in watch mode)."""
        return isinstance(self.cause, FileNotFoundError)


class RenderError(PapyreError):
    """Rendering an entry failed; wraps the original error with the entry path."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to render entry at path {path}: {cause}")


class RenderFunctionNotFound(PapyreError):
    """An entry names a render function that the bundle does not export."""

    def __init__(self, name: str, found: Any = None, *, path: str | None = None) -> None:
        from papyre.render.publics import show

        self.name = name
        self.found = found
        self.path = path
        msg = f"expected to find render function {name!r}, found {show(found)}"
        if path is not None:
            msg = f"Error in entry at {path}: {msg}"
        super().__init__(msg)


class RenderFunctionReturnTypeError(PapyreError):
    """A render function produced something other than a string."""

    def __init__(self, function: Any, value: Any) -> None:
        from papyre.render.publics import show

        self.function = function
        self.value = value
        super().__init__(
            f"Expected rendering function {show(function)} to return a string, "
            f"got {show(value)}"
        )


class WriteError(PapyreError):
    """Writing rendered entries to disk failed."""
