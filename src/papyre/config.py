"""Build configuration reconciliation.

The caller supplies a plain mapping. It is validated, merged with fixed
defaults, and then with fixed overrides that always win::

    effective = DEFAULTS | caller_config | OVERRIDES

BuildConfig is the frozen, typed view over the effective mapping.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from papyre._errors import ConfigError

if TYPE_CHECKING:
    from papyre._types import ExternalsPolicy


def externalize(request: str) -> str | None:
    """Module externalization policy.

    Requests starting with ``.`` or ``/`` are bundled inline (returns None).
    Any bare module name is left to the host import system at evaluation time.

    """
    if request[:1] in (".", "/"):
        return None
    return f"module {request}"


# In-memory location of the compiled bundle. Never touches disk.
BUNDLE_DIR = "/memory-fs/"
BUNDLE_NAME = "papyre_bundle.py"

DEFAULTS: Mapping[str, Any] = MappingProxyType({
    "cache": True,
    "resolve": {"extensions": [".py"]},
    "module_paths": ["."],
    "debounce": 300,
})

OVERRIDES: Mapping[str, Any] = MappingProxyType({
    "target": "python",
    "devtool": False,
    "output": {
        "path": BUNDLE_DIR,
        "filename": BUNDLE_NAME,
        "library_target": "module",
    },
    "externals": externalize,
})


def validate_config(config: object) -> None:
    """Raise ConfigError unless *config* names a single entry file inside a directory."""
    if not isinstance(config, Mapping):
        msg = "Please pass a build config mapping"
        raise ConfigError(msg)
    entry = config.get("entry")
    if not isinstance(entry, str):
        msg = "Please pass a build config with a single entry file."
        raise ConfigError(msg)
    if not os.path.dirname(entry):
        msg = "The entry file must be located in a directory"
        raise ConfigError(msg)


def reconfigure(config: Mapping[str, Any]) -> dict[str, Any]:
    """Validate *config* and return the shallow, right-biased merge with defaults and overrides."""
    validate_config(config)
    return {**DEFAULTS, **config, **OVERRIDES}


def reconcile(config: Mapping[str, Any]) -> BuildConfig:
    """Validate and merge *config* into a BuildConfig."""
    return BuildConfig.from_options(reconfigure(config))


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Effective configuration for one build or watch session.

    Attributes:
        entry: Absolute path to the bundle's entry module.
        options: The full effective option mapping (read-only).

    """

    entry: Path
    options: Mapping[str, Any]

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> BuildConfig:
        entry = Path(options["entry"]).resolve()
        config = cls(entry=entry, options=MappingProxyType(dict(options)))
        # Derived accessors validate lazily; evaluate them once so bad values fail early.
        _ = (config.code_extensions, config.module_paths, config.debounce_ms)
        return config

    @property
    def entry_dir(self) -> Path:
        """Directory holding the entry module; also the content directory."""
        return self.entry.parent

    @property
    def code_extensions(self) -> tuple[str, ...]:
        """File suffixes the compiler owns; content watching ignores them."""
        resolve = self.options.get("resolve")
        extensions = resolve.get("extensions") if isinstance(resolve, Mapping) else None
        if extensions is None:
            return (".py",)
        if isinstance(extensions, str) or not all(isinstance(e, str) for e in extensions):
            msg = f"resolve.extensions must be a list of strings, got {extensions!r}"
            raise ConfigError(msg)
        return tuple(extensions)

    @property
    def output_dir(self) -> PurePosixPath:
        return PurePosixPath(self.options["output"]["path"])

    @property
    def bundle_path(self) -> PurePosixPath:
        """Virtual path of the compiled entry module inside the output filesystem."""
        return self.output_dir / self.options["output"]["filename"]

    @property
    def module_paths(self) -> tuple[Path, ...]:
        """Search paths for external modules, resolved against the working directory."""
        paths = self.options.get("module_paths") or ()
        if isinstance(paths, str):
            msg = f"module_paths must be a list of paths, got {paths!r}"
            raise ConfigError(msg)
        return tuple(Path(p).resolve() for p in paths)

    @property
    def externals(self) -> ExternalsPolicy:
        return self.options["externals"]

    @property
    def cache(self) -> bool:
        return bool(self.options.get("cache"))

    @property
    def debounce_ms(self) -> int:
        value = self.options.get("debounce", 300)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            msg = f"debounce must be a non-negative integer (ms), got {value!r}"
            raise ConfigError(msg)
        return value
