"""Shared test fixtures for papyre."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

SITE_PY = '''\
from .helpers import shout


def render_a(ctx):
    return shout(ctx.entry.body)


def render_count(ctx):
    return str(len(ctx.entries))
'''

HELPERS_PY = '''\
def shout(text):
    return text.upper()
'''


def write_entry(path: Path, body: str, fn: str | None = None, **metadata: Any) -> Path:
    """Write a content file with YAML front matter."""
    lines = [f"{key}: {value}" for key, value in metadata.items()]
    if fn is not None:
        lines += ["papyre:", f"  fn: {fn}"]
    text = body if not lines else "---\n" + "\n".join(lines) + "\n---\n" + body
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A minimal content directory.

    ``site.py`` exports ``render_a`` (upper-cases the body, via a relative
    import) and ``render_count``. ``a.md`` renders through ``render_a``;
    ``b.md`` declares no render function.
    """
    root = tmp_path / "site"
    root.mkdir()
    (root / "site.py").write_text(SITE_PY, encoding="utf-8")
    (root / "helpers.py").write_text(HELPERS_PY, encoding="utf-8")
    write_entry(root / "a.md", "hello\n", fn="render_a")
    write_entry(root / "b.md", "plain\n", title="B")
    return root


@pytest.fixture
def config(site: Path) -> dict[str, Any]:
    """Caller build config pointing at the ``site`` fixture."""
    return {"entry": str(site / "site.py")}


class Recorder:
    """on_built stand-in that remembers every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[BaseException | None, Any]] = []

    def __call__(self, error: BaseException | None, result: Any) -> None:
        self.calls.append((error, result))

    @property
    def last(self) -> tuple[BaseException | None, Any]:
        return self.calls[-1]

    @property
    def bodies(self) -> dict[str, str]:
        """``{path: body}`` of the last successful result."""
        error, result = self.last
        assert error is None, error
        return {entry.path: entry.body for entry in result.entries}


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
