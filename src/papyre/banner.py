"""Startup banner and per-cycle status lines.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from papyre._types import PapyreMode


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""

_MODE_STYLES: dict[str, str] = {
    "build": _YELLOW,
    "watch": _GREEN,
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    return f"{_MODE_STYLES.get(mode, _DIM)}[{mode}]{_RESET}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(mode: PapyreMode, entry: Path, output: Path) -> None:
    """Print the startup banner to stderr.

    Args:
        mode: ``"build"`` or ``"watch"``.
        entry: Resolved entry module.
        output: Directory rendered entries are written to.

    """
    from papyre import __version__

    lines = [
        "",
        f"  {_BOLD}papyre{_RESET} {_DIM}v{__version__}{_RESET}  {_mode_badge(mode)}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} entry:  {_DIM}{entry}{_RESET}",
        f"  {_DIM}{'├─' if mode == 'watch' else '└─'}{_RESET} output: {_DIM}{output}{_RESET}",
    ]
    if mode == "watch":
        lines.append(f"  {_DIM}└─{_RESET} {_GREEN}live{_RESET} — watching {_DIM}{entry.parent}{_RESET}")
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")
    lines.append("")

    print("\n".join(lines), file=sys.stderr)


def print_built(count: int, timing: str, output: Path) -> None:
    """One status line after a successful cycle."""
    label = "entry" if count == 1 else "entries"
    print(
        f"  {_CYAN}✓{_RESET} {count} {label} -> {_DIM}{output}{_RESET} {_DIM}({timing}){_RESET}",
        file=sys.stderr,
    )


def print_failed(error: BaseException) -> None:
    """One status line after a failed cycle."""
    print(f"  {_RED}✗{_RESET} {error}", file=sys.stderr)
