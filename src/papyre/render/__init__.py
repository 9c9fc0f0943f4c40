"""Render layer — exported render functions and per-entry dispatch."""

from papyre.render.dispatch import RenderContext, build_entries, find_render_function, invoke
from papyre.render.publics import Publics, show

__all__ = [
    "Publics",
    "RenderContext",
    "build_entries",
    "find_render_function",
    "invoke",
    "show",
]
