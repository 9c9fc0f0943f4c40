"""Compiler layer — bundle the entry module into memory and evaluate it.

The bundler walks the entry module's import graph, the MemoryFS holds the
result, and the sandbox executes it to produce the exported render
functions.
"""

from papyre.compiler.bundler import CompileStats, Compiler, Watching
from papyre.compiler.memory_fs import MemoryFS
from papyre.compiler.sandbox import MemoryFinder, Sandbox

__all__ = [
    "CompileStats",
    "Compiler",
    "MemoryFS",
    "MemoryFinder",
    "Sandbox",
    "Watching",
]
