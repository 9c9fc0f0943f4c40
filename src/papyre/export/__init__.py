"""Export layer — writing rendered entries to disk."""

from papyre.export.writer import WriteResult, WrittenFile, write_entries

__all__ = [
    "WriteResult",
    "WrittenFile",
    "write_entries",
]
