"""Query engines the investigator can drive.

The in-memory engine is imported lazily so the protocols stay importable
without sqlglot.
"""

from .base import Node, QueryEngine, QueryResult


def __getattr__(name: str):
    """Lazy import for the in-memory engine."""
    if name in ("MemoryQueryEngine", "MemoryQueryResult", "ContentNode", "IndexDefinition"):
        from . import memory
        return getattr(memory, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Node",
    "QueryEngine",
    "QueryResult",
    "MemoryQueryEngine",
    "MemoryQueryResult",
    "ContentNode",
    "IndexDefinition",
]
