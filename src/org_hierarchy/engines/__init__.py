"""Interchangeable traversal engines over one EntityStore.

- GraphTraversalEngine: edge walking (Cypher-style)
- RelationalTraversalEngine: fixed-point joins over flat rows (recursive CTE)
- SQLiteTraversalEngine: real WITH RECURSIVE queries on an in-memory projection
"""
from .base import TraversalEngine
from .graph import GraphTraversalEngine
from .relational import RelationalTraversalEngine
from .sqlite import SQLiteTraversalEngine

__all__ = [
    "TraversalEngine",
    "GraphTraversalEngine",
    "RelationalTraversalEngine",
    "SQLiteTraversalEngine",
]
