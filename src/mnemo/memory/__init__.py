"""
Memory module - persistent agent memories.

Types: insight, gotcha, preference, pattern, capability, status
Scopes: private, project, global

Ranking blends embedding similarity with keyword overlap, weighted by
importance. Superseded memories stay stored but drop out of default
search. Storage: SQLite.
"""

from mnemo.memory.base import (
    Memory,
    MemoryRelation,
    MemoryScope,
    MemorySearchResult,
    MemorySource,
    MemoryType,
    RelationType,
)
from mnemo.memory.service import CreateMemoryInput, MemoryService, SearchOptions, ServiceHandle

__all__ = [
    "Memory",
    "MemoryRelation",
    "MemoryScope",
    "MemorySearchResult",
    "MemorySource",
    "MemoryType",
    "RelationType",
    "CreateMemoryInput",
    "MemoryService",
    "SearchOptions",
    "ServiceHandle",
]
