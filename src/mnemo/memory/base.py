"""
Memory model and store interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from mnemo.core.typing import JSONDict, Vector


class MemoryType(Enum):
    INSIGHT = "insight"  # why a decision was made
    GOTCHA = "gotcha"  # what went wrong, how to avoid it
    PREFERENCE = "preference"  # how the user likes things done
    PATTERN = "pattern"  # successful approach to a problem type
    CAPABILITY = "capability"  # tool or feature that has been built
    STATUS = "status"  # where we left off


class MemoryScope(Enum):
    PRIVATE = "private"
    PROJECT = "project"
    GLOBAL = "global"


class MemorySource(Enum):
    USER_STATED = "user_stated"
    AI_CORRECTED = "ai_corrected"
    AI_INFERRED = "ai_inferred"


class RelationType(Enum):
    SUPERSEDES = "supersedes"
    RELATES_TO = "relates_to"
    CAUSED_BY = "caused_by"
    FIXED_BY = "fixed_by"
    IMPLEMENTS = "implements"


DEFAULT_SCOPE: dict[MemoryType, MemoryScope] = {
    MemoryType.INSIGHT: MemoryScope.PROJECT,
    MemoryType.GOTCHA: MemoryScope.PROJECT,
    MemoryType.PREFERENCE: MemoryScope.PRIVATE,
    MemoryType.PATTERN: MemoryScope.GLOBAL,
    MemoryType.CAPABILITY: MemoryScope.GLOBAL,
    MemoryType.STATUS: MemoryScope.PROJECT,
}

# Types that keep their importance over time
ANCHORED_TYPES: frozenset[MemoryType] = frozenset(
    {MemoryType.INSIGHT, MemoryType.PREFERENCE, MemoryType.CAPABILITY}
)


def clamp_importance(value: float) -> float:
    """Clamp an importance value into [0, 1]."""
    return min(1.0, max(0.0, float(value)))


@dataclass
class NewMemory:
    """Fully resolved memory fields, ready to persist."""

    type: MemoryType
    scope: MemoryScope
    source: MemorySource
    content: str
    context: str | None = None
    tags: list[str] = field(default_factory=list)
    project: str | None = None
    importance: float = 0.5
    pinned: bool = False


@dataclass
class Memory:
    """Single durable memory record."""

    id: str
    type: MemoryType
    scope: MemoryScope
    source: MemorySource
    content: str
    created_at: datetime
    updated_at: datetime
    last_accessed_at: datetime
    context: str | None = None
    tags: list[str] = field(default_factory=list)
    project: str | None = None
    importance: float = 0.5  # 0-1 ranking
    pinned: bool = False
    access_count: int = 0
    embedding_id: str | None = None

    def to_dict(self) -> JSONDict:
        """Serialize for JSON payloads."""
        return {
            "id": self.id,
            "type": self.type.value,
            "scope": self.scope.value,
            "source": self.source.value,
            "content": self.content,
            "context": self.context,
            "tags": list(self.tags),
            "project": self.project,
            "importance": self.importance,
            "pinned": self.pinned,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "last_accessed_at": self.last_accessed_at.isoformat(),
            "access_count": self.access_count,
        }


@dataclass
class MemoryRelation:
    """Directed edge between two memories."""

    id: str
    from_id: str
    to_id: str
    type: RelationType
    created_at: datetime

    def to_dict(self) -> JSONDict:
        return {
            "id": self.id,
            "from_id": self.from_id,
            "to_id": self.to_id,
            "type": self.type.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class EmbeddingRecord:
    """Stored vector for one memory."""

    memory_id: str
    vector: Vector
    model: str = ""


@dataclass
class MemoryFilter:
    """Candidate filter. Omitted dimensions are not applied."""

    types: list[MemoryType] | None = None
    scopes: list[MemoryScope] | None = None
    project: str | None = None
    tags: list[str] | None = None
    limit: int | None = None
    include_superseded: bool = False


@dataclass
class MemorySearchResult:
    """Ranked search hit."""

    memory: Memory
    score: float
    superseded_by: str | None = None

    def to_dict(self) -> JSONDict:
        data: dict[str, Any] = self.memory.to_dict()
        data["score"] = round(self.score, 4)
        data["superseded_by"] = self.superseded_by
        return data


class MemoryStore(ABC):
    """Abstract memory storage interface."""

    @abstractmethod
    async def create_memory(self, draft: NewMemory) -> Memory:
        """Persist a new memory, return it with id and timestamps."""
        ...

    @abstractmethod
    async def get_memory(self, memory_id: str) -> Memory | None:
        """Get memory by ID. Does not record access."""
        ...

    @abstractmethod
    async def search_memories(self, filters: MemoryFilter) -> list[Memory]:
        """Unranked candidates matching every supplied filter."""
        ...

    @abstractmethod
    async def record_access(self, memory_id: str) -> datetime:
        """Bump access count and last access time. Returns the access time."""
        ...

    @abstractmethod
    async def boost_importance(self, memory_id: str, amount: float = 0.1) -> None:
        """Raise importance, clamped to [0, 1]. No-op for unknown ids."""
        ...

    @abstractmethod
    async def set_pinned(self, memory_id: str, pinned: bool) -> None:
        """Pin or unpin. No-op for unknown ids."""
        ...

    @abstractmethod
    async def delete_memory(self, memory_id: str) -> bool:
        """Delete memory and everything it owns. Returns whether it existed."""
        ...

    @abstractmethod
    async def create_relation(
        self, from_id: str, to_id: str, relation_type: RelationType
    ) -> MemoryRelation:
        """Append a relation."""
        ...

    @abstractmethod
    async def get_relations(self, memory_id: str) -> list[MemoryRelation]:
        """Relations whose source is memory_id."""
        ...

    @abstractmethod
    async def get_superseded_by(self, memory_id: str) -> str | None:
        """ID of the memory that supersedes memory_id, if any."""
        ...

    @abstractmethod
    async def store_embedding(self, memory_id: str, vector: Vector, model: str) -> str:
        """Insert or replace the embedding for a memory."""
        ...

    @abstractmethod
    async def get_all_embeddings(self) -> list[EmbeddingRecord]:
        """Every stored embedding."""
        ...

    @abstractmethod
    async def get_recent_memories(
        self, limit: int = 10, project: str | None = None
    ) -> list[Memory]:
        """Most recently updated memories."""
        ...

    @abstractmethod
    async def apply_decay(self, now: datetime | None = None) -> int:
        """Decay importance of idle memories. Returns number changed."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release resources. Safe to call twice."""
        ...

    # Optional extras (not every store needs them)
    async def get_embedding(self, memory_id: str) -> Vector | None:
        """Get embedding for one memory. Returns None if not implemented."""
        return None

    async def get_memories_without_embeddings(self, limit: int = 100) -> list[Memory]:
        """Memories lacking an embedding. Empty if not implemented."""
        return []
