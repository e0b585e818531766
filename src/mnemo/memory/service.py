"""Memory service: storage, embeddings and ranking behind one interface.

Ranking (per candidate):

    semantic  = cosine(query_vector, memory_vector)   (0 without a vector)
    keyword   = keyword_similarity(query, content)
    raw       = 0.7 * semantic + 0.3 * keyword         (keyword only when
                                                        embeddings are off)
    score     = raw * (0.5 + 0.5 * importance)

Importance can at most halve a relevant hit, never zero it out.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from mnemo.core.config import Settings
from mnemo.core.errors import NotInitializedError, ValidationError
from mnemo.core.logging import get_logger
from mnemo.memory.base import (
    DEFAULT_SCOPE,
    Memory,
    MemoryFilter,
    MemoryRelation,
    MemoryScope,
    MemorySearchResult,
    MemorySource,
    MemoryStore,
    MemoryType,
    NewMemory,
    RelationType,
)
from mnemo.memory.decay import decay_policy_from_settings
from mnemo.memory.embeddings import EmbeddingProvider, NullEmbeddingProvider, create_provider
from mnemo.memory.similarity import cosine_similarity, keyword_similarity
from mnemo.memory.store import SQLiteMemoryStore

logger = get_logger("memory.service")

SEMANTIC_WEIGHT = 0.7
KEYWORD_WEIGHT = 0.3
DEFAULT_BOOST = 0.1


@dataclass
class CreateMemoryInput:
    """Caller-supplied fields for a new memory. Unset fields get defaults."""

    type: MemoryType
    content: str
    context: str | None = None
    tags: list[str] | None = None
    project: str | None = None
    scope: MemoryScope | None = None
    source: MemorySource | None = None
    importance: float | None = None
    pinned: bool | None = None
    supersedes: str | None = None


@dataclass
class SearchOptions:
    query: str
    types: list[MemoryType] | None = None
    scopes: list[MemoryScope] | None = None
    project: str | None = None
    tags: list[str] | None = None
    limit: int = 10
    min_importance: float | None = None
    include_superseded: bool = False


def importance_weight(importance: float) -> float:
    """Multiplier in [0.5, 1.0] applied to a raw relevance score."""
    return 0.5 + 0.5 * importance


def _check_unit_interval(value: float | None, field: str) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ValidationError("must be a number", field)
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"must be between 0 and 1, got {value}", field)


class MemoryService:
    """High-level memory operations used by the tool layer."""

    def __init__(
        self,
        store: MemoryStore,
        embeddings: EmbeddingProvider | None = None,
        default_scope: Mapping[MemoryType, MemoryScope] = DEFAULT_SCOPE,
        overfetch: int = 3,
    ):
        self.store = store
        self.embeddings = embeddings or NullEmbeddingProvider()
        # Types left out of a custom table keep their default scope
        self.default_scope = {**DEFAULT_SCOPE, **default_scope}
        self.overfetch = overfetch

    async def create_memory(self, data: CreateMemoryInput) -> Memory:
        """Create a memory, embed it if possible, and record supersession."""
        if not data.content or not data.content.strip():
            raise ValidationError("content must not be empty", "content")
        _check_unit_interval(data.importance, "importance")

        scope = data.scope or self.default_scope[data.type]
        memory = await self.store.create_memory(
            NewMemory(
                type=data.type,
                scope=scope,
                source=data.source or MemorySource.AI_INFERRED,
                content=data.content,
                context=data.context,
                tags=list(data.tags or []),
                project=data.project,
                importance=0.5 if data.importance is None else data.importance,
                pinned=bool(data.pinned),
            )
        )
        logger.info(f"Created {memory.type.value} memory {memory.id} ({scope.value} scope)")

        # Embedding is enrichment; a create never fails because of it
        if self.embeddings.is_available():
            try:
                vector = await self.embeddings.embed(memory.content)
                memory.embedding_id = await self.store.store_embedding(
                    memory.id, vector, self.embeddings.get_model()
                )
            except Exception as e:
                logger.warning(f"Failed to generate embedding for {memory.id}: {e}")

        if data.supersedes:
            # Target may have been deleted while we were embedding
            if await self.store.get_memory(data.supersedes) is None:
                logger.warning(
                    f"Memory {memory.id} supersedes unknown memory {data.supersedes}, "
                    "relation skipped"
                )
            else:
                await self.store.create_relation(
                    memory.id, data.supersedes, RelationType.SUPERSEDES
                )

        return memory

    async def search_memories(self, options: SearchOptions) -> list[MemorySearchResult]:
        """Rank candidates by blended relevance and importance."""
        if not options.query or not options.query.strip():
            raise ValidationError("query must not be empty", "query")
        if options.limit < 1:
            raise ValidationError(f"must be at least 1, got {options.limit}", "limit")
        _check_unit_interval(options.min_importance, "min_importance")

        candidates = await self.store.search_memories(
            MemoryFilter(
                types=options.types,
                scopes=options.scopes,
                project=options.project,
                tags=options.tags,
                limit=options.limit * self.overfetch,
                include_superseded=options.include_superseded,
            )
        )

        scored: list[tuple[Memory, float]] | None = None
        if self.embeddings.is_available():
            vectors = await self._semantic_inputs(options.query)
            if vectors is not None:
                query_vector, embedding_map = vectors
                scored = [
                    (memory, self._semantic_score(options.query, query_vector, embedding_map, memory))
                    for memory in candidates
                ]
        if scored is None:
            scored = [
                (memory, keyword_similarity(options.query, memory.content) * importance_weight(memory.importance))
                for memory in candidates
            ]

        scored.sort(key=lambda pair: pair[1], reverse=True)
        scored = [pair for pair in scored if pair[1] > 0]
        if options.min_importance is not None:
            scored = [pair for pair in scored if pair[0].importance >= options.min_importance]

        results = []
        for memory, score in scored[: options.limit]:
            await self._record_access(memory)
            results.append(
                MemorySearchResult(
                    memory=memory,
                    score=score,
                    superseded_by=await self.get_superseded_by(memory.id),
                )
            )

        logger.debug(
            f"Search '{options.query}' ranked {len(candidates)} candidates, "
            f"returned {len(results)}"
        )
        return results

    async def _semantic_inputs(
        self, query: str
    ) -> tuple[list[float], dict[str, list[float]]] | None:
        """Query vector and stored vectors, or None to fall back to keywords."""
        try:
            query_vector = await self.embeddings.embed(query)
            records = await self.store.get_all_embeddings()
        except Exception as e:
            logger.warning(f"Semantic search failed, falling back to keyword: {e}")
            return None
        return query_vector, {r.memory_id: r.vector for r in records}

    @staticmethod
    def _semantic_score(
        query: str,
        query_vector: list[float],
        embedding_map: dict[str, list[float]],
        memory: Memory,
    ) -> float:
        vector = embedding_map.get(memory.id)
        semantic = cosine_similarity(query_vector, vector) if vector is not None else 0.0
        keyword = keyword_similarity(query, memory.content)
        raw = SEMANTIC_WEIGHT * semantic + KEYWORD_WEIGHT * keyword
        return raw * importance_weight(memory.importance)

    async def get_memory(self, memory_id: str) -> Memory | None:
        """Get memory by ID, recording the access."""
        memory = await self.store.get_memory(memory_id)
        if memory:
            await self._record_access(memory)
        return memory

    async def _record_access(self, memory: Memory) -> None:
        # Keep the returned object in step with the stored row
        memory.last_accessed_at = await self.store.record_access(memory.id)
        memory.access_count += 1

    async def get_superseded_by(self, memory_id: str) -> str | None:
        return await self.store.get_superseded_by(memory_id)

    async def create_relation(
        self, from_id: str, to_id: str, relation_type: RelationType
    ) -> MemoryRelation:
        return await self.store.create_relation(from_id, to_id, relation_type)

    async def get_relations(self, memory_id: str) -> list[MemoryRelation]:
        return await self.store.get_relations(memory_id)

    async def boost_memory(
        self, memory_id: str, amount: float = DEFAULT_BOOST
    ) -> float | None:
        """Raise importance; result stays within [0, 1]. Returns the new value."""
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or math.isnan(amount):
            raise ValidationError("must be a number", "amount")
        await self.store.boost_importance(memory_id, amount)
        memory = await self.store.get_memory(memory_id)
        return memory.importance if memory else None

    async def pin_memory(self, memory_id: str, pinned: bool = True) -> None:
        await self.store.set_pinned(memory_id, pinned)

    async def delete_memory(self, memory_id: str) -> bool:
        deleted = await self.store.delete_memory(memory_id)
        if deleted:
            logger.info(f"Deleted memory {memory_id}")
        return deleted

    async def get_recent_memories(
        self, limit: int = 10, project: str | None = None
    ) -> list[Memory]:
        """Recent memories for session start context."""
        return await self.store.get_recent_memories(limit, project)

    async def apply_decay(self, now: datetime | None = None) -> int:
        return await self.store.apply_decay(now)

    async def reindex_embeddings(self, batch_size: int = 50) -> int:
        """Embed memories that have no vector yet. Returns number embedded."""
        if not self.embeddings.is_available():
            return 0

        total = 0
        while True:
            pending = await self.store.get_memories_without_embeddings(batch_size)
            if not pending:
                break
            try:
                vectors = await self.embeddings.embed_batch([m.content for m in pending])
            except Exception as e:
                logger.warning(f"Embedding backfill stopped after {total} memories: {e}")
                break
            for memory, vector in zip(pending, vectors):
                await self.store.store_embedding(memory.id, vector, self.embeddings.get_model())
            total += len(pending)

        logger.info(f"Backfilled embeddings for {total} memories")
        return total

    def has_semantic_search(self) -> bool:
        return self.embeddings.is_available()

    async def close(self) -> None:
        await self.store.close()


async def create_service(settings: Settings) -> MemoryService:
    """Build a connected service from settings."""
    store = SQLiteMemoryStore(settings.db_path, decay_policy=decay_policy_from_settings(settings))
    await store.connect()
    embeddings = create_provider(settings)
    logger.info(
        "Semantic search: "
        + ("enabled" if embeddings.is_available() else "disabled (set OPENAI_API_KEY)")
    )
    return MemoryService(store, embeddings, overfetch=settings.search_overfetch)


class ServiceHandle:
    """
    Owns the single memory service of a running process.

    Created once at startup and passed explicitly to whatever dispatches
    operations. Re-initializing closes the previous service first.
    """

    def __init__(self) -> None:
        self._service: MemoryService | None = None

    @property
    def is_initialized(self) -> bool:
        return self._service is not None

    @property
    def service(self) -> MemoryService:
        if self._service is None:
            raise NotInitializedError(
                "Memory service not initialized. Call initialize() first."
            )
        return self._service

    async def initialize(
        self,
        settings: Settings | None = None,
        service: MemoryService | None = None,
    ) -> MemoryService:
        """Install a service, built from settings unless one is given."""
        await self.close()
        if service is None:
            service = await create_service(settings or Settings())
        self._service = service
        return service

    async def close(self) -> None:
        if self._service is not None:
            service, self._service = self._service, None
            await service.close()
