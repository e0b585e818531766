"""SQLite memory store: memories, relations, embeddings and decay bookkeeping."""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import aiosqlite

from mnemo.core.logging import get_logger
from mnemo.core.typing import Vector
from mnemo.memory.base import (
    EmbeddingRecord,
    Memory,
    MemoryFilter,
    MemoryRelation,
    MemoryScope,
    MemorySource,
    MemoryStore,
    MemoryType,
    NewMemory,
    RelationType,
    clamp_importance,
)
from mnemo.memory.decay import DecayPolicy, ExponentialDecay, idle_days

logger = get_logger("memory.store")


# Python 3.12+ fix: Register datetime adapters explicitly
def _adapt_datetime(dt: datetime) -> str:
    """Convert datetime to ISO format string for SQLite storage."""
    return dt.isoformat()


def _convert_datetime(val: bytes) -> datetime:
    """Convert ISO format string from SQLite to datetime."""
    return datetime.fromisoformat(val.decode())


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("DATETIME", _convert_datetime)


def _now() -> datetime:
    return datetime.now(timezone.utc)


SCHEMA = """
CREATE TABLE IF NOT EXISTS memories (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    scope TEXT NOT NULL,
    source TEXT NOT NULL,
    content TEXT NOT NULL,
    context TEXT,
    tags TEXT NOT NULL DEFAULT '[]',  -- JSON array
    project TEXT,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    accessed_at DATETIME NOT NULL,
    access_count INTEGER NOT NULL DEFAULT 0,
    importance REAL NOT NULL DEFAULT 0.5,
    pinned INTEGER NOT NULL DEFAULT 0,
    decayed_at DATETIME,
    embedding_id TEXT
);

-- One vector per memory, stored as a JSON array
CREATE TABLE IF NOT EXISTS embeddings (
    id TEXT PRIMARY KEY,
    memory_id TEXT NOT NULL UNIQUE,
    vector TEXT NOT NULL,
    model TEXT NOT NULL,
    created_at DATETIME NOT NULL
);

-- Knowledge graph edges (no FK: dangling targets are tolerated)
CREATE TABLE IF NOT EXISTS relations (
    id TEXT PRIMARY KEY,
    from_id TEXT NOT NULL,
    to_id TEXT NOT NULL,
    type TEXT NOT NULL,
    created_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_memories_type ON memories(type);
CREATE INDEX IF NOT EXISTS idx_memories_scope ON memories(scope);
CREATE INDEX IF NOT EXISTS idx_memories_project ON memories(project);
CREATE INDEX IF NOT EXISTS idx_memories_updated ON memories(updated_at);
CREATE INDEX IF NOT EXISTS idx_relations_from ON relations(from_id);
CREATE INDEX IF NOT EXISTS idx_relations_to ON relations(to_id);
CREATE INDEX IF NOT EXISTS idx_relations_type ON relations(type);
"""

# Smaller decay steps are left to accumulate until the next run
MIN_DECAY_STEP = 1e-6

SUPERSEDED_IDS = "SELECT to_id FROM relations WHERE type = 'supersedes'"


def _placeholders(values: list) -> str:
    return ",".join("?" for _ in values)


class SQLiteMemoryStore(MemoryStore):
    """SQLite-backed memory store."""

    def __init__(self, db_path: Path, decay_policy: DecayPolicy | None = None):
        self.db_path = db_path
        self.decay_policy = decay_policy or ExponentialDecay()
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Use detect_types to enable our custom datetime converters
        self._conn = await aiosqlite.connect(
            self.db_path,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        )
        self._conn.row_factory = aiosqlite.Row
        await self._conn.executescript(SCHEMA)
        await self._conn.commit()
        logger.info(f"Connected to memory store: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.debug(f"Closed memory store: {self.db_path}")

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Memory store not connected. Call connect() first.")
        return self._conn

    # Memories

    async def create_memory(self, draft: NewMemory) -> Memory:
        """Persist a new memory."""
        if not draft.content or not draft.content.strip():
            raise ValueError("Memory content must not be empty")

        memory_id = str(uuid4())
        timestamp = _now()
        importance = clamp_importance(draft.importance)
        tags = list(dict.fromkeys(draft.tags or []))

        await self.conn.execute(
            """INSERT INTO memories (
                   id, type, scope, source, content, context, tags, project,
                   created_at, updated_at, accessed_at, access_count, importance, pinned
               ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)""",
            (
                memory_id,
                draft.type.value,
                draft.scope.value,
                draft.source.value,
                draft.content,
                draft.context,
                json.dumps(tags),
                draft.project,
                timestamp,
                timestamp,
                timestamp,
                importance,
                1 if draft.pinned else 0,
            ),
        )
        await self.conn.commit()

        return Memory(
            id=memory_id,
            type=draft.type,
            scope=draft.scope,
            source=draft.source,
            content=draft.content,
            context=draft.context,
            tags=tags,
            project=draft.project,
            importance=importance,
            pinned=draft.pinned,
            created_at=timestamp,
            updated_at=timestamp,
            last_accessed_at=timestamp,
            access_count=0,
        )

    async def get_memory(self, memory_id: str) -> Memory | None:
        """Get specific memory by ID."""
        async with self.conn.execute(
            "SELECT * FROM memories WHERE id = ?", (memory_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_memory(row) if row else None

    async def search_memories(self, filters: MemoryFilter) -> list[Memory]:
        """Candidates matching every supplied filter, best importance first."""
        sql = "SELECT * FROM memories WHERE 1=1"
        params: list = []

        if filters.types:
            sql += f" AND type IN ({_placeholders(filters.types)})"
            params.extend(t.value for t in filters.types)

        if filters.scopes:
            sql += f" AND scope IN ({_placeholders(filters.scopes)})"
            params.extend(s.value for s in filters.scopes)

        if filters.project:
            # Global memories are visible from every project
            sql += " AND (project = ? OR scope = ?)"
            params.extend([filters.project, MemoryScope.GLOBAL.value])

        if filters.tags:
            sql += (
                " AND EXISTS (SELECT 1 FROM json_each(memories.tags)"
                f" WHERE json_each.value IN ({_placeholders(filters.tags)}))"
            )
            params.extend(filters.tags)

        if not filters.include_superseded:
            sql += f" AND id NOT IN ({SUPERSEDED_IDS})"

        sql += " ORDER BY importance DESC, updated_at DESC"

        if filters.limit:
            sql += " LIMIT ?"
            params.append(filters.limit)

        results = []
        async with self.conn.execute(sql, params) as cursor:
            async for row in cursor:
                results.append(self._row_to_memory(row))

        logger.debug(f"Candidate query returned {len(results)} memories")
        return results

    async def record_access(self, memory_id: str) -> datetime:
        """Update a memory's access timestamp and count."""
        accessed_at = _now()
        await self.conn.execute(
            """UPDATE memories
               SET accessed_at = ?, access_count = access_count + 1
               WHERE id = ?""",
            (accessed_at, memory_id),
        )
        await self.conn.commit()
        return accessed_at

    async def boost_importance(self, memory_id: str, amount: float = 0.1) -> None:
        """Boost a memory's importance, clamped to [0, 1]."""
        await self.conn.execute(
            """UPDATE memories
               SET importance = MIN(1.0, MAX(0.0, importance + ?))
               WHERE id = ?""",
            (amount, memory_id),
        )
        await self.conn.commit()

    async def set_pinned(self, memory_id: str, pinned: bool) -> None:
        """Pin or unpin a memory."""
        await self.conn.execute(
            "UPDATE memories SET pinned = ? WHERE id = ?",
            (1 if pinned else 0, memory_id),
        )
        await self.conn.commit()

    async def delete_memory(self, memory_id: str) -> bool:
        """Delete a memory together with its embedding and relations."""
        cursor = await self.conn.execute(
            "DELETE FROM memories WHERE id = ?", (memory_id,)
        )
        existed = cursor.rowcount > 0
        await cursor.close()
        await self.conn.execute(
            "DELETE FROM embeddings WHERE memory_id = ?", (memory_id,)
        )
        await self.conn.execute(
            "DELETE FROM relations WHERE from_id = ? OR to_id = ?",
            (memory_id, memory_id),
        )
        await self.conn.commit()
        return existed

    async def get_recent_memories(
        self, limit: int = 10, project: str | None = None
    ) -> list[Memory]:
        """Most recently updated memories (session start context)."""
        sql = "SELECT * FROM memories WHERE 1=1"
        params: list = []

        if project:
            sql += " AND (project = ? OR scope = ?)"
            params.extend([project, MemoryScope.GLOBAL.value])

        sql += " ORDER BY updated_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        results = []
        async with self.conn.execute(sql, params) as cursor:
            async for row in cursor:
                results.append(self._row_to_memory(row))
        return results

    # Relations

    async def create_relation(
        self, from_id: str, to_id: str, relation_type: RelationType
    ) -> MemoryRelation:
        """Create a relation between two memories."""
        relation = MemoryRelation(
            id=str(uuid4()),
            from_id=from_id,
            to_id=to_id,
            type=relation_type,
            created_at=_now(),
        )
        await self.conn.execute(
            """INSERT INTO relations (id, from_id, to_id, type, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                relation.id,
                relation.from_id,
                relation.to_id,
                relation.type.value,
                relation.created_at,
            ),
        )
        await self.conn.commit()
        return relation

    async def get_relations(self, memory_id: str) -> list[MemoryRelation]:
        """Relations originating at memory_id."""
        results = []
        async with self.conn.execute(
            "SELECT * FROM relations WHERE from_id = ? ORDER BY created_at, rowid",
            (memory_id,),
        ) as cursor:
            async for row in cursor:
                results.append(
                    MemoryRelation(
                        id=row["id"],
                        from_id=row["from_id"],
                        to_id=row["to_id"],
                        type=RelationType(row["type"]),
                        created_at=row["created_at"],
                    )
                )
        return results

    async def get_superseded_by(self, memory_id: str) -> str | None:
        """Most recent memory that supersedes memory_id."""
        async with self.conn.execute(
            """SELECT from_id FROM relations
               WHERE to_id = ? AND type = ?
               ORDER BY created_at DESC, rowid DESC
               LIMIT 1""",
            (memory_id, RelationType.SUPERSEDES.value),
        ) as cursor:
            row = await cursor.fetchone()
            return row["from_id"] if row else None

    # Embeddings

    async def store_embedding(self, memory_id: str, vector: Vector, model: str) -> str:
        """Insert or replace the embedding for a memory."""
        embedding_id = str(uuid4())
        await self.conn.execute(
            """INSERT INTO embeddings (id, memory_id, vector, model, created_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(memory_id) DO UPDATE SET
                   id = excluded.id, vector = excluded.vector,
                   model = excluded.model, created_at = excluded.created_at""",
            (embedding_id, memory_id, json.dumps(list(vector)), model, _now()),
        )
        await self.conn.execute(
            "UPDATE memories SET embedding_id = ? WHERE id = ?",
            (embedding_id, memory_id),
        )
        await self.conn.commit()
        return embedding_id

    async def get_embedding(self, memory_id: str) -> Vector | None:
        """Get embedding vector for one memory."""
        async with self.conn.execute(
            "SELECT vector FROM embeddings WHERE memory_id = ?", (memory_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return json.loads(row["vector"]) if row else None

    async def get_all_embeddings(self) -> list[EmbeddingRecord]:
        """All embeddings for similarity search."""
        results = []
        async with self.conn.execute(
            "SELECT memory_id, vector, model FROM embeddings"
        ) as cursor:
            async for row in cursor:
                results.append(
                    EmbeddingRecord(
                        memory_id=row["memory_id"],
                        vector=json.loads(row["vector"]),
                        model=row["model"],
                    )
                )
        return results

    async def get_memories_without_embeddings(self, limit: int = 100) -> list[Memory]:
        """Memories that have no stored vector yet."""
        results = []
        async with self.conn.execute(
            """SELECT * FROM memories
               WHERE id NOT IN (SELECT memory_id FROM embeddings)
               ORDER BY created_at LIMIT ?""",
            (limit,),
        ) as cursor:
            async for row in cursor:
                results.append(self._row_to_memory(row))
        return results

    # Decay

    async def apply_decay(self, now: datetime | None = None) -> int:
        """
        Lower importance of idle, non-pinned memories per the decay policy.

        A naive `now` is taken as local time, like datetime.now() returns it.
        """
        # Stored timestamps are UTC-aware
        now = now.astimezone(timezone.utc) if now else _now()
        policy = self.decay_policy
        updates = []

        async with self.conn.execute(
            """SELECT id, type, importance, accessed_at, decayed_at
               FROM memories WHERE pinned = 0 AND importance > ?""",
            (policy.floor,),
        ) as cursor:
            async for row in cursor:
                if not policy.applies_to(MemoryType(row["type"])):
                    continue
                days = idle_days(now, row["accessed_at"], row["decayed_at"])
                importance = policy.decay(row["importance"], days)
                if importance < row["importance"] - MIN_DECAY_STEP:
                    updates.append((clamp_importance(importance), now, row["id"]))

        if updates:
            await self.conn.executemany(
                "UPDATE memories SET importance = ?, decayed_at = ? WHERE id = ?",
                updates,
            )
            await self.conn.commit()

        logger.info(f"Decay applied to {len(updates)} memories")
        return len(updates)

    # Helpers

    @staticmethod
    def _row_to_memory(row: aiosqlite.Row) -> Memory:
        return Memory(
            id=row["id"],
            type=MemoryType(row["type"]),
            scope=MemoryScope(row["scope"]),
            source=MemorySource(row["source"]),
            content=row["content"],
            context=row["context"],
            tags=json.loads(row["tags"]) if row["tags"] else [],
            project=row["project"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            last_accessed_at=row["accessed_at"],
            access_count=row["access_count"],
            importance=row["importance"],
            pinned=bool(row["pinned"]),
            embedding_id=row["embedding_id"],
        )
