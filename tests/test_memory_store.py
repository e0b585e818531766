"""Tests for the SQLite memory store."""

from pathlib import Path

import pytest

from mnemo.memory.base import (
    MemoryFilter,
    MemoryScope,
    MemorySource,
    MemoryType,
    NewMemory,
    RelationType,
)
from mnemo.memory.store import SQLiteMemoryStore


def draft(
    content: str = "Use WAL mode for SQLite",
    type: MemoryType = MemoryType.PATTERN,
    scope: MemoryScope = MemoryScope.GLOBAL,
    **fields,
) -> NewMemory:
    return NewMemory(
        type=type,
        scope=scope,
        source=MemorySource.AI_INFERRED,
        content=content,
        **fields,
    )


async def test_create_and_get(store: SQLiteMemoryStore):
    """Created memory round-trips through the database."""
    memory = await store.create_memory(
        draft(context="db/setup.py", tags=["sqlite", "perf"], project="api", importance=0.7)
    )
    assert memory.id
    assert memory.access_count == 0
    assert memory.created_at == memory.updated_at == memory.last_accessed_at

    loaded = await store.get_memory(memory.id)
    assert loaded is not None
    assert loaded.content == "Use WAL mode for SQLite"
    assert loaded.context == "db/setup.py"
    assert loaded.tags == ["sqlite", "perf"]
    assert loaded.project == "api"
    assert loaded.importance == 0.7
    assert loaded.type == MemoryType.PATTERN
    assert loaded.scope == MemoryScope.GLOBAL
    assert loaded.created_at == memory.created_at


async def test_create_assigns_unique_ids(store: SQLiteMemoryStore):
    first = await store.create_memory(draft())
    second = await store.create_memory(draft())
    assert first.id != second.id


async def test_create_clamps_importance(store: SQLiteMemoryStore):
    high = await store.create_memory(draft(importance=3.0))
    low = await store.create_memory(draft(importance=-1.0))
    assert high.importance == 1.0
    assert low.importance == 0.0


async def test_create_rejects_empty_content(store: SQLiteMemoryStore):
    with pytest.raises(ValueError):
        await store.create_memory(draft(content="   "))


async def test_get_missing_returns_none(store: SQLiteMemoryStore):
    assert await store.get_memory("nope") is None


async def test_get_has_no_side_effect(store: SQLiteMemoryStore):
    memory = await store.create_memory(draft())
    await store.get_memory(memory.id)
    loaded = await store.get_memory(memory.id)
    assert loaded.access_count == 0


async def test_record_access(store: SQLiteMemoryStore):
    memory = await store.create_memory(draft())
    await store.record_access(memory.id)
    await store.record_access(memory.id)
    loaded = await store.get_memory(memory.id)
    assert loaded.access_count == 2
    assert loaded.last_accessed_at >= memory.last_accessed_at


async def test_boost_clamps_both_ends(store: SQLiteMemoryStore):
    memory = await store.create_memory(draft(importance=0.5))

    await store.boost_importance(memory.id, 0.2)
    assert (await store.get_memory(memory.id)).importance == pytest.approx(0.7)

    await store.boost_importance(memory.id, 10.0)
    assert (await store.get_memory(memory.id)).importance == 1.0

    await store.boost_importance(memory.id, -10.0)
    assert (await store.get_memory(memory.id)).importance == 0.0


async def test_boost_and_pin_unknown_id_are_noops(store: SQLiteMemoryStore):
    await store.boost_importance("missing", 0.3)
    await store.set_pinned("missing", True)
    assert await store.get_memory("missing") is None


async def test_set_pinned(store: SQLiteMemoryStore):
    memory = await store.create_memory(draft())
    await store.set_pinned(memory.id, True)
    assert (await store.get_memory(memory.id)).pinned is True
    await store.set_pinned(memory.id, False)
    assert (await store.get_memory(memory.id)).pinned is False


async def test_delete_removes_embedding_and_relations(store: SQLiteMemoryStore):
    old = await store.create_memory(draft("old"))
    new = await store.create_memory(draft("new"))
    await store.store_embedding(old.id, [1.0, 0.0], "m")
    await store.create_relation(new.id, old.id, RelationType.SUPERSEDES)

    assert await store.delete_memory(old.id) is True
    assert await store.get_memory(old.id) is None
    assert await store.get_embedding(old.id) is None
    assert await store.get_relations(new.id) == []
    assert await store.get_superseded_by(old.id) is None


async def test_delete_unknown_returns_false(store: SQLiteMemoryStore):
    assert await store.delete_memory("missing") is False


async def test_search_filters_by_type_and_scope(store: SQLiteMemoryStore):
    pattern = await store.create_memory(draft("pattern"))
    gotcha = await store.create_memory(
        draft("gotcha", type=MemoryType.GOTCHA, scope=MemoryScope.PROJECT)
    )

    by_type = await store.search_memories(MemoryFilter(types=[MemoryType.GOTCHA]))
    assert [m.id for m in by_type] == [gotcha.id]

    by_scope = await store.search_memories(MemoryFilter(scopes=[MemoryScope.GLOBAL]))
    assert [m.id for m in by_scope] == [pattern.id]

    both = await store.search_memories(
        MemoryFilter(types=[MemoryType.GOTCHA], scopes=[MemoryScope.GLOBAL])
    )
    assert both == []


async def test_search_project_includes_global(store: SQLiteMemoryStore):
    mine = await store.create_memory(
        draft("mine", scope=MemoryScope.PROJECT, project="api")
    )
    other = await store.create_memory(
        draft("other", scope=MemoryScope.PROJECT, project="web")
    )
    shared = await store.create_memory(draft("shared", scope=MemoryScope.GLOBAL))

    ids = {m.id for m in await store.search_memories(MemoryFilter(project="api"))}
    assert ids == {mine.id, shared.id}
    assert other.id not in ids


async def test_search_filters_by_tags(store: SQLiteMemoryStore):
    tagged = await store.create_memory(draft("tagged", tags=["deploy", "aws"]))
    await store.create_memory(draft("untagged"))

    results = await store.search_memories(MemoryFilter(tags=["aws"]))
    assert [m.id for m in results] == [tagged.id]


async def test_search_orders_by_importance_and_limits(store: SQLiteMemoryStore):
    for importance in (0.2, 0.9, 0.5):
        await store.create_memory(draft(f"imp {importance}", importance=importance))

    results = await store.search_memories(MemoryFilter(limit=2))
    assert [m.importance for m in results] == [0.9, 0.5]


async def test_search_excludes_superseded(store: SQLiteMemoryStore):
    old = await store.create_memory(draft("old"))
    new = await store.create_memory(draft("new"))
    await store.create_relation(new.id, old.id, RelationType.SUPERSEDES)

    default = {m.id for m in await store.search_memories(MemoryFilter())}
    assert default == {new.id}

    everything = {
        m.id for m in await store.search_memories(MemoryFilter(include_superseded=True))
    }
    assert everything == {old.id, new.id}


async def test_other_relations_do_not_hide_memories(store: SQLiteMemoryStore):
    cause = await store.create_memory(draft("cause"))
    problem = await store.create_memory(draft("problem"))
    await store.create_relation(problem.id, cause.id, RelationType.CAUSED_BY)

    ids = {m.id for m in await store.search_memories(MemoryFilter())}
    assert ids == {cause.id, problem.id}


async def test_relations_are_append_only(store: SQLiteMemoryStore):
    a = await store.create_memory(draft("a"))
    b = await store.create_memory(draft("b"))
    await store.create_relation(a.id, b.id, RelationType.RELATES_TO)
    await store.create_relation(a.id, b.id, RelationType.RELATES_TO)

    relations = await store.get_relations(a.id)
    assert len(relations) == 2
    assert all(r.from_id == a.id and r.to_id == b.id for r in relations)
    # Only outgoing edges
    assert await store.get_relations(b.id) == []


async def test_get_superseded_by(store: SQLiteMemoryStore):
    old = await store.create_memory(draft("old"))
    new = await store.create_memory(draft("new"))
    assert await store.get_superseded_by(old.id) is None

    await store.create_relation(new.id, old.id, RelationType.SUPERSEDES)
    assert await store.get_superseded_by(old.id) == new.id
    assert await store.get_superseded_by(new.id) is None


async def test_embedding_upsert(store: SQLiteMemoryStore):
    memory = await store.create_memory(draft())
    first_id = await store.store_embedding(memory.id, [1.0, 0.0], "model-a")
    second_id = await store.store_embedding(memory.id, [0.0, 1.0], "model-b")

    assert first_id != second_id
    assert await store.get_embedding(memory.id) == [0.0, 1.0]

    records = await store.get_all_embeddings()
    assert len(records) == 1
    assert records[0].memory_id == memory.id
    assert records[0].model == "model-b"
    assert (await store.get_memory(memory.id)).embedding_id == second_id


async def test_memories_without_embeddings(store: SQLiteMemoryStore):
    embedded = await store.create_memory(draft("embedded"))
    plain = await store.create_memory(draft("plain"))
    await store.store_embedding(embedded.id, [1.0], "m")

    pending = await store.get_memories_without_embeddings()
    assert [m.id for m in pending] == [plain.id]


async def test_get_recent_memories(store: SQLiteMemoryStore):
    for i in range(3):
        await store.create_memory(draft(f"event {i}", project="api", scope=MemoryScope.PROJECT))
    await store.create_memory(draft("elsewhere", project="web", scope=MemoryScope.PROJECT))

    recent = await store.get_recent_memories(limit=2)
    assert [m.content for m in recent] == ["elsewhere", "event 2"]

    in_project = await store.get_recent_memories(limit=10, project="api")
    assert [m.content for m in in_project] == ["event 2", "event 1", "event 0"]


async def test_close_is_idempotent(tmp_path: Path):
    store = SQLiteMemoryStore(tmp_path / "close.db")
    await store.connect()
    await store.close()
    await store.close()
    with pytest.raises(RuntimeError):
        await store.get_memory("x")


async def test_data_persists_across_connections(tmp_path: Path):
    path = tmp_path / "persist.db"
    store = SQLiteMemoryStore(path)
    await store.connect()
    memory = await store.create_memory(draft("durable"))
    await store.close()

    reopened = SQLiteMemoryStore(path)
    await reopened.connect()
    try:
        loaded = await reopened.get_memory(memory.id)
        assert loaded is not None
        assert loaded.content == "durable"
    finally:
        await reopened.close()
