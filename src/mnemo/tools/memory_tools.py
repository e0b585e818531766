"""Memory tools: input models, handlers and the tool table."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mnemo.core.types import ActionResult
from mnemo.memory.base import (
    Memory,
    MemoryScope,
    MemorySource,
    MemoryType,
    RelationType,
)
from mnemo.memory.service import CreateMemoryInput, MemoryService, SearchOptions
from mnemo.tools.base import Tool
from mnemo.tools.registry import ToolRegistry


def _preview(content: str, length: int = 100) -> str:
    return content[:length] + ("..." if len(content) > length else "")


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class MemoryCreateArgs(ToolInput):
    type: MemoryType = Field(
        description="Type of memory (insight, gotcha, preference, pattern, capability, status)"
    )
    content: str = Field(min_length=1, description="What should be remembered")
    context: str | None = Field(default=None, description="Additional context (file path, area)")
    tags: list[str] | None = Field(default=None, description="Tags for categorization")
    project: str | None = Field(default=None, description="Project identifier")
    scope: MemoryScope | None = Field(
        default=None, description="Visibility scope (private, project, global). Defaults by type."
    )
    source: MemorySource | None = Field(
        default=None, description="user_stated, ai_corrected or ai_inferred. Default: ai_inferred"
    )
    importance: float | None = Field(default=None, ge=0, le=1, description="Initial importance (0-1)")
    pinned: bool | None = Field(default=None, description="Pin memory to prevent decay")
    supersedes: UUID | None = Field(default=None, description="ID of memory this one replaces")


class MemorySearchArgs(ToolInput):
    query: str = Field(min_length=1, description="What you are looking for")
    types: list[MemoryType] | None = Field(default=None, description="Filter by memory types")
    scopes: list[MemoryScope] | None = Field(default=None, description="Filter by scopes")
    project: str | None = Field(default=None, description="Filter by project (includes global)")
    tags: list[str] | None = Field(default=None, description="Filter by tags")
    limit: int = Field(default=10, ge=1, le=50, description="Maximum results")
    min_importance: float | None = Field(default=None, ge=0, le=1, description="Minimum importance")
    include_superseded: bool = Field(default=False, description="Include superseded memories")


class MemoryIdArgs(ToolInput):
    id: UUID = Field(description="Memory ID")


class MemoryRelateArgs(ToolInput):
    from_id: UUID = Field(description="ID of the source memory")
    to_id: UUID = Field(description="ID of the target memory")
    type: RelationType = Field(
        description="supersedes, relates_to, caused_by, fixed_by or implements"
    )


class MemoryBoostArgs(ToolInput):
    id: UUID = Field(description="ID of the memory to boost")
    amount: float = Field(default=0.1, ge=0.01, le=0.5, description="Boost amount")


class MemoryPinArgs(ToolInput):
    id: UUID = Field(description="ID of the memory to pin or unpin")
    pinned: bool = Field(default=True, description="Pin state")


class MemorySessionStartArgs(ToolInput):
    project: str | None = Field(default=None, description="Current project identifier")
    limit: int = Field(default=10, ge=1, le=20, description="Maximum memories to load")


class MemoryDecayArgs(ToolInput):
    pass


async def memory_create(service: MemoryService, args: MemoryCreateArgs) -> ActionResult:
    memory = await service.create_memory(
        CreateMemoryInput(
            type=args.type,
            content=args.content,
            context=args.context,
            tags=args.tags,
            project=args.project,
            scope=args.scope,
            source=args.source,
            importance=args.importance,
            pinned=args.pinned,
            supersedes=str(args.supersedes) if args.supersedes else None,
        )
    )
    return ActionResult(
        success=True,
        data={
            "memory": {
                "id": memory.id,
                "type": memory.type.value,
                "scope": memory.scope.value,
                "content": memory.content,
                "created_at": memory.created_at,
            },
            "message": f"Memory created: {memory.type.value} ({memory.scope.value} scope)",
        },
    )


async def memory_search(service: MemoryService, args: MemorySearchArgs) -> ActionResult:
    results = await service.search_memories(
        SearchOptions(
            query=args.query,
            types=args.types,
            scopes=args.scopes,
            project=args.project,
            tags=args.tags,
            limit=args.limit,
            min_importance=args.min_importance,
            include_superseded=args.include_superseded,
        )
    )
    return ActionResult(
        success=True,
        data={
            "count": len(results),
            "semantic_search_enabled": service.has_semantic_search(),
            "results": [r.to_dict() for r in results],
        },
    )


async def memory_get(service: MemoryService, args: MemoryIdArgs) -> ActionResult:
    memory_id = str(args.id)
    memory = await service.get_memory(memory_id)
    if memory is None:
        return ActionResult(success=False, error=f"Memory not found: {memory_id}")

    relations = await service.get_relations(memory_id)
    data = memory.to_dict()
    data["superseded_by"] = await service.get_superseded_by(memory_id)
    data["relations"] = [r.to_dict() for r in relations]
    return ActionResult(success=True, data={"memory": data})


async def memory_relate(service: MemoryService, args: MemoryRelateArgs) -> ActionResult:
    from_id, to_id = str(args.from_id), str(args.to_id)
    source = await service.get_memory(from_id)
    target = await service.get_memory(to_id)
    if source is None:
        return ActionResult(success=False, error=f"Source memory not found: {from_id}")
    if target is None:
        return ActionResult(success=False, error=f"Target memory not found: {to_id}")

    relation = await service.create_relation(from_id, to_id, args.type)
    return ActionResult(
        success=True,
        data={
            "relation": {
                "id": relation.id,
                "type": relation.type.value,
                "from": {"id": source.id, "content": _preview(source.content, 50)},
                "to": {"id": target.id, "content": _preview(target.content, 50)},
            },
            "message": (
                f"Relation created: {source.type.value} --[{relation.type.value}]--> "
                f"{target.type.value}"
            ),
        },
    )


async def memory_boost(service: MemoryService, args: MemoryBoostArgs) -> ActionResult:
    memory_id = str(args.id)
    memory = await service.get_memory(memory_id)
    if memory is None:
        return ActionResult(success=False, error=f"Memory not found: {memory_id}")

    old_importance = memory.importance
    new_importance = await service.boost_memory(memory_id, args.amount)
    if new_importance is None:
        # Deleted between the lookup and the boost
        return ActionResult(success=False, error=f"Memory not found: {memory_id}")

    return ActionResult(
        success=True,
        data={
            "memory": {
                "id": memory.id,
                "type": memory.type.value,
                "content": _preview(memory.content),
                "old_importance": old_importance,
                "new_importance": new_importance,
            },
            "message": f"Memory importance boosted: {old_importance:.2f} -> {new_importance:.2f}",
        },
    )


async def memory_pin(service: MemoryService, args: MemoryPinArgs) -> ActionResult:
    memory_id = str(args.id)
    memory = await service.get_memory(memory_id)
    if memory is None:
        return ActionResult(success=False, error=f"Memory not found: {memory_id}")

    await service.pin_memory(memory_id, args.pinned)
    return ActionResult(
        success=True,
        data={
            "memory": {
                "id": memory.id,
                "type": memory.type.value,
                "content": _preview(memory.content),
                "pinned": args.pinned,
            },
            "message": (
                "Memory pinned - will not decay over time"
                if args.pinned
                else "Memory unpinned - will decay if not accessed"
            ),
        },
    )


async def memory_delete(service: MemoryService, args: MemoryIdArgs) -> ActionResult:
    memory_id = str(args.id)
    deleted = await service.delete_memory(memory_id)
    return ActionResult(success=True, data={"id": memory_id, "deleted": deleted})


def _session_entry(memory: Memory) -> dict:
    return {
        "id": memory.id,
        "content": memory.content,
        "context": memory.context,
        "importance": memory.importance,
        "updated_at": memory.updated_at,
    }


# Session context sections, in the order callers should read them
SESSION_SECTIONS = [
    ("preferences", MemoryType.PREFERENCE),
    ("insights", MemoryType.INSIGHT),
    ("gotchas", MemoryType.GOTCHA),
    ("status", MemoryType.STATUS),
    ("capabilities", MemoryType.CAPABILITY),
    ("patterns", MemoryType.PATTERN),
]


async def memory_session_start(
    service: MemoryService, args: MemorySessionStartArgs
) -> ActionResult:
    recent = await service.get_recent_memories(args.limit, args.project)
    context = {
        section: [_session_entry(m) for m in recent if m.type == memory_type]
        for section, memory_type in SESSION_SECTIONS
    }
    return ActionResult(
        success=True,
        data={
            "project": args.project or "global",
            "total_memories": len(recent),
            "semantic_search_enabled": service.has_semantic_search(),
            "context": context,
            "message": f"Session context loaded: {len(recent)} relevant memories",
        },
    )


async def memory_decay(service: MemoryService, args: MemoryDecayArgs) -> ActionResult:
    changed = await service.apply_decay()
    return ActionResult(success=True, data={"decayed": changed})


def build_memory_tools() -> ToolRegistry:
    """The memory tool table."""
    return ToolRegistry(
        [
            Tool(
                name="memory_create",
                description=(
                    "Create a new persistent memory: insights (why decisions were made), "
                    "gotchas (what went wrong), preferences (how the user likes things), "
                    "patterns (approaches that worked), capabilities (what has been built) "
                    "and status (where we left off)."
                ),
                input_model=MemoryCreateArgs,
                handler=memory_create,
                examples=['memory_create(type="preference", content="user prefers dark mode")'],
            ),
            Tool(
                name="memory_search",
                description=(
                    "Search memories by semantic similarity and keyword matching. "
                    "Results are ranked by relevance and importance."
                ),
                input_model=MemorySearchArgs,
                handler=memory_search,
                examples=['memory_search(query="database migrations", limit=5)'],
            ),
            Tool(
                name="memory_get",
                description="Get one memory with its relations.",
                input_model=MemoryIdArgs,
                handler=memory_get,
            ),
            Tool(
                name="memory_relate",
                description=(
                    "Create a relationship between two memories. supersedes: new "
                    "understanding replaces old; relates_to: connected concepts; caused_by: "
                    "a problem was caused by a decision; fixed_by: a problem was solved by a "
                    "pattern; implements: a capability implements a pattern."
                ),
                input_model=MemoryRelateArgs,
                handler=memory_relate,
            ),
            Tool(
                name="memory_boost",
                description=(
                    "Increase a memory's importance when it proves useful. Higher "
                    "importance ranks higher in search."
                ),
                input_model=MemoryBoostArgs,
                handler=memory_boost,
            ),
            Tool(
                name="memory_pin",
                description="Pin or unpin a memory. Pinned memories never decay.",
                input_model=MemoryPinArgs,
                handler=memory_pin,
            ),
            Tool(
                name="memory_delete",
                description="Permanently delete a memory.",
                input_model=MemoryIdArgs,
                handler=memory_delete,
            ),
            Tool(
                name="memory_session_start",
                description=(
                    "Load recent memories at the start of a session, grouped into "
                    "preferences, insights, gotchas, status, capabilities and patterns."
                ),
                input_model=MemorySessionStartArgs,
                handler=memory_session_start,
            ),
            Tool(
                name="memory_decay",
                description="Lower the importance of memories that have not been used.",
                input_model=MemoryDecayArgs,
                handler=memory_decay,
            ),
        ]
    )
