"""
CLI entry point.

Commands:
- init: Initialize data directory and database
- search <query>: Ranked memory search
- recent [project]: Most recently updated memories
- decay: Apply importance decay
- reindex: Embed memories that have no vector yet
- tools: List available tools
- call <tool> [json-args]: Invoke a tool and print its payload

Flags:
- --debug: Enable debug logging to file
"""

import asyncio
import json
import logging
import sys

from mnemo.core.config import Settings, get_settings
from mnemo.core.logging import get_logger, setup_logging
from mnemo.memory.service import SearchOptions, ServiceHandle
from mnemo.tools import ToolExecutor, build_memory_tools

USAGE = """Usage: mnemo [--debug] <command> [args]
Commands: init, search <query>, recent [project], decay, reindex, tools, call <tool> [json-args]
Flags: --debug (enable debug logging to data/mnemo.log)"""


def main() -> int:
    """Main entry point."""
    settings = get_settings()

    # Parse --debug flag (enables verbose DEBUG traces)
    debug_mode = "--debug" in sys.argv
    if debug_mode:
        sys.argv.remove("--debug")

    log_level = logging.DEBUG if debug_mode else settings.log_level
    log_file = settings.data_dir / "mnemo.log" if debug_mode else None
    setup_logging(level=log_level, log_file=log_file)
    logger = get_logger("cli")

    if len(sys.argv) < 2:
        print(USAGE)
        return 1

    command, args = sys.argv[1], sys.argv[2:]

    if command == "tools":
        print(build_memory_tools().get_context_string())
        return 0

    if command in ("init", "search", "recent", "decay", "reindex", "call"):
        logger.debug(f"Running command: {command}")
        return asyncio.run(_run(command, args, settings))

    print(f"Unknown command: {command}")
    print(USAGE)
    return 1


async def _run(command: str, args: list[str], settings: Settings) -> int:
    """Run one command against a freshly initialized service."""
    handle = ServiceHandle()
    service = await handle.initialize(settings)

    try:
        if command == "init":
            print(f"Database ready: {settings.db_path}")
            return 0

        if command == "search":
            if not args:
                print("Usage: mnemo search <query>")
                return 1
            results = await service.search_memories(SearchOptions(query=" ".join(args)))
            mode = "semantic" if service.has_semantic_search() else "keyword"
            print(f"{len(results)} result(s) ({mode} ranking)")
            for r in results:
                print(f"  [{r.score:.2f}] {r.memory.type.value:<10} {r.memory.id}  {r.memory.content}")
            return 0

        if command == "recent":
            project = args[0] if args else None
            for memory in await service.get_recent_memories(10, project):
                print(f"  {memory.updated_at:%Y-%m-%d %H:%M}  {memory.type.value:<10} {memory.content}")
            return 0

        if command == "decay":
            changed = await service.apply_decay()
            print(f"Decayed {changed} memories")
            return 0

        if command == "reindex":
            if not service.has_semantic_search():
                print("Embeddings disabled. Set OPENAI_API_KEY.")
                return 1
            count = await service.reindex_embeddings()
            print(f"Embedded {count} memories")
            return 0

        if command == "call":
            return await _call_tool(handle, args)

        return 1
    finally:
        await handle.close()


async def _call_tool(handle: ServiceHandle, args: list[str]) -> int:
    if not args:
        print("Usage: mnemo call <tool> [json-args]")
        return 1

    try:
        arguments = json.loads(args[1]) if len(args) > 1 else {}
    except json.JSONDecodeError as e:
        print(f"Invalid JSON arguments: {e}")
        return 1

    executor = ToolExecutor(build_memory_tools(), handle)
    result = await executor.execute(args[0], arguments)
    print(executor.format_result(result))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
