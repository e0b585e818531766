"""Memory operations exposed as validated, named tools."""

from mnemo.tools.base import Tool
from mnemo.tools.executor import ToolExecutor
from mnemo.tools.memory_tools import build_memory_tools
from mnemo.tools.registry import ToolRegistry
from mnemo.tools.sanitize import sanitize_error

__all__ = ["Tool", "ToolRegistry", "ToolExecutor", "build_memory_tools", "sanitize_error"]
