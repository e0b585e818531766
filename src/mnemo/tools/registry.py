"""Tool registry: static name -> tool table."""

from mnemo.core.logging import get_logger
from mnemo.tools.base import Tool

logger = get_logger("tools.registry")


class ToolRegistry:
    """Table of available tools, filled once at startup."""

    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Register a tool. Names must be unique."""
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} already registered")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def get(self, name: str) -> Tool | None:
        """Get tool by name."""
        return self._tools.get(name)

    def get_all(self) -> list[Tool]:
        """Get all registered tools."""
        return list(self._tools.values())

    def has_tool(self, name: str) -> bool:
        """Check if tool exists."""
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def get_context_string(self) -> str:
        """Formatted tool definitions for LLM context."""
        if not self._tools:
            return "No tools available."

        lines = ["# AVAILABLE TOOLS\n"]
        for tool in self._tools.values():
            lines.append(tool.to_context_string())
            lines.append("")  # Blank line between tools
        return "\n".join(lines)

    def to_openai_tools(self) -> list[dict]:
        """All tools in OpenAI function calling format."""
        return [tool.to_openai_function() for tool in self._tools.values()]

    def to_anthropic_tools(self) -> list[dict]:
        """All tools in Anthropic tool use format."""
        return [tool.to_anthropic_tool() for tool in self._tools.values()]
