"""Tool definitions: name, description, input model and handler."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from mnemo.core.types import ActionResult
from mnemo.core.typing import ToolSpec

if TYPE_CHECKING:
    from mnemo.memory.service import MemoryService

Handler = Callable[["MemoryService", Any], Awaitable[ActionResult]]


@dataclass
class Tool:
    """Definition of a callable memory operation."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: Handler
    examples: list[str] = field(default_factory=list)

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the input model, without the title noise."""
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def to_context_string(self) -> str:
        """Format tool for LLM context."""
        properties = self.input_schema().get("properties", {})
        required = set(self.input_schema().get("required", []))

        lines = [f"{self.name}({', '.join(properties)})"]
        lines.append(f"  {self.description.splitlines()[0]}")

        if properties:
            lines.append("  Parameters:")
            for name, prop in properties.items():
                req = "required" if name in required else "optional"
                lines.append(f"    - {name} ({req}): {prop.get('description', '')}")

        if self.examples:
            lines.append("  Examples:")
            for ex in self.examples:
                lines.append(f"    {ex}")

        return "\n".join(lines)

    def to_openai_function(self) -> ToolSpec:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema(),
            },
        }

    def to_anthropic_tool(self) -> ToolSpec:
        """Convert to Anthropic tool use format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema(),
        }
