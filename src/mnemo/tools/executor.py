"""Validate and execute tool calls against the memory service."""

import json
from datetime import datetime
from enum import Enum
from typing import Any

import pydantic

from mnemo.core.errors import NotInitializedError, ValidationError
from mnemo.core.logging import get_logger
from mnemo.core.types import ActionResult
from mnemo.memory.service import ServiceHandle
from mnemo.tools.registry import ToolRegistry
from mnemo.tools.sanitize import sanitize_error

logger = get_logger("tools.executor")

# Maximum length for logged content (characters)
MAX_LOG_LENGTH = 500


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime and enum values."""

    def default(self, obj: object) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


def _first_error(error: pydantic.ValidationError) -> ValidationError:
    details = error.errors()
    if not details:
        return ValidationError("Validation failed")
    first = details[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    return ValidationError(first.get("msg", "Validation failed"), field)


class ToolExecutor:
    """Executes tool calls with validation and error redaction."""

    def __init__(self, registry: ToolRegistry, handle: ServiceHandle) -> None:
        """
        Initialize executor.

        Args:
            registry: Tool table to look up tools
            handle: Owner of the memory service the tools operate on
        """
        self.registry = registry
        self.handle = handle

    async def execute(self, tool_name: str, arguments: dict[str, Any] | None = None) -> ActionResult:
        """
        Execute a single tool call.

        Invalid input, unknown tools and handler failures come back as a
        failed ActionResult with a redacted message. NotInitializedError is
        raised: there is nothing useful to tell the caller.

        Args:
            tool_name: Registered tool name
            arguments: Raw arguments to validate against the tool's input model

        Returns:
            ActionResult with success/error and data
        """
        tool = self.registry.get(tool_name)
        if not tool:
            return ActionResult(success=False, error=f"Unknown tool: {tool_name}")

        service = self.handle.service

        try:
            validated = tool.input_model.model_validate(arguments or {})
        except pydantic.ValidationError as e:
            error = _first_error(e)
            logger.info(f"Rejected {tool_name} input: {error}")
            return ActionResult(success=False, error=f"Invalid arguments: {sanitize_error(error)}")

        try:
            logger.info(f"Executing tool: {tool_name}")
            result = await tool.handler(service, validated)
            logger.debug(f"Tool {tool_name} result: {self.format_result(result)[:MAX_LOG_LENGTH]}")
            return result
        except ValidationError as e:
            return ActionResult(success=False, error=f"Invalid arguments: {sanitize_error(e)}")
        except NotInitializedError:
            raise
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}", exc_info=True)
            return ActionResult(success=False, error=f"Error: {sanitize_error(e)}")

    @staticmethod
    def format_result(result: ActionResult) -> str:
        """Serialize a result as the textual payload returned to callers."""
        if result.success:
            return json.dumps(result.data, indent=2, cls=DateTimeEncoder)
        return result.error or "Error"
