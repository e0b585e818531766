"""
Shared type definitions.

Core data structures used across modules.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class ActionResult:
    """Result of an executed operation."""

    success: bool
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}
