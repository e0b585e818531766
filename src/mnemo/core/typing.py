"""Shared typing aliases used across modules."""

from typing import Any, TypeAlias

JSONDict: TypeAlias = dict[str, Any]
ToolSpec: TypeAlias = dict[str, Any]
Vector: TypeAlias = list[float]
