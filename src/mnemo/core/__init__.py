"""
Core module - configuration, errors, shared types.

Components:
- config: Settings management via pydantic-settings
- errors: Error taxonomy (validation, provider, dimension, lifecycle)
- types: Shared data structures (ActionResult)
- logging: Structured logging setup
"""

from mnemo.core.config import Settings
from mnemo.core.errors import (
    DimensionMismatchError,
    MnemoError,
    NotInitializedError,
    ProviderError,
    ValidationError,
)
from mnemo.core.types import ActionResult

__all__ = [
    "Settings",
    "ActionResult",
    "MnemoError",
    "ValidationError",
    "ProviderError",
    "DimensionMismatchError",
    "NotInitializedError",
]
