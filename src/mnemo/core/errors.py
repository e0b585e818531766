"""
Error taxonomy.

- ValidationError: malformed or out-of-range input, shown to the caller
- ProviderError: embedding provider unconfigured or upstream failure
- DimensionMismatchError: vectors of unequal length compared
- NotInitializedError: operation attempted before service setup

Unknown ids are not errors: lookups return None, mutations are no-ops.
"""


class MnemoError(Exception):
    """Base class for all mnemo errors."""


class ValidationError(MnemoError):
    """Input failed validation."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        message = super().__str__()
        if self.field:
            return f"{self.field}: {message}"
        return message


class ProviderError(MnemoError):
    """Embedding provider is unavailable or the upstream call failed."""


class DimensionMismatchError(MnemoError, ValueError):
    """Two vectors of different length were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vectors must have same length (got {left} and {right})")
        self.left = left
        self.right = right


class NotInitializedError(MnemoError, RuntimeError):
    """Memory service used before initialize() was called."""
