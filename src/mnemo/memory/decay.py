"""
Importance decay policies.

Idle time is measured from the later of the last access and the last
decay run, so calling apply_decay() often never decays a memory faster
than calling it rarely. Pinned memories are skipped by the store before a
policy ever sees them.

Default: exponential, half-life 30 days, floor 0.1, anchored types exempt.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from mnemo.core.config import Settings
from mnemo.memory.base import ANCHORED_TYPES, MemoryType

SECONDS_PER_DAY = 86400.0


def idle_days(
    now: datetime, last_accessed_at: datetime, decayed_at: datetime | None = None
) -> float:
    """Days since the memory was last touched by an access or a decay run."""
    since = last_accessed_at
    if decayed_at is not None and decayed_at > since:
        since = decayed_at
    return max(0.0, (now - since).total_seconds() / SECONDS_PER_DAY)


class DecayPolicy(ABC):
    """Maps (importance, idle days) to a lowered importance."""

    def __init__(
        self,
        floor: float = 0.1,
        exempt_types: Iterable[MemoryType] = ANCHORED_TYPES,
    ):
        if not 0.0 <= floor <= 1.0:
            raise ValueError(f"Decay floor must be within [0, 1], got {floor}")
        self.floor = floor
        self.exempt_types = frozenset(exempt_types)

    def applies_to(self, memory_type: MemoryType) -> bool:
        return memory_type not in self.exempt_types

    def decay(self, importance: float, days: float) -> float:
        """New importance, never above the current value nor below the floor."""
        if importance <= self.floor or days <= 0:
            return importance
        return min(importance, max(self.floor, self._curve(importance, days)))

    @abstractmethod
    def _curve(self, importance: float, days: float) -> float: ...


class ExponentialDecay(DecayPolicy):
    """importance * 0.5 ** (days / half_life_days)"""

    def __init__(
        self,
        half_life_days: float = 30.0,
        floor: float = 0.1,
        exempt_types: Iterable[MemoryType] = ANCHORED_TYPES,
    ):
        super().__init__(floor=floor, exempt_types=exempt_types)
        if half_life_days <= 0:
            raise ValueError("half_life_days must be positive")
        self.half_life_days = half_life_days

    def _curve(self, importance: float, days: float) -> float:
        return importance * 0.5 ** (days / self.half_life_days)


class LinearDecay(DecayPolicy):
    """importance - rate_per_day * days"""

    def __init__(
        self,
        rate_per_day: float = 0.01,
        floor: float = 0.1,
        exempt_types: Iterable[MemoryType] = ANCHORED_TYPES,
    ):
        super().__init__(floor=floor, exempt_types=exempt_types)
        if rate_per_day < 0:
            raise ValueError("rate_per_day must not be negative")
        self.rate_per_day = rate_per_day

    def _curve(self, importance: float, days: float) -> float:
        return importance - self.rate_per_day * days


def decay_policy_from_settings(settings: Settings) -> DecayPolicy:
    """Build the configured decay policy."""
    if settings.decay_policy == "linear":
        return LinearDecay(rate_per_day=settings.decay_rate, floor=settings.decay_floor)
    return ExponentialDecay(
        half_life_days=settings.decay_half_life_days, floor=settings.decay_floor
    )
