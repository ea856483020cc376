"""Monotonic deadlines shared by a step and the processes it spawns."""

from __future__ import annotations

from dataclasses import dataclass
from time import monotonic

__all__ = ["Deadline"]


@dataclass(frozen=True, slots=True)
class Deadline:
    """Point in monotonic time after which work must stop.

    `at` is None for an unbounded deadline.
    """

    at: float | None = None

    @classmethod
    def after(cls, seconds: float | None) -> Deadline:
        if seconds is None:
            return cls(at=None)
        return cls(at=monotonic() + max(seconds, 0.0))

    @classmethod
    def unbounded(cls) -> Deadline:
        return cls(at=None)

    def remaining(self) -> float | None:
        """Seconds left (never negative), or None when unbounded."""
        if self.at is None:
            return None
        return max(self.at - monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def earliest(self, other: Deadline) -> Deadline:
        """Return whichever deadline elapses first."""
        if self.at is None:
            return other
        if other.at is None:
            return self
        return self if self.at <= other.at else other
