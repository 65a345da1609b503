from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a step that can recover from failure.

    A degraded outcome still carries a usable value (the fallback) together
    with the reason the preferred path was abandoned.
    """
    value: T
    fallback_reason: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value)

    @classmethod
    def degraded(cls, value: T, reason: str) -> "Outcome[T]":
        return cls(value, reason)

    @property
    def is_degraded(self) -> bool:
        return self.fallback_reason is not None
