"""
Tagged results shared by the pipeline stages.

``Parsed``/``Malformed`` is what the tolerant JSON locator hands back for every
model response; ``Outcome`` is what each best-effort stage hands back to the
orchestrator so the degrade-or-fail decision is made in one place.
"""
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class Malformed:
    raw_text: str
    error: str


JsonResult = Union[Parsed, Malformed]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value of a best-effort stage, or the reason it degraded."""

    value: Optional[T] = None
    degraded_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.degraded_reason is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def degraded(cls, reason: str, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value, degraded_reason=reason or "unknown failure")
