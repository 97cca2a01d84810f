from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of an operation that reports failure as a value.

    `error` is set exactly when the operation failed; `value` must only be
    read on success.
    """

    is_success: bool
    error: Optional[str] = None
    _value: Optional[T] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(is_success=True, _value=value)

    @classmethod
    def fail(cls, error: str) -> "Result[T]":
        return cls(is_success=False, error=error)

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def value(self) -> T:
        if not self.is_success:
            raise ValueError(f"Cannot read the value of a failed result: {self.error}")
        return self._value  # type: ignore[return-value]


def guard_required(arguments: Iterable[Tuple[Any, str]]) -> Result[None]:
    """Fail on the first argument that is None."""
    for argument, name in arguments:
        if argument is None:
            return Result.fail(f"{name} is required")
    return Result.ok()
