"""
Ok/Err values for single-dependency resolution.

Resolving one dependency returns a value instead of raising, so batch
callers record the failure and move on to the next dependency.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import DependencyError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """A dependency that could not be resolved. ``unwrap`` re-raises the cause."""

    error: DependencyError

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]
