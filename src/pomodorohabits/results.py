"""Result values and the error taxonomy shared by the timer and habit code.

Core operations never raise for bad input. They return a ``Result`` carrying
either a value or one of the ``CoreError`` subclasses below, so a stray
negative tick or one malformed habit record cannot unwind shared state.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class CoreError(Exception):
    """Base class for every error the core reports."""


class ConfigurationError(CoreError):
    """A timer setting was rejected (e.g. a long break interval below 1)."""


class InvalidInputError(CoreError):
    """An operation received input it cannot act on."""


class PersistenceReadError(CoreError):
    """A stored snapshot could not be turned into habit records."""


class PersistenceWriteError(CoreError):
    """The persistence adapter failed to store a snapshot."""


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[CoreError] = None
    warnings: Tuple[CoreError, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None, *, warnings: Tuple[CoreError, ...] = ()) -> "Result[T]":
        return cls(value=value, warnings=tuple(warnings))

    @classmethod
    def failure(cls, error: CoreError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error (for outer layers only)."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
