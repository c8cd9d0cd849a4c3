"""Spawn/join task handles for background computations.

Consumers never poll these handles: they call ``join`` at the point where the
result is needed and suspend only until it is ready.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Task(Protocol[T_co]):
    def join(self) -> T_co: ...


class FutureTask(Generic[T]):
    """Task backed by a ``concurrent.futures.Future``."""

    def __init__(self, future: Future[T]) -> None:
        self._future = future

    def done(self) -> bool:
        return self._future.done()

    def join(self) -> T:
        return self._future.result()


class CompletedTask(Generic[T]):
    """Task whose value is already known."""

    def __init__(self, value: T) -> None:
        self._value = value

    def done(self) -> bool:
        return True

    def join(self) -> T:
        return self._value


__all__ = ["Task", "FutureTask", "CompletedTask"]
