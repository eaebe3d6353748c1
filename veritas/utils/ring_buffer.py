"""
Ring Buffer — Fixed-Capacity Rolling History
=============================================
Transition and micro-expression histories keep only their newest N
entries.  The slots are allocated once; ``append`` overwrites the oldest
slot when full, so ``len(buffer) <= capacity`` always holds.
"""

from __future__ import annotations

from typing import Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Circular buffer iterating oldest -> newest."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"Ring buffer capacity must be positive, got {capacity}")
        self._slots: list[Optional[T]] = [None] * capacity
        self._head = 0          # index of the oldest entry
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def append(self, item: T) -> Optional[T]:
        """Add ``item``; return the evicted entry when the buffer was full."""
        capacity = len(self._slots)
        if self._size < capacity:
            self._slots[(self._head + self._size) % capacity] = item
            self._size += 1
            return None

        evicted = self._slots[self._head]
        self._slots[self._head] = item
        self._head = (self._head + 1) % capacity
        return evicted

    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.append(item)

    def clear(self) -> None:
        self._slots = [None] * len(self._slots)
        self._head = 0
        self._size = 0

    def oldest(self) -> Optional[T]:
        return self._slots[self._head] if self._size else None

    def newest(self) -> Optional[T]:
        if not self._size:
            return None
        return self._slots[(self._head + self._size - 1) % len(self._slots)]

    def to_list(self) -> list[T]:
        return list(self)

    def __iter__(self) -> Iterator[T]:
        capacity = len(self._slots)
        for offset in range(self._size):
            yield self._slots[(self._head + offset) % capacity]

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def __repr__(self) -> str:
        return f"RingBuffer(size={self._size}, capacity={self.capacity})"
