"""Fixed-capacity ring buffer that overwrites its oldest entry when full."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class CircularBuffer(Generic[T]):
    """FIFO of bounded size; pushing onto a full buffer drops the oldest item."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("Capacity must be greater than 0")
        self._items: list[T | None] = [None] * capacity
        self._capacity = capacity
        self._head = 0
        self._size = 0

    def push(self, item: T) -> None:
        """Append an item, evicting the oldest one if the buffer is full."""
        tail = (self._head + self._size) % self._capacity
        self._items[tail] = item
        if self._size < self._capacity:
            self._size += 1
        else:
            self._head = (self._head + 1) % self._capacity

    def pop(self) -> T:
        """Remove and return the oldest item."""
        if not self._size:
            raise IndexError("Cannot pop from an empty buffer")
        item = self._items[self._head]
        self._items[self._head] = None
        self._head = (self._head + 1) % self._capacity
        self._size -= 1
        return item  # type: ignore[return-value]

    def front(self) -> T:
        """Return the oldest item without removing it."""
        if not self._size:
            raise IndexError("Buffer is empty")
        return self._items[self._head]  # type: ignore[return-value]

    def back(self) -> T:
        """Return the newest item without removing it."""
        if not self._size:
            raise IndexError("Buffer is empty")
        return self._items[(self._head + self._size - 1) % self._capacity]  # type: ignore[return-value]

    def at(self, index: int) -> T:
        """Return the item ``index`` places after the oldest one."""
        if not 0 <= index < self._size:
            raise IndexError("Index out of bounds")
        return self._items[(self._head + index) % self._capacity]  # type: ignore[return-value]

    def __getitem__(self, index: int) -> T:
        if index < 0:
            index += self._size
        return self.at(index)

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        for offset in range(self._size):
            yield self._items[(self._head + offset) % self._capacity]  # type: ignore[misc]

    def empty(self) -> bool:
        return self._size == 0

    def full(self) -> bool:
        return self._size == self._capacity

    def max_size(self) -> int:
        return self._capacity

    def clear(self) -> None:
        """Drop every item."""
        self._items = [None] * self._capacity
        self._head = 0
        self._size = 0