from typing import Iterator, Optional


class RingBuffer:
    """
    Fixed-capacity circular buffer of strings.
    When full, appending evicts the oldest item (FIFO).
    Items are addressed by logical index: 0 is the oldest, len-1 the newest.
    """

    def __init__(self, capacity: int):
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise TypeError(f"capacity must be an int, got {type(capacity).__name__}")

        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._storage = [""] * capacity
        self._head = 0
        self._next_insert = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, item: str) -> None:
        # full: drop the oldest by moving head forward before overwriting its slot
        if self._count == self._capacity:
            self._head = (self._head + 1) % self._capacity

        self._storage[self._next_insert] = item
        self._next_insert = (self._next_insert + 1) % self._capacity

        if self._count < self._capacity:
            self._count += 1

    def is_empty(self) -> bool:
        return self._count == 0

    def size(self) -> int:
        return self._count

    def get(self, logical_index: int) -> Optional[str]:
        """Return the item at logical_index, or None if there is no such position"""
        if self._count == 0 or logical_index < 0 or logical_index >= self._count:
            return None

        return self._storage[(self._head + logical_index) % self._capacity]

    def __len__(self):
        return self._count

    def __iter__(self) -> Iterator[str]:
        for i in range(self._count):
            yield self._storage[(self._head + i) % self._capacity]

    def __repr__(self):
        return f"RingBuffer(capacity={self._capacity}, items={list(self)!r})"
