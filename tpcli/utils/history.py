from typing import Optional

from tpcli.utils.ring_buffer import RingBuffer


class HistoryNavigator:
    """
    Shell-style Up/Down traversal over a bounded command history.

    The entries form an inverted stack: Up moves toward the oldest entry,
    Down toward the newest. Below the newest entry sits an implicit empty
    line ("bottom") which is where browsing starts and ends.

    Up from the oldest entry returns it again without moving. Down from the
    bottom returns "" without moving. With no entries both return "".

    add_item() does not reset the cursor, call reset_iteration() afterwards
    (or use submit(), which does both).
    """

    def __init__(self, max_entries: int):
        self._buffer = RingBuffer(max_entries)
        self._cursor: Optional[int] = None  # None is the bottom line

    @property
    def max_entries(self) -> int:
        return self._buffer.capacity

    @property
    def is_browsing(self) -> bool:
        return self._cursor is not None

    def add_item(self, item: str) -> None:
        self._buffer.append(item)

    def submit(self, item: str) -> None:
        """Record a submitted command and move back to the bottom line"""
        self.add_item(item)
        self.reset_iteration()

    def reset_iteration(self) -> None:
        self._cursor = None

    # Navigation

    def up(self) -> str:
        """Move toward older entries"""
        if self._buffer.is_empty():
            return ""

        if self._cursor is None:
            self._cursor = self._buffer.size() - 1
        elif self._cursor > 0:
            self._cursor -= 1

        return self._buffer.get(self._cursor) or ""

    def down(self) -> str:
        """Move toward newer entries, ending on the empty bottom line"""
        if self._buffer.is_empty() or self._cursor is None:
            return ""

        if self._cursor >= self._buffer.size() - 1:
            self._cursor = None
            return ""

        self._cursor += 1
        return self._buffer.get(self._cursor) or ""

    def entries(self) -> list[str]:
        return list(self._buffer)

    def __len__(self):
        return self._buffer.size()
