from collections import deque
from threading import Lock

from tpcli.core.config import settings


class LogBuffer:
    """Line buffer backing one output panel"""

    def __init__(self, max_lines: int = 10_000):
        self.lines = deque(maxlen=max_lines)
        self.lock = Lock()

    def write(self, text: str) -> int:
        with self.lock:
            for line in text.rstrip("\n").splitlines():
                self.lines.append(line)
        return len(text)

    def get_text(self) -> str:
        with self.lock:
            return "\n".join(self.lines)

    def clear(self):
        with self.lock:
            self.lines.clear()

    # make objekt iterable
    def __iter__(self):
        with self.lock:
            return iter(list(self.lines))

    # make len(log_buffer) possible
    def __len__(self):
        return len(self.lines)


# global singletons, one per panel
general_buffer = LogBuffer(settings.output_max_lines)
error_buffer = LogBuffer(settings.output_max_lines)
history_buffer = LogBuffer(settings.output_max_lines)
