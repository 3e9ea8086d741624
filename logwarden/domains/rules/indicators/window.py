"""Bounded recent-history window shared by the history indicators."""

from collections import Counter, deque
from itertools import islice


class RecentHistory:
    """Bounded ring buffer of recently seen source addresses.

    Keeps per-source counts in step with the buffer so lookups stay O(1).
    One instance belongs to one detector; detectors are built per job, so the
    window never spans jobs.
    """

    def __init__(self, max_size: int = 1000) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._sources: deque[str] = deque()
        self._counts: Counter[str] = Counter()

    def __len__(self) -> int:
        return len(self._sources)

    def seen(self, source: str) -> int:
        return self._counts.get(source, 0)

    def recent_count(self, source: str, window: int) -> int:
        """How often ``source`` appears among the last ``window`` entries."""
        return sum(1 for s in islice(reversed(self._sources), window) if s == source)

    def record(self, source: str) -> None:
        self._sources.append(source)
        self._counts[source] += 1
        if len(self._sources) > self.max_size:
            evicted = self._sources.popleft()
            self._counts[evicted] -= 1
            if self._counts[evicted] <= 0:
                del self._counts[evicted]
