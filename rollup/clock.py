import threading
import time
from typing import Callable, Iterable, Iterator, Optional


class MonotonicClock:
    """
    Wall-clock seconds that never go backwards. A source reading earlier than
    the previous result returns the previous result again.
    """

    def __init__(self, source: Optional[Callable[[], float]] = None):
        self._source = source or time.time
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(self._source()))
            return self._last


class FixedClock:
    """Deterministic clock for tests: replays ``ticks`` then repeats the last one"""

    def __init__(self, ticks: Iterable[int] = (1_700_000_000,)):
        self._ticks: Iterator[int] = iter(ticks)
        self._last = next(self._ticks)
        self._started = False

    def now(self) -> int:
        if self._started:
            self._last = next(self._ticks, self._last)
        self._started = True
        return self._last
