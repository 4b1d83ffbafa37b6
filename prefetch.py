# Background pre-fetch of candidate details.
#
# After the user picks one candidate, the others are fetched one by one,
# PREFETCH_INTERVAL_SECONDS apart, so the backend never sees a burst.

import logging
import threading
from typing import Callable, Container, List, Protocol, Sequence, Tuple

import constants

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    def schedule(self, delay: float, fn: Callable[[], None]) -> None:
        ...

    def cancel_all(self) -> int:
        ...


def plan_prefetch(
    candidates: Sequence[str],
    selected: str,
    cached: Container[str],
    interval: float = constants.PREFETCH_INTERVAL_SECONDS,
) -> List[Tuple[str, float]]:
    """Return (word, delay) pairs for every un-cached candidate except *selected*.

    Delay is (position in the remaining list + 1) * interval; cached candidates
    keep their slot so the spacing follows list order.
    """
    remaining = [w for w in candidates if w != selected]
    return [
        (word, (position + 1) * interval)
        for position, word in enumerate(remaining)
        if word not in cached
    ]


class TimerScheduler:
    """Cancellable delayed calls on daemon threading.Timer threads."""

    def __init__(self) -> None:
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()

    def schedule(self, delay: float, fn: Callable[[], None]) -> None:
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()

    def cancel_all(self) -> int:
        """Cancel timers that have not fired yet. Returns how many were pending."""
        with self._lock:
            pending = [t for t in self._timers if t.is_alive()]
            self._timers = []
        for timer in pending:
            timer.cancel()
        if pending:
            logger.info("Cancelled %s pending pre-fetch(es)", len(pending))
        return len(pending)

    def pending(self) -> int:
        with self._lock:
            return sum(1 for t in self._timers if t.is_alive())
