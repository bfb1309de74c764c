# Cooperative one-shot timers

import time
from typing import Callable, Dict, Optional, Tuple


class Timers:
    """Deferred callbacks polled from the host loop.

    At most one timer per kind is pending; scheduling a kind again replaces
    the earlier one.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._pending: Dict[str, Tuple[float, Callable]] = {}

    def schedule(self, kind: str, delay_ms: float, fn: Callable) -> None:
        self._pending[kind] = (self.clock() + max(0.0, float(delay_ms)) / 1000.0, fn)

    def cancel(self, kind: str) -> None:
        self._pending.pop(kind, None)

    def pending(self, kind: str) -> bool:
        return kind in self._pending

    def due_in(self, kind: str) -> Optional[float]:
        entry = self._pending.get(kind)
        if entry is None:
            return None
        return max(0.0, entry[0] - self.clock())

    def poll(self) -> int:
        """Run every timer whose deadline has passed. Returns how many ran."""
        now = self.clock()
        due = [(k, fn) for k, (at, fn) in self._pending.items() if at <= now]
        ran = 0
        for kind, fn in due:
            # an earlier callback may have replaced this kind
            entry = self._pending.get(kind)
            if entry is None or entry[1] is not fn:
                continue
            del self._pending[kind]
            fn()
            ran += 1
        return ran

    def clear(self) -> None:
        self._pending.clear()
