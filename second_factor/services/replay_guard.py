"""In-memory record of recently accepted codes.

Entries are keyed by ``(scope, code)``. With ``scope=None`` the key is the bare
code string, so an identical value is refused process-wide for the whole reuse
window no matter which counter or secret produced it.
"""

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Callable, Hashable

logger = logging.getLogger(__name__)


class ReplayGuard:
    def __init__(
        self,
        reuse_window_seconds: float = 60,
        sweep_interval_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self.reuse_window = reuse_window_seconds
        self.sweep_interval = sweep_interval_seconds
        self.clock = clock
        self._accepted: dict[tuple[Hashable, str], float] = {}
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._accepted)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _is_recent(self, key: tuple[Hashable, str], now: float) -> bool:
        accepted_at = self._accepted.get(key)
        return accepted_at is not None and now - accepted_at < self.reuse_window

    def is_fresh(self, code: str, scope: Hashable = None) -> bool:
        """True when ``code`` has not been accepted within the reuse window."""
        with self._lock:
            return not self._is_recent((scope, code), self.clock())

    def record_if_fresh(self, code: str, scope: Hashable = None) -> bool:
        """Record ``code`` as accepted now, unless it already was within the window.

        A rejected replay leaves the original timestamp untouched.
        """
        key = (scope, code)
        with self._lock:
            now = self.clock()
            if self._is_recent(key, now):
                return False
            self._accepted[key] = now
            return True

    def sweep(self) -> int:
        """Drop entries older than the reuse window; returns how many were removed."""
        with self._lock:
            cutoff = self.clock() - self.reuse_window
            expired = [key for key, accepted_at in self._accepted.items() if accepted_at <= cutoff]
            for key in expired:
                del self._accepted[key]
            remaining = len(self._accepted)
        logger.debug("Replay guard swept %d entries, %d remaining", len(expired), remaining)
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._accepted.clear()

    # --- lifecycle ---

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._sweep_forever(), name="replay-guard-sweep")
        logger.info("Replay guard sweep started (every %ss)", self.sweep_interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Replay guard sweep stopped")

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Replay guard sweep failed")
