import threading
from collections import Counter
from typing import Any


class VerificationStats:
    """Process-local counters reported by the health check."""

    def __init__(self):
        self._lock = threading.Lock()
        self.total = 0
        self.successful = 0
        self.failed = 0
        self._per_user: Counter[str] = Counter()

    def record(self, user_id: str, success: bool) -> None:
        with self._lock:
            self.total += 1
            if success:
                self.successful += 1
            else:
                self.failed += 1
            self._per_user[user_id] += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            rate = f"{self.successful / self.total * 100:.2f}%" if self.total else "0%"
            return {
                "totalVerifications": self.total,
                "successfulVerifications": self.successful,
                "failedVerifications": self.failed,
                "successRate": rate,
                "activeUsers": len(self._per_user),
            }

    def reset(self) -> None:
        with self._lock:
            self.total = self.successful = self.failed = 0
            self._per_user.clear()
