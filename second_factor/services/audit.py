import logging
from typing import Any

from second_factor.core.store import AuditSink, Notifier
from second_factor.models.audit import AuditOperation

logger = logging.getLogger(__name__)


class AuditTrail:
    """Fire-and-forget front for the audit sink and notifier.

    A failing sink is logged and ignored: auditing never decides a security outcome.
    """

    def __init__(self, sink: AuditSink, notifier: Notifier | None = None):
        self.sink = sink
        self.notifier = notifier

    async def record(self, user_id: str, operation: AuditOperation, **details: Any) -> None:
        try:
            await self.sink.record(user_id, operation.value, details)
        except Exception:
            logger.warning("Audit sink failed for %s (%s)", operation.value, user_id, exc_info=True)

    async def notify(self, user_id: str, event: str, **details: Any) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify(user_id, event, details)
        except Exception:
            logger.warning("Notifier failed for %s (%s)", event, user_id, exc_info=True)
