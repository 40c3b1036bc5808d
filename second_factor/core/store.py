"""Collaborator contracts the engine talks to, plus in-process implementations.

The engine never owns persistence. ``UserRecordStore`` is whatever key/value
store holds user documents; each call is assumed atomic on its own.
"""

import logging
from typing import Any, Protocol

from second_factor.models.audit import AuditEvent, AuditOperation
from second_factor.models.pending_setup import PendingSetup
from second_factor.models.user import UserSecurityRecord

logger = logging.getLogger(__name__)


class UserRecordStore(Protocol):
    async def get(self, user_id: str) -> UserSecurityRecord | None: ...

    async def put(self, user_id: str, record: UserSecurityRecord) -> None: ...

    async def get_pending(self, user_id: str) -> PendingSetup | None: ...

    async def put_pending(self, user_id: str, pending: PendingSetup) -> None: ...

    async def delete_pending(self, user_id: str) -> None: ...


class AuditSink(Protocol):
    async def record(self, user_id: str, operation: str, details: dict[str, Any]) -> None: ...


class Notifier(Protocol):
    async def notify(self, user_id: str, event: str, details: dict[str, Any]) -> None: ...


class InMemoryUserRecordStore:
    """Dict-backed store; hands out copies so callers cannot mutate it behind its back."""

    def __init__(self):
        self._records: dict[str, UserSecurityRecord] = {}
        self._pending: dict[str, PendingSetup] = {}

    async def get(self, user_id: str) -> UserSecurityRecord | None:
        record = self._records.get(user_id)
        return record.model_copy(deep=True) if record is not None else None

    async def put(self, user_id: str, record: UserSecurityRecord) -> None:
        self._records[user_id] = record.model_copy(deep=True)

    async def get_pending(self, user_id: str) -> PendingSetup | None:
        return self._pending.get(user_id)

    async def put_pending(self, user_id: str, pending: PendingSetup) -> None:
        self._pending[user_id] = pending

    async def delete_pending(self, user_id: str) -> None:
        self._pending.pop(user_id, None)


class LoggingAuditSink:
    async def record(self, user_id: str, operation: str, details: dict[str, Any]) -> None:
        logger.info("audit user=%s operation=%s details=%s", user_id, operation, details)


class InMemoryAuditSink:
    def __init__(self):
        self.events: list[AuditEvent] = []

    async def record(self, user_id: str, operation: str, details: dict[str, Any]) -> None:
        self.events.append(
            AuditEvent(
                user_id=user_id,
                operation=AuditOperation.parse(operation),
                details=dict(details),
            )
        )

    def operations(self, user_id: str | None = None) -> list[AuditOperation]:
        return [e.operation for e in self.events if user_id is None or e.user_id == user_id]


class LoggingNotifier:
    async def notify(self, user_id: str, event: str, details: dict[str, Any]) -> None:
        logger.info("notify user=%s event=%s details=%s", user_id, event, details)
