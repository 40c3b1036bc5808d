import enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class AuditOperation(str, enum.Enum):
    setup_initiated = "2FA_SETUP_INITIATED"
    setup_verification_failed = "2FA_SETUP_VERIFICATION_FAILED"
    setup_expired = "2FA_SETUP_EXPIRED"
    setup_cancelled = "2FA_SETUP_CANCELLED"
    enabled = "2FA_ENABLED"
    disabled = "2FA_DISABLED"
    disable_failed = "2FA_DISABLE_FAILED"
    login_success = "2FA_LOGIN_SUCCESS"
    login_failed = "2FA_LOGIN_FAILED"
    replay_detected = "2FA_REPLAY_DETECTED"

    @classmethod
    def parse(cls, value: "str | AuditOperation") -> "AuditOperation":
        """Resolve by value (``2FA_ENABLED``) or member name (``enabled``).

        Unknown input raises ``ValueError``; there is no fallback member.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value]
        except KeyError:
            raise ValueError(f"Unknown audit operation: {value!r}") from None


class AuditEvent(BaseModel):
    user_id: str
    operation: AuditOperation
    service: str = "TOTP"
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
