"""Step-up checks for an enrolled user: login and disable.

Both try the TOTP first and fall back to a backup code. Login runs the TOTP
through the replay guard; disable does not, it is a deliberate one-off action
that wipes the secret anyway.
"""

import logging
from datetime import datetime, timezone

from second_factor.core import base32
from second_factor.core.config import Settings
from second_factor.core.errors import (
    InvalidCodeError,
    NotEnabledError,
    NotFoundError,
    ReplayDetectedError,
)
from second_factor.core.otp import TotpEngine
from second_factor.core.security import redact_code
from second_factor.core.store import UserRecordStore
from second_factor.models.audit import AuditOperation
from second_factor.models.user import UserSecurityRecord
from second_factor.schemas.two_factor import DisableOut, VerificationMethod, VerificationOut
from second_factor.services.audit import AuditTrail
from second_factor.services.backup_codes import BackupCodeManager
from second_factor.services.locks import UserLocks
from second_factor.services.replay_guard import ReplayGuard
from second_factor.services.stats import VerificationStats

logger = logging.getLogger(__name__)

DEFAULT_DISABLE_REASON = "User request"


class VerificationService:
    def __init__(
        self,
        store: UserRecordStore,
        totp: TotpEngine,
        backup_codes: BackupCodeManager,
        replay_guard: ReplayGuard,
        audit: AuditTrail,
        stats: VerificationStats,
        settings: Settings,
        locks: UserLocks | None = None,
    ):
        self.store = store
        self.totp = totp
        self.backup_codes = backup_codes
        self.replay_guard = replay_guard
        self.audit = audit
        self.stats = stats
        self.settings = settings
        self.locks = locks or UserLocks()

    async def _load_enabled(self, user_id: str) -> UserSecurityRecord:
        record = await self.store.get(user_id)
        if record is None:
            raise NotFoundError("User not found")
        if not record.is_2fa_enabled:
            raise NotEnabledError()
        return record

    def _totp_matches(self, record: UserSecurityRecord, code: str) -> bool:
        secret = base32.decode(record.secret, strict=self.settings.STRICT_BASE32)
        return self.totp.match(secret, code) is not None

    async def verify_login(self, user_id: str, code: str) -> VerificationOut:
        async with self.locks(user_id):
            return await self._verify_login(user_id, code)

    async def _verify_login(self, user_id: str, code: str) -> VerificationOut:
        record = await self._load_enabled(user_id)
        code = code.strip()

        if self._totp_matches(record, code):
            scope = user_id if self.settings.REPLAY_PER_USER else None
            if not self.replay_guard.record_if_fresh(code, scope):
                self.stats.record(user_id, success=False)
                await self.audit.record(
                    user_id, AuditOperation.replay_detected, code=redact_code(code), stage="login",
                )
                logger.warning("Replayed TOTP code at login for user %s", user_id)
                raise ReplayDetectedError()
            method = VerificationMethod.totp

        elif self.backup_codes.consume(record, code):
            await self.store.put(user_id, record)
            method = VerificationMethod.backup_code
            logger.warning(
                "User %s logged in with a backup code, %d left",
                user_id, len(record.backup_codes),
            )
            await self.audit.notify(
                user_id, "2fa_backup_code_used", remainingBackupCodes=len(record.backup_codes),
            )

        else:
            self.stats.record(user_id, success=False)
            await self.audit.record(
                user_id, AuditOperation.login_failed,
                code=redact_code(code), remainingBackupCodes=len(record.backup_codes),
            )
            logger.warning("2FA login verification failed for user %s", user_id)
            raise InvalidCodeError()

        self.stats.record(user_id, success=True)
        remaining = len(record.backup_codes)
        await self.audit.record(
            user_id, AuditOperation.login_success,
            method=method.value, remainingBackupCodes=remaining,
        )
        logger.info("2FA login verified for user %s (%s)", user_id, method.value)
        return VerificationOut(method=method, remaining_backup_codes=remaining)

    async def disable(self, user_id: str, code: str, reason: str | None = None) -> DisableOut:
        async with self.locks(user_id):
            return await self._disable(user_id, code, reason)

    async def _disable(self, user_id: str, code: str, reason: str | None) -> DisableOut:
        record = await self._load_enabled(user_id)
        code = code.strip()
        reason = reason or DEFAULT_DISABLE_REASON

        if self._totp_matches(record, code):
            method = VerificationMethod.totp
        elif self.backup_codes.contains(record, code):
            method = VerificationMethod.backup_code
        else:
            self.stats.record(user_id, success=False)
            await self.audit.record(
                user_id, AuditOperation.disable_failed,
                reason="Invalid code", userReason=reason, code=redact_code(code),
            )
            raise InvalidCodeError()

        self.stats.record(user_id, success=True)
        now = datetime.fromtimestamp(self.totp.clock(), tz=timezone.utc)
        await self.store.put(
            user_id,
            UserSecurityRecord(
                secret=None,
                enabled=False,
                backup_codes=[],
                enabled_at=None,
                disabled_at=now,
                disable_reason=reason,
            ),
        )

        await self.audit.record(
            user_id, AuditOperation.disabled, method=method.value, reason=reason,
        )
        await self.audit.notify(user_id, "2fa_disabled", reason=reason)
        logger.info("2FA disabled for user %s", user_id)
        return DisableOut(method=method, reason=reason, disabled_at=now)
