"""Two-phase "enable 2FA" flow.

NoPendingSetup -> PendingSetup -> Committed | Expired | Abandoned

``begin`` parks a fresh secret in a PendingSetup; ``confirm`` promotes it into
the user record once the authenticator app proves it has the secret.
"""

import logging
from datetime import datetime, timedelta, timezone

from second_factor.core import base32
from second_factor.core.config import Settings
from second_factor.core.errors import (
    AlreadyEnabledError,
    EnrollmentExpiredError,
    InvalidCodeError,
    NotFoundError,
    ReplayDetectedError,
    SetupInProgressError,
)
from second_factor.core.otp import TotpEngine
from second_factor.core.security import (
    build_otpauth_uri,
    format_secret_for_manual_entry,
    generate_secret,
    redact_code,
)
from second_factor.core.store import UserRecordStore
from second_factor.models.audit import AuditOperation
from second_factor.models.pending_setup import PendingSetup
from second_factor.models.user import UserSecurityRecord
from second_factor.schemas.two_factor import EnrollmentConfirmOut, EnrollmentStartOut
from second_factor.services.audit import AuditTrail
from second_factor.services.backup_codes import BackupCodeManager
from second_factor.services.locks import UserLocks
from second_factor.services.replay_guard import ReplayGuard
from second_factor.services.stats import VerificationStats

logger = logging.getLogger(__name__)


class EnrollmentService:
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

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.totp.clock(), tz=timezone.utc)

    def _scope(self, user_id: str) -> str | None:
        return user_id if self.settings.REPLAY_PER_USER else None

    async def pending(self, user_id: str) -> PendingSetup | None:
        return await self.store.get_pending(user_id)

    async def begin(
        self,
        user_id: str,
        account_label: str,
        issuer: str | None = None,
    ) -> EnrollmentStartOut:
        async with self.locks(user_id):
            return await self._begin(user_id, account_label, issuer)

    async def _begin(self, user_id: str, account_label: str, issuer: str | None) -> EnrollmentStartOut:
        issuer = issuer or self.settings.TOTP_ISSUER

        record = await self.store.get(user_id)
        if record is not None and record.is_2fa_enabled:
            raise AlreadyEnabledError()

        now = self._now()
        existing = await self.store.get_pending(user_id)
        if existing is not None:
            if not existing.is_expired(now):
                raise SetupInProgressError()
            # a stale setup nobody confirmed no longer blocks a new one
            await self.store.delete_pending(user_id)
            await self.audit.record(user_id, AuditOperation.setup_expired)

        secret = base32.encode(generate_secret(self.settings.TOTP_SECRET_LENGTH))
        pending = PendingSetup(
            user_id=user_id,
            secret=secret,
            account_label=account_label,
            issuer=issuer,
            created_at=now,
            expires_at=now + timedelta(minutes=self.settings.SETUP_EXPIRY_MINUTES),
        )
        await self.store.put_pending(user_id, pending)

        await self.audit.record(
            user_id, AuditOperation.setup_initiated,
            accountName=account_label, issuer=issuer,
        )
        logger.info("2FA setup initiated for user %s", user_id)

        return EnrollmentStartOut(
            secret=secret,
            otpauth_url=build_otpauth_uri(
                secret, account_label, issuer,
                digits=self.totp.digits, period=self.totp.step,
            ),
            manual_entry_key=format_secret_for_manual_entry(secret),
            issuer=issuer,
            account_label=account_label,
            expires_at=pending.expires_at,
            backup_codes_count=self.backup_codes.count,
        )

    async def confirm(self, user_id: str, code: str) -> EnrollmentConfirmOut:
        async with self.locks(user_id):
            return await self._confirm(user_id, code)

    async def _confirm(self, user_id: str, code: str) -> EnrollmentConfirmOut:
        pending = await self.store.get_pending(user_id)
        if pending is None:
            raise NotFoundError("2FA setup not found or expired")

        record = await self.store.get(user_id)
        if record is not None and record.is_2fa_enabled:
            # commit landed but the pending delete did not
            await self.store.delete_pending(user_id)
            raise AlreadyEnabledError()

        now = self._now()
        if pending.is_expired(now):
            await self.store.delete_pending(user_id)
            await self.audit.record(user_id, AuditOperation.setup_expired)
            raise EnrollmentExpiredError()

        code = code.strip()
        secret = base32.decode(pending.secret, strict=self.settings.STRICT_BASE32)
        if self.totp.match(secret, code) is None:
            self.stats.record(user_id, success=False)
            await self.audit.record(
                user_id, AuditOperation.setup_verification_failed, code=redact_code(code),
            )
            logger.warning("2FA setup verification failed for user %s", user_id)
            raise InvalidCodeError()

        scope = self._scope(user_id)
        if not self.replay_guard.is_fresh(code, scope):
            self.stats.record(user_id, success=False)
            await self.audit.record(
                user_id, AuditOperation.replay_detected, code=redact_code(code), stage="setup",
            )
            logger.warning("Replayed code during 2FA setup for user %s", user_id)
            raise ReplayDetectedError()

        backup_codes = self.backup_codes.generate()
        committed = UserSecurityRecord(
            secret=pending.secret,
            enabled=True,
            backup_codes=backup_codes,
            enabled_at=now,
        )
        await self.store.put(user_id, committed)
        await self.store.delete_pending(user_id)
        # only remembered once the commit is durable
        self.replay_guard.record_if_fresh(code, scope)
        self.stats.record(user_id, success=True)

        await self.audit.record(
            user_id, AuditOperation.enabled,
            method="TOTP", backupCodesGenerated=len(backup_codes),
        )
        await self.audit.notify(user_id, "2fa_enabled", enabledAt=now.isoformat())
        logger.info("2FA enabled for user %s", user_id)

        return EnrollmentConfirmOut(backup_codes=backup_codes, enabled_at=now)

    async def cancel(self, user_id: str) -> bool:
        """Abandon a pending setup. Returns False when there was none."""
        async with self.locks(user_id):
            return await self._cancel(user_id)

    async def _cancel(self, user_id: str) -> bool:
        pending = await self.store.get_pending(user_id)
        if pending is None:
            return False
        await self.store.delete_pending(user_id)
        await self.audit.record(user_id, AuditOperation.setup_cancelled)
        logger.info("2FA setup cancelled for user %s", user_id)
        return True
