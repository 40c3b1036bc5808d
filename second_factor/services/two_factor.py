"""Entry point of the engine.

One ``TwoFactorService`` per process (or per test), collaborators passed in::

    async with TwoFactorService(store, audit_sink=sink) as service:
        start = await service.begin_enrollment(user_id, "alice@example.com")
        ...
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from second_factor.core import base32
from second_factor.core.config import Settings, settings as default_settings
from second_factor.core.errors import TwoFactorError
from second_factor.core.otp import ALGORITHM, TotpEngine
from second_factor.core.security import crypto_self_test, generate_secret
from second_factor.core.store import AuditSink, LoggingAuditSink, Notifier, UserRecordStore
from second_factor.schemas.two_factor import (
    DisableOut,
    EnrollmentConfirmOut,
    EnrollmentStartOut,
    VerificationOut,
)
from second_factor.services.audit import AuditTrail
from second_factor.services.backup_codes import BackupCodeManager
from second_factor.services.enrollment import EnrollmentService
from second_factor.services.locks import UserLocks
from second_factor.services.replay_guard import ReplayGuard
from second_factor.services.stats import VerificationStats
from second_factor.services.verification import VerificationService

logger = logging.getLogger(__name__)


class TwoFactorService:
    def __init__(
        self,
        store: UserRecordStore,
        audit_sink: AuditSink | None = None,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or default_settings
        self.store = store
        self.clock = clock

        self.totp = TotpEngine(
            step=self.settings.TOTP_STEP_SECONDS,
            digits=self.settings.TOTP_DIGITS,
            window=self.settings.TOTP_WINDOW,
            clock=clock,
        )
        self.replay_guard = ReplayGuard(
            reuse_window_seconds=self.settings.CODE_REUSE_SECONDS,
            sweep_interval_seconds=self.settings.cleanup_interval_seconds,
            clock=clock,
        )
        self.backup_codes = BackupCodeManager(
            count=self.settings.BACKUP_CODES_COUNT,
            length=self.settings.BACKUP_CODE_LENGTH,
        )
        self.audit = AuditTrail(audit_sink or LoggingAuditSink(), notifier)
        self.stats = VerificationStats()
        self.locks = UserLocks()

        parts = (store, self.totp, self.backup_codes, self.replay_guard, self.audit, self.stats, self.settings)
        self.enrollment = EnrollmentService(*parts, locks=self.locks)
        self.verification = VerificationService(*parts, locks=self.locks)

        self._started = False
        self._last_health_check: datetime | None = None

    # --- lifecycle ---

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Run the crypto self-test, then start the replay sweep.

        Raises :class:`CryptoUnavailableError` when HMAC-SHA1 is unusable.
        """
        if self._started:
            return
        logger.info("Initializing TOTP two-factor service")
        crypto_self_test()
        await self.replay_guard.start()
        self._started = True
        logger.info("TOTP two-factor service ready")

    async def stop(self) -> None:
        await self.replay_guard.stop()
        self.replay_guard.clear()
        self._started = False
        logger.info("TOTP two-factor service stopped")

    async def __aenter__(self) -> "TwoFactorService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # --- enrollment ---

    async def begin_enrollment(
        self, user_id: str, account_label: str, issuer: str | None = None
    ) -> EnrollmentStartOut:
        return await self.enrollment.begin(user_id, account_label, issuer)

    async def confirm_enrollment(self, user_id: str, code: str) -> EnrollmentConfirmOut:
        return await self.enrollment.confirm(user_id, code)

    async def cancel_enrollment(self, user_id: str) -> bool:
        return await self.enrollment.cancel(user_id)

    # --- verification ---

    async def verify_login(self, user_id: str, code: str) -> VerificationOut:
        return await self.verification.verify_login(user_id, code)

    async def disable(self, user_id: str, code: str, reason: str | None = None) -> DisableOut:
        return await self.verification.disable(user_id, code, reason)

    async def is_enabled(self, user_id: str) -> bool:
        record = await self.store.get(user_id)
        return record is not None and record.is_2fa_enabled

    # --- helpers ---

    def current_code(self, secret: str) -> str:
        """Code for a Base32 ``secret`` at the current time step."""
        return self.totp.generate(base32.decode(secret, strict=self.settings.STRICT_BASE32))

    def remaining_seconds(self) -> int:
        return self.totp.remaining_seconds()

    def health_check(self) -> dict[str, Any]:
        started_at = time.perf_counter()
        try:
            crypto_self_test()
            secret = generate_secret(self.settings.TOTP_SECRET_LENGTH)
            encoded = base32.encode(secret)
            if len(encoded) != -(-len(secret) * 8 // 5):
                raise TwoFactorError("Secret generation self-test failed")
            if not self.totp.verify(secret, self.totp.generate(secret)):
                raise TwoFactorError("TOTP self-test failed")
        except TwoFactorError as exc:
            logger.error("TOTP health check failed: %s", exc)
            return {
                "service": "TOTPService",
                "status": "unhealthy",
                "error": str(exc),
                "lastCheck": datetime.now(tz=timezone.utc).isoformat(),
            }

        self._last_health_check = datetime.now(tz=timezone.utc)
        elapsed_ms = (time.perf_counter() - started_at) * 1000
        return {
            "service": "TOTPService",
            "status": "healthy",
            "initialized": self._started,
            "lastCheck": self._last_health_check.isoformat(),
            "healthCheckTime": f"{elapsed_ms:.0f}ms",
            "statistics": self.stats.snapshot(),
            "replayGuard": {
                "running": self.replay_guard.running,
                "entries": len(self.replay_guard),
            },
            "configuration": {
                "timeStep": self.totp.step,
                "digits": self.totp.digits,
                "algorithm": ALGORITHM,
                "windowSize": self.totp.window,
            },
        }
