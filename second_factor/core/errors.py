"""Error taxonomy for the two-factor engine.

Every error carries a stable ``code`` so callers (an HTTP layer, a CLI) can map
it without matching on messages.
"""


class TwoFactorError(Exception):
    code = "two_factor_error"
    default_message = "Two-factor operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidCodeError(TwoFactorError):
    """Format mismatch or no window match. The caller may retry."""

    code = "invalid_code"
    default_message = "Invalid verification code"


class ReplayDetectedError(InvalidCodeError):
    code = "replay_detected"
    default_message = "Verification code already used"


class EnrollmentExpiredError(TwoFactorError):
    """The pending setup passed its TTL. Enrollment must restart."""

    code = "expired"
    default_message = "2FA setup expired"


class AlreadyEnabledError(TwoFactorError):
    code = "already_enabled"
    default_message = "2FA already enabled"


class SetupInProgressError(TwoFactorError):
    code = "setup_in_progress"
    default_message = "2FA setup already in progress"


class NotEnabledError(TwoFactorError):
    code = "not_enabled"
    default_message = "2FA not enabled"


class NotFoundError(TwoFactorError):
    code = "not_found"
    default_message = "Not found"


class CryptoUnavailableError(TwoFactorError):
    """HMAC-SHA1 self-test failed; the service must not start."""

    code = "crypto_unavailable"
    default_message = "HMAC-SHA1 self-test failed"


class MalformedSecretError(TwoFactorError, ValueError):
    code = "malformed_secret"
    default_message = "Malformed Base32 secret"
