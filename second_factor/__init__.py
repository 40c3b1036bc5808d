from second_factor.core.config import Settings
from second_factor.core.logging import configure_logging
from second_factor.core.errors import (
    AlreadyEnabledError,
    CryptoUnavailableError,
    EnrollmentExpiredError,
    InvalidCodeError,
    MalformedSecretError,
    NotEnabledError,
    NotFoundError,
    ReplayDetectedError,
    SetupInProgressError,
    TwoFactorError,
)
from second_factor.core.store import (
    InMemoryAuditSink,
    InMemoryUserRecordStore,
    LoggingAuditSink,
    LoggingNotifier,
)
from second_factor.services.two_factor import TwoFactorService

__version__ = "0.1.0"
