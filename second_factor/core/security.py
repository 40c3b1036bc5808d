import logging
import secrets
from urllib.parse import quote, urlencode

from second_factor.core import base32
from second_factor.core.errors import CryptoUnavailableError
from second_factor.core.otp import ALGORITHM, hotp

logger = logging.getLogger(__name__)

# RFC 4226 appendix D: secret "12345678901234567890", counter 0.
_SELF_TEST_SECRET = b"12345678901234567890"
_SELF_TEST_CODE = "755224"

# --- 2FA helpers ---

def generate_secret(length: int = 32) -> bytes:
    # 32 bytes -> 256-bit key, 52 Base32 chars
    return secrets.token_bytes(length)


def build_otpauth_uri(
    secret: str,
    account_label: str,
    issuer: str,
    digits: int = 6,
    period: int = 30,
) -> str:
    """Provisioning URI understood by Google Authenticator, Authy & co."""
    label = f"{quote(issuer, safe='@')}:{quote(account_label, safe='@')}"
    query = urlencode(
        {
            "secret": secret,
            "issuer": issuer,
            "algorithm": ALGORITHM,
            "digits": digits,
            "period": period,
        },
        quote_via=quote,
    )
    return f"otpauth://totp/{label}?{query}"


def format_secret_for_manual_entry(secret: str, group: int = 4) -> str:
    """``ABCDEFGH...`` -> ``ABCD EFGH ...``"""
    return " ".join(secret[i:i + group] for i in range(0, len(secret), group))


def redact_code(code: str) -> str:
    return "*" * len(code)


def crypto_self_test() -> None:
    """Raise :class:`CryptoUnavailableError` unless HMAC-SHA1 and the codec behave."""
    try:
        code = hotp(_SELF_TEST_SECRET, 0, 6)
        sample = bytes([1, 2, 3, 4, 5])
        round_trip = base32.decode(base32.encode(sample))
    except (ValueError, TypeError) as exc:
        logger.error("Crypto self-test raised: %s", exc)
        raise CryptoUnavailableError() from exc

    if code != _SELF_TEST_CODE:
        raise CryptoUnavailableError("HMAC-SHA1 produced an unexpected test vector")
    if round_trip != sample:
        raise CryptoUnavailableError("Base32 round-trip self-test failed")
    logger.debug("Crypto self-test passed")
