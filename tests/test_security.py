from urllib.parse import parse_qs, urlsplit

import pytest

from second_factor.core import security
from second_factor.core.errors import CryptoUnavailableError


def test_generate_secret_length_and_randomness() -> None:
    first = security.generate_secret()
    assert len(first) == 32
    assert first != security.generate_secret()


def test_otpauth_uri_shape() -> None:
    uri = security.build_otpauth_uri("JBSWY3DPEHPK3PXP", "alice@example.com", "ACME")
    assert uri == (
        "otpauth://totp/ACME:alice@example.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=ACME&algorithm=SHA1&digits=6&period=30"
    )


def test_otpauth_uri_escapes_label_and_issuer() -> None:
    uri = security.build_otpauth_uri("JBSWY3DPEHPK3PXP", "bob smith", "Acme Corp")
    parts = urlsplit(uri)
    assert parts.scheme == "otpauth"
    assert parts.netloc == "totp"
    assert parts.path == "/Acme%20Corp:bob%20smith"
    query = parse_qs(parts.query)
    assert query["issuer"] == ["Acme Corp"]
    assert query["digits"] == ["6"]
    assert query["period"] == ["30"]


def test_manual_entry_format() -> None:
    assert security.format_secret_for_manual_entry("ABCDEFGHIJ") == "ABCD EFGH IJ"
    assert security.format_secret_for_manual_entry("") == ""


def test_redact_code() -> None:
    assert security.redact_code("123456") == "******"


def test_crypto_self_test_passes() -> None:
    security.crypto_self_test()


def test_crypto_self_test_detects_broken_hmac(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(security, "hotp", lambda secret, counter, digits: "000000")
    with pytest.raises(CryptoUnavailableError):
        security.crypto_self_test()


def test_crypto_self_test_wraps_primitive_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def unavailable(secret, counter, digits):
        raise ValueError("unsupported hash type sha1")

    monkeypatch.setattr(security, "hotp", unavailable)
    with pytest.raises(CryptoUnavailableError):
        security.crypto_self_test()
