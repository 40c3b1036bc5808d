import logging
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from second_factor.core.config import Settings
from second_factor.models import AuditOperation, PendingSetup, UserSecurityRecord


def test_record_rejects_duplicate_backup_codes() -> None:
    with pytest.raises(ValidationError):
        UserSecurityRecord(secret="ABC", enabled=True, backup_codes=["11111111", "11111111"])


def test_record_rejects_duplicates_on_assignment() -> None:
    record = UserSecurityRecord(backup_codes=["11111111"])
    with pytest.raises(ValidationError):
        record.backup_codes = ["22222222", "22222222"]


def test_enabled_requires_secret() -> None:
    assert not UserSecurityRecord(enabled=True).is_2fa_enabled
    assert UserSecurityRecord(secret="ABC", enabled=True).is_2fa_enabled
    assert not UserSecurityRecord(secret="ABC", enabled=False).is_2fa_enabled


def test_pending_setup_expiry_is_exclusive() -> None:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    pending = PendingSetup(
        user_id="u1", secret="ABC", account_label="a", issuer="i",
        created_at=created, expires_at=created + timedelta(minutes=10),
    )
    assert not pending.is_expired(created + timedelta(minutes=10))
    assert pending.is_expired(created + timedelta(minutes=10, seconds=1))


@pytest.mark.parametrize("value", ["2FA_ENABLED", "enabled", AuditOperation.enabled])
def test_audit_operation_parse(value) -> None:
    assert AuditOperation.parse(value) is AuditOperation.enabled


@pytest.mark.parametrize("value", ["2FA_UNKNOWN", "", "ENABLED"])
def test_audit_operation_parse_fails_loudly(value: str) -> None:
    with pytest.raises(ValueError):
        AuditOperation.parse(value)


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.TOTP_STEP_SECONDS == 30
    assert settings.TOTP_DIGITS == 6
    assert settings.setup_expiry_seconds == 600
    assert settings.cleanup_interval_seconds == 1800


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CODE_REUSE_SECONDS", "90")
    monkeypatch.setenv("REPLAY_PER_USER", "true")
    settings = Settings(_env_file=None)
    assert settings.CODE_REUSE_SECONDS == 90
    assert settings.REPLAY_PER_USER is True


def test_settings_validate_ranges() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, TOTP_DIGITS=4)


def test_configure_logging_is_idempotent() -> None:
    from second_factor.core.logging import configure_logging

    root = logging.getLogger()
    before = list(root.handlers)
    configure_logging("DEBUG")
    configure_logging("DEBUG")
    assert len(root.handlers) <= max(len(before), 1)
