"""Shared pytest fixtures for the two-factor engine tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pyotp
import pytest
import pytest_asyncio

from second_factor.core import base32
from second_factor.core.config import Settings
from second_factor.core.store import InMemoryAuditSink, InMemoryUserRecordStore
from second_factor.services import enrollment
from second_factor.services.two_factor import TwoFactorService

# RFC 6238 appendix B seed for HMAC-SHA256, handy as a fixed 32-byte key
FIXED_SECRET = b"12345678901234567890123456789012"
START_TIME = 1_700_000_010.0   # falls exactly on a 30 s step boundary


class FakeClock:
    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def totp_at(secret: str, when: float) -> str:
    """Reference code from pyotp for a Base32 secret."""
    return pyotp.TOTP(secret).at(int(when))


def wrong_code(secret: str, when: float) -> str:
    """A six-digit code that matches none of the steps in a +/-1 window."""
    valid = {totp_at(secret, when + offset * 30) for offset in (-1, 0, 1)}
    return next(c for c in ("000000", "111111", "222222", "333333") if c not in valid)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def store() -> InMemoryUserRecordStore:
    return InMemoryUserRecordStore()


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def fixed_secret(monkeypatch: pytest.MonkeyPatch) -> str:
    """Make enrollment hand out a known secret; returns its Base32 form."""

    monkeypatch.setattr(enrollment, "generate_secret", lambda length=32: FIXED_SECRET)
    return base32.encode(FIXED_SECRET)


@pytest_asyncio.fixture
async def service(
    store: InMemoryUserRecordStore,
    audit_sink: InMemoryAuditSink,
    settings: Settings,
    clock: FakeClock,
) -> AsyncIterator[TwoFactorService]:
    async with TwoFactorService(store, audit_sink=audit_sink, settings=settings, clock=clock) as svc:
        yield svc


@pytest_asyncio.fixture
async def enrolled(service: TwoFactorService, clock: FakeClock, fixed_secret: str) -> dict[str, object]:
    """User ``alice`` with 2FA enabled, clock moved past the confirm step's reuse window."""

    await service.begin_enrollment("alice", "alice@example.com", issuer="ACME")
    confirmed = await service.confirm_enrollment("alice", totp_at(fixed_secret, clock.now))
    clock.advance(90)
    return {"user_id": "alice", "secret": fixed_secret, "backup_codes": confirmed.backup_codes}
