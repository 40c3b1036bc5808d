from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserSecurityRecord(BaseModel):
    """Per-user 2FA state as persisted by the external user record store."""

    model_config = ConfigDict(validate_assignment=True)

    secret: str | None = None   # Base32, never logged
    enabled: bool = False
    backup_codes: list[str] = Field(default_factory=list)

    enabled_at: datetime | None = None
    disabled_at: datetime | None = None
    disable_reason: str | None = None

    @field_validator("backup_codes")
    @classmethod
    def _no_duplicate_codes(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("backup codes must be unique")
        return value

    @property
    def is_2fa_enabled(self) -> bool:
        return self.enabled and self.secret is not None
