# second_factor/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore")

    # --- TOTP ---
    TOTP_SECRET_LENGTH: int = Field(32, ge=16)   # bytes, 256 bits
    TOTP_STEP_SECONDS: int = Field(30, gt=0)
    TOTP_DIGITS: int = Field(6, ge=6, le=8)
    TOTP_WINDOW: int = Field(1, ge=0)             # +/- steps of clock skew
    TOTP_ISSUER: str = "Digital Certificates"

    # --- Backup codes ---
    BACKUP_CODES_COUNT: int = Field(10, gt=0)
    BACKUP_CODE_LENGTH: int = Field(8, ge=6)

    # --- Enrollment / replay protection ---
    SETUP_EXPIRY_MINUTES: int = Field(10, gt=0)
    CODE_REUSE_SECONDS: int = Field(60, gt=0)
    CLEANUP_INTERVAL_MINUTES: int = Field(30, gt=0)
    REPLAY_PER_USER: bool = False
    STRICT_BASE32: bool = True

    LOG_LEVEL: str = "INFO"

    @property
    def setup_expiry_seconds(self) -> int:
        return self.SETUP_EXPIRY_MINUTES * 60

    @property
    def cleanup_interval_seconds(self) -> int:
        return self.CLEANUP_INTERVAL_MINUTES * 60


settings = Settings()
