from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class VerificationMethod(str, Enum):
    totp = "totp"
    backup_code = "backup_code"


# --- Enrollment ---
class EnrollmentStartOut(BaseModel):
    secret: str
    otpauth_url: str
    manual_entry_key: str
    issuer: str
    account_label: str
    expires_at: datetime
    backup_codes_count: int


class EnrollmentConfirmOut(BaseModel):
    success: bool = True
    backup_codes: list[str]   # shown once, not retrievable again
    enabled_at: datetime


# --- Login / disable ---
class VerificationOut(BaseModel):
    success: bool = True
    method: VerificationMethod
    remaining_backup_codes: int


class DisableOut(BaseModel):
    success: bool = True
    method: VerificationMethod
    reason: str
    disabled_at: datetime
