from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PendingSetup(BaseModel):
    """An enrollment waiting for its first code; lives until confirmed, expired or cancelled."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    secret: str
    account_label: str
    issuer: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
