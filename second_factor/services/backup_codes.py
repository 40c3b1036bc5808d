"""Single-use numeric recovery codes."""

import hmac
import logging
import secrets

from second_factor.models.user import UserSecurityRecord

logger = logging.getLogger(__name__)


class BackupCodeManager:
    def __init__(self, count: int = 10, length: int = 8):
        self.count = count
        self.length = length

    def generate(self, count: int | None = None, length: int | None = None) -> list[str]:
        """Draw ``count`` distinct ``length``-digit codes from a CSPRNG."""
        count = self.count if count is None else count
        length = self.length if length is None else length
        if count > 10 ** length:
            raise ValueError("not enough distinct codes of that length")

        codes: list[str] = []
        seen: set[str] = set()
        while len(codes) < count:
            code = str(secrets.randbelow(10 ** length)).zfill(length)
            if code in seen:
                continue
            seen.add(code)
            codes.append(code)

        logger.info("Generated %d backup codes", count)
        return codes

    @staticmethod
    def _find(record: UserSecurityRecord, code: str) -> str | None:
        code = code.strip()
        if not code:
            return None
        found = None
        # scan every code so timing does not reveal the position
        for candidate in record.backup_codes:
            if hmac.compare_digest(candidate.encode(), code.encode()):
                found = candidate
        return found

    def contains(self, record: UserSecurityRecord, code: str) -> bool:
        return self._find(record, code) is not None

    def consume(self, record: UserSecurityRecord, code: str) -> bool:
        """Remove ``code`` from ``record`` if present. The caller persists the record."""
        found = self._find(record, code)
        if found is None:
            return False
        record.backup_codes = [c for c in record.backup_codes if c != found]
        return True
