"""HOTP (RFC 4226) and TOTP (RFC 6238) with HMAC-SHA1."""

import logging
import time
from collections.abc import Callable

import pyotp
from pyotp.utils import strings_equal

from second_factor.core import base32

logger = logging.getLogger(__name__)

ALGORITHM = "SHA1"
_MAX_COUNTER = 2 ** 64


def hotp(secret: bytes, counter: int, digits: int = 6) -> str:
    """Return the ``digits``-wide HOTP code for ``secret`` at ``counter``."""
    if not 0 <= counter < _MAX_COUNTER:
        raise ValueError("counter must fit in an unsigned 64-bit integer")
    if not 1 <= digits <= 9:
        raise ValueError("digits must be between 1 and 9")

    return pyotp.HOTP(base32.encode(secret), digits=digits).at(counter)


class TotpEngine:
    """Time-stepped HOTP with a +/- ``window`` tolerance for clock skew."""

    def __init__(
        self,
        step: int = 30,
        digits: int = 6,
        window: int = 1,
        clock: Callable[[], float] = time.time,
    ):
        if step <= 0:
            raise ValueError("step must be positive")
        self.step = step
        self.digits = digits
        self.window = window
        self.clock = clock

    def counter(self, for_time: float | None = None) -> int:
        if for_time is None:
            for_time = self.clock()
        return int(for_time // self.step)

    def generate(self, secret: bytes, for_time: float | None = None) -> str:
        return hotp(secret, self.counter(for_time), self.digits)

    def is_valid_format(self, code: str) -> bool:
        return len(code) == self.digits and code.isascii() and code.isdigit()

    def match(
        self,
        secret: bytes,
        code: str,
        window: int | None = None,
        for_time: float | None = None,
    ) -> int | None:
        """Return the step offset whose code equals ``code``, or ``None``.

        Offsets are tried from ``-window`` to ``+window``.
        """
        if not self.is_valid_format(code):
            return None
        if window is None:
            window = self.window

        otp = pyotp.HOTP(base32.encode(secret), digits=self.digits)
        current = self.counter(for_time)
        for offset in range(-window, window + 1):
            counter = current + offset
            if counter < 0:
                continue
            if strings_equal(otp.at(counter), code):
                logger.debug("TOTP matched with time offset %ss", offset * self.step)
                return offset
        return None

    def verify(
        self,
        secret: bytes,
        code: str,
        window: int | None = None,
        for_time: float | None = None,
    ) -> bool:
        return self.match(secret, code, window=window, for_time=for_time) is not None

    def remaining_seconds(self, for_time: float | None = None) -> int:
        """Seconds until the current code rolls over."""
        if for_time is None:
            for_time = self.clock()
        return self.step - int(for_time) % self.step
