"""RFC 4648 Base32 codec without ``=`` padding.

``base64.b32decode`` insists on canonical padding and rejects stray characters,
while authenticator apps and users hand us secrets in whatever shape they were
typed. ``decode`` therefore folds case and, unless ``strict`` is set, skips
anything outside the alphabet.
"""

from second_factor.core.errors import MalformedSecretError

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_VALUES = {char: index for index, char in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """Encode ``data`` five bits at a time; the last partial group is left-aligned."""
    out = []
    buffer = 0
    bits = 0
    for byte in data:
        buffer = (buffer << 8) | byte
        bits += 8
        while bits >= 5:
            bits -= 5
            out.append(ALPHABET[(buffer >> bits) & 0x1F])
        buffer &= (1 << bits) - 1

    if bits:
        out.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])
    return "".join(out)


def decode(text: str, strict: bool = False) -> bytes:
    """Decode Base32 ``text``; trailing bits that do not fill a byte are dropped.

    With ``strict`` only alphabet characters, whitespace and ``=`` padding are
    accepted and anything else raises :class:`MalformedSecretError`.
    """
    out = bytearray()
    buffer = 0
    bits = 0
    for position, char in enumerate(text):
        if char.isascii():
            char = char.upper()
        value = _VALUES.get(char)
        if value is None:
            if strict and not (char.isspace() or char == "="):
                raise MalformedSecretError(
                    f"Invalid Base32 character at position {position}"
                )
            continue

        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1

    return bytes(out)
