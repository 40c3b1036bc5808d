import base64
import os

import pytest

from second_factor.core import base32
from second_factor.core.errors import MalformedSecretError


@pytest.mark.parametrize(
    "raw, encoded",
    [
        (b"f", "MY"),
        (b"fo", "MZXQ"),
        (b"foo", "MZXW6"),
        (b"foob", "MZXW6YQ"),
        (b"fooba", "MZXW6YTB"),
        (b"foobar", "MZXW6YTBOI"),
        (b"12345678901234567890", "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"),
    ],
)
def test_encode_matches_rfc4648_without_padding(raw: bytes, encoded: str) -> None:
    assert base32.encode(raw) == encoded


def test_encode_agrees_with_stdlib_for_random_input() -> None:
    for length in (1, 5, 20, 32, 33):
        data = os.urandom(length)
        assert base32.encode(data) == base64.b32encode(data).decode().rstrip("=")


def test_round_trip() -> None:
    for length in range(1, 40):
        data = os.urandom(length)
        assert base32.decode(base32.encode(data)) == data


def test_empty_input() -> None:
    assert base32.encode(b"") == ""
    assert base32.decode("") == b""


def test_decode_is_case_insensitive() -> None:
    assert base32.decode("mzxw6ytboi") == b"foobar"


def test_decode_skips_foreign_characters_by_default() -> None:
    assert base32.decode("MZXW-6YTB OI==") == b"foobar"
    assert base32.decode("MZ!XW6*YTBOI1") == b"foobar"


def test_decode_drops_trailing_partial_byte() -> None:
    # "MZXW6Y" carries 30 bits: three full bytes and six spare bits
    assert base32.decode("MZXW6Y") == b"foo"


def test_strict_decode_allows_spacing_and_padding() -> None:
    assert base32.decode("MZXW 6YTB OI==", strict=True) == b"foobar"


@pytest.mark.parametrize("text", ["MZXW-6YTB", "MZXW1", "MZXW8", "MZÄXW"])
def test_strict_decode_rejects_foreign_characters(text: str) -> None:
    with pytest.raises(MalformedSecretError):
        base32.decode(text, strict=True)


def test_malformed_secret_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        base32.decode("0000", strict=True)
