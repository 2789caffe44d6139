"""Text form of 32-byte identifiers: base58 with a 4-byte SHA-256 checksum."""

from __future__ import annotations

import hashlib

ID_LEN = 32
CHECKSUM_LEN = 4
EMPTY_ID = bytes(ID_LEN)

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: position for position, char in enumerate(_ALPHABET)}


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()[-CHECKSUM_LEN:]


def _b58encode(data: bytes) -> str:
    zeros = len(data) - len(data.lstrip(b"\x00"))
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    return "1" * zeros + "".join(reversed(digits))


def _b58decode(text: str) -> bytes:
    number = 0
    for char in text:
        try:
            number = number * 58 + _INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    zeros = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * zeros + body


def encode_id(raw: bytes) -> str:
    """Return the checksummed base58 text of a 32-byte identifier."""
    raw = bytes(raw)
    if len(raw) != ID_LEN:
        raise ValueError(f"identifier must be {ID_LEN} bytes, got {len(raw)}")
    return _b58encode(raw + _checksum(raw))


def decode_id(text: str) -> bytes:
    """Parse the text form of an identifier back into its 32 bytes."""
    decoded = _b58decode(text)
    if len(decoded) < CHECKSUM_LEN:
        raise ValueError("input string is smaller than the checksum size")
    data, checksum = decoded[:-CHECKSUM_LEN], decoded[-CHECKSUM_LEN:]
    if _checksum(data) != checksum:
        raise ValueError("invalid input checksum")
    if len(data) != ID_LEN:
        raise ValueError(f"identifier must be {ID_LEN} bytes, got {len(data)}")
    return data