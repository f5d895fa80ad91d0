"""
Checksum primitives shared by the identity and account codecs.

- crc32(data) -> 4 bytes, big-endian (IEEE polynomial, as zlib computes it)
- base32_encode(data) -> lowercase RFC-4648 alphabet, *no* padding, minimum
  number of characters for the input bits
- base32_decode(text) -> bytes (inverse of the above)

The unpadded lowercase form is what principal text and account checksums are
built from, so both functions must be bit-exact; trailing partial groups are
zero-filled on encode and must decode back to the same bytes.
"""

from __future__ import annotations

import base64
import binascii
import zlib

from .bytes import BytesLike

__all__ = [
    "ALPHABET",
    "crc32",
    "base32_encode",
    "base32_decode",
]

ALPHABET = "abcdefghijklmnopqrstuvwxyz234567"
_ALPHABET_SET = frozenset(ALPHABET)


def crc32(data: BytesLike) -> bytes:
    """CRC-32 of *data* as 4 big-endian bytes."""
    return (zlib.crc32(bytes(data)) & 0xFFFFFFFF).to_bytes(4, "big")


def base32_encode(data: BytesLike) -> str:
    """5 bits per character, lowercase, padding stripped."""
    return base64.b32encode(bytes(data)).decode("ascii").lower().rstrip("=")


def base32_decode(text: str) -> bytes:
    """
    Decode unpadded lowercase base32.

    Raises ValueError on characters outside the alphabet or on an impossible
    length (1, 3 or 6 characters in the trailing group).
    """
    if not isinstance(text, str):
        raise TypeError("base32_decode expects a string")
    s = text.lower()
    if any(c not in _ALPHABET_SET for c in s):
        raise ValueError("invalid base32 character")
    if len(s) % 8 in (1, 3, 6):
        raise ValueError("invalid base32 length")
    padded = s.upper() + "=" * (-len(s) % 8)
    try:
        return base64.b32decode(padded)
    except binascii.Error as e:
        raise ValueError(f"invalid base32 text: {e}") from e
