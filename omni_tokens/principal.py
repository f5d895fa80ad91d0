"""
omni_tokens.principal
=====================

Identity ("principal") value type.

Format
------
A principal is 0..29 raw bytes. Its text form embeds a CRC-32 checksum:

    text = group5(base32(crc32_be(raw) || raw), sep="-")

e.g. the empty principal (management canister) is ``aaaaa-aa``.

This module provides:
- Principal.from_text(text) -> Principal   (checksum + canonical form enforced)
- Principal.from_bytes(raw) -> Principal
- Principal.of(value) -> Principal         (accepts Principal | bytes | text)
- Principal.to_text() / to_bytes()
- Principal.anonymous() / Principal.management()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import ChecksumMismatch, InvalidInput, MalformedAddress
from .utils.checksum import base32_decode, base32_encode, crc32

__all__ = ["Principal", "MAX_PRINCIPAL_BYTES"]

MAX_PRINCIPAL_BYTES = 29

_ANONYMOUS = b"\x04"


def _group(text: str, size: int = 5) -> str:
    return "-".join(text[i : i + size] for i in range(0, len(text), size))


@dataclass(frozen=True)
class Principal:
    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray)):
            raise InvalidInput("principal must be bytes", details={"type": type(self.raw).__name__})
        if len(self.raw) > MAX_PRINCIPAL_BYTES:
            raise InvalidInput(
                f"principal longer than {MAX_PRINCIPAL_BYTES} bytes",
                details={"length": len(self.raw)},
            )
        object.__setattr__(self, "raw", bytes(self.raw))

    # ------------------------------------------------------------------ constructors

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Principal":
        return cls(bytes(raw))

    @classmethod
    def from_text(cls, text: str) -> "Principal":
        """
        Parse principal text, verifying the embedded checksum.

        Input is lowercased first; anything that does not re-encode to the same
        grouped text is rejected as non-canonical.
        """
        if not isinstance(text, str) or not text:
            raise MalformedAddress("principal text must be a non-empty string", address=text)
        canonical = text.lower()
        try:
            decoded = base32_decode(canonical.replace("-", ""))
        except ValueError as e:
            raise MalformedAddress(f"invalid principal text: {e}", address=text) from e
        if len(decoded) < 4:
            raise MalformedAddress("principal text too short", address=text)
        checksum, raw = decoded[:4], decoded[4:]
        if len(raw) > MAX_PRINCIPAL_BYTES:
            raise MalformedAddress("principal text too long", address=text)
        expected = crc32(raw)
        if checksum != expected:
            raise ChecksumMismatch(address=text, expected=expected.hex(), got=checksum.hex())
        principal = cls(raw)
        if principal.to_text() != canonical:
            raise MalformedAddress("principal text is not in canonical form", address=text)
        return principal

    @classmethod
    def of(cls, value: Any) -> "Principal":
        """Coerce a decoded wire value (Principal, raw bytes, int list or text) to a Principal."""
        if isinstance(value, Principal):
            return value
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(bytes(value))
        if isinstance(value, list):
            return cls(bytes(value))
        if isinstance(value, str):
            return cls.from_text(value)
        raise InvalidInput("cannot interpret value as a principal", details={"type": type(value).__name__})

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls(_ANONYMOUS)

    @classmethod
    def management(cls) -> "Principal":
        return cls(b"")

    # ------------------------------------------------------------------ accessors

    def to_bytes(self) -> bytes:
        return self.raw

    def to_text(self) -> str:
        return _group(base32_encode(crc32(self.raw) + self.raw))

    @property
    def is_anonymous(self) -> bool:
        return self.raw == _ANONYMOUS

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"Principal({self.to_text()!r})"
