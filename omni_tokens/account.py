"""
omni_tokens.account
===================

Account addressing: (owner principal, optional 32-byte subaccount).

Text form
---------
    owner-text                                    (no / default subaccount)
    owner-text "-" checksum "." compressed-hex    (otherwise)

where ``checksum = base32(crc32(owner[:29] || subaccount))`` (seven
characters) and ``compressed-hex`` is the subaccount hex with leading zero
nibbles removed. Decoding left-pads the hex back to 32 bytes.

Hash form (legacy, one-way)
---------------------------
    hex(crc32(h) || h),  h = sha224(b"\\x0aaccount-id" || owner || subaccount)

A hash form can only be checked for well-formedness or compared against a
freshly hashed candidate account; it never decodes back.

This module provides:
- Account(owner, subaccount=None)
- encode_account(owner, subaccount=None) -> str
- decode_account(text) -> Account
- hash_account(account) -> str
- is_hash_form(text) -> bool
- is_well_formed_account(text) -> bool
- to_account_hash(text) -> str
- encode_subaccount(index) / decode_subaccount(subaccount)
"""

from __future__ import annotations

import hashlib
import string
from dataclasses import dataclass
from typing import Optional, Union

from .errors import ChecksumMismatch, InvalidInput, MalformedAddress
from .principal import MAX_PRINCIPAL_BYTES, Principal
from .utils.bytes import BytesLike, is_zero, left_pad
from .utils.checksum import base32_encode, crc32

__all__ = [
    "SUBACCOUNT_SIZE",
    "ZERO_SUBACCOUNT",
    "Account",
    "encode_account",
    "decode_account",
    "hash_account",
    "is_hash_form",
    "is_well_formed_account",
    "to_account_hash",
    "encode_subaccount",
    "decode_subaccount",
]

SUBACCOUNT_SIZE = 32
ZERO_SUBACCOUNT = bytes(SUBACCOUNT_SIZE)

_ACCOUNT_ID_SEP = b"\x0aaccount-id"
_HEXDIGITS = frozenset(string.hexdigits)

OwnerLike = Union[Principal, str, bytes]


# ---- Types --------------------------------------------------------------------


@dataclass(frozen=True)
class Account:
    """
    Balance-holding unit. The all-zero subaccount is stored as ``None`` so
    that ``Account(p, ZERO_SUBACCOUNT) == Account(p)``.
    """

    owner: Principal
    subaccount: Optional[bytes] = None

    def __post_init__(self) -> None:
        owner = self.owner
        if not isinstance(owner, Principal):
            object.__setattr__(self, "owner", Principal.of(owner))
        sub = self.subaccount
        if sub is None:
            return
        if not isinstance(sub, (bytes, bytearray, memoryview)):
            raise InvalidInput("subaccount must be bytes", details={"type": type(sub).__name__})
        sub = bytes(sub)
        if len(sub) != SUBACCOUNT_SIZE:
            raise InvalidInput(
                f"subaccount must be exactly {SUBACCOUNT_SIZE} bytes",
                details={"length": len(sub)},
            )
        object.__setattr__(self, "subaccount", None if is_zero(sub) else sub)

    def to_text(self) -> str:
        return encode_account(self.owner, self.subaccount)

    def __str__(self) -> str:
        return self.to_text()


# ---- Subaccount helpers -------------------------------------------------------


def encode_subaccount(index: int) -> bytes:
    """32-byte subaccount holding `index` as a big-endian u64 in its last eight bytes."""
    if not isinstance(index, int) or index < 0 or index >= 1 << 64:
        raise InvalidInput("subaccount index must be an integer in [0, 2**64)", details={"index": index})
    return bytes(24) + index.to_bytes(8, "big")


def decode_subaccount(subaccount: BytesLike) -> int:
    sub = bytes(subaccount)
    if len(sub) != SUBACCOUNT_SIZE:
        raise InvalidInput(
            f"subaccount must be exactly {SUBACCOUNT_SIZE} bytes",
            details={"length": len(sub)},
        )
    return int.from_bytes(sub[24:], "big")


# ---- Text form ----------------------------------------------------------------


def _checksum(owner: Principal, subaccount: bytes) -> str:
    return base32_encode(crc32(owner.to_bytes()[:MAX_PRINCIPAL_BYTES] + subaccount))


def encode_account(owner: OwnerLike, subaccount: Optional[BytesLike] = None) -> str:
    """
    Encode an account to its text form.

    Raises InvalidInput when `subaccount` is given but is not 32 bytes.
    """
    account = Account(Principal.of(owner), None if subaccount is None else bytes(subaccount))
    if account.subaccount is None:
        return account.owner.to_text()
    compressed = account.subaccount.hex().lstrip("0")
    return f"{account.owner.to_text()}-{_checksum(account.owner, account.subaccount)}.{compressed}"


def decode_account(text: str) -> Account:
    """
    Decode account text (bare principal or principal-checksum.hex).

    Raises MalformedAddress for hash forms and structural errors, and
    ChecksumMismatch when the embedded checksum does not match.
    """
    if not isinstance(text, str) or not text:
        raise MalformedAddress("account text must be a non-empty string", address=text)
    if is_hash_form(text):
        raise MalformedAddress("account hashes cannot be decoded", address=text)
    if "." not in text:
        return Account(Principal.from_text(text))

    head, _, hex_sub = text.rpartition(".")
    owner_text, sep, checksum = head.rpartition("-")
    if not sep or not owner_text or not checksum:
        raise MalformedAddress("account text is missing its checksum", address=text)
    if not hex_sub or len(hex_sub) > SUBACCOUNT_SIZE * 2:
        raise MalformedAddress("subaccount hex must be 1..64 characters", address=text)
    if any(c not in _HEXDIGITS for c in hex_sub):
        raise MalformedAddress("subaccount is not hex", address=text)

    owner = Principal.from_text(owner_text)
    # Leading zero nibbles were stripped on encode; restore the odd nibble first.
    compressed = bytes.fromhex(hex_sub.rjust(len(hex_sub) + len(hex_sub) % 2, "0"))
    subaccount = left_pad(compressed, SUBACCOUNT_SIZE)

    expected = _checksum(owner, subaccount)
    if checksum != expected:
        raise ChecksumMismatch(address=text, expected=expected, got=checksum)
    return Account(owner, subaccount)


def is_well_formed_account(text: str) -> bool:
    """True iff `decode_account(text)` would succeed."""
    try:
        decode_account(text)
    except (MalformedAddress, ChecksumMismatch, InvalidInput):
        return False
    return True


# ---- Hash form ----------------------------------------------------------------


def hash_account(account: Account) -> str:
    """Legacy one-way account identifier (lowercase hex, 32 bytes)."""
    h = hashlib.sha224()
    h.update(_ACCOUNT_ID_SEP)
    h.update(account.owner.to_bytes())
    h.update(account.subaccount or ZERO_SUBACCOUNT)
    digest = h.digest()
    return (crc32(digest) + digest).hex()


def is_hash_form(text: str) -> bool:
    """
    Structural test only: hex text of >= 4 bytes whose first four bytes are
    the CRC-32 of the rest.
    """
    if not isinstance(text, str) or len(text) % 2 or any(c not in _HEXDIGITS for c in text):
        return False
    raw = bytes.fromhex(text)
    if len(raw) < 4:
        return False
    return crc32(raw[4:]) == raw[:4]


def to_account_hash(text: str) -> str:
    """Hash form for `text`: returned as-is when already a hash form."""
    if is_hash_form(text):
        return text
    return hash_account(decode_account(text))
